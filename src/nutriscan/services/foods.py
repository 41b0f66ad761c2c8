"""Food item service backed by Open Food Facts."""

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, TypeVar

from nutriscan.domain.errors import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from nutriscan.domain.foods import (
    ExternalProduct,
    ExternalSearchResult,
    FoodItem,
    FoodSource,
    NutrientFacts,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_logger = logging.getLogger(__name__)

_T = TypeVar("_T")

SUSPICIOUS_CALORIES = 10
PLACEHOLDER_NAME_MARKER = "Product "
DEFAULT_SERVING_SIZE_G = 100.0


class FoodRepository(Protocol):
    """Persistence interface for food items."""

    def get_food(self, barcode: str) -> FoodItem | None:
        """Return a food item by barcode, if present."""

    def create_food(self, food: FoodItem) -> FoodItem:
        """Insert a food item; raise ConflictError on duplicate barcode."""

    def update_food(self, food: FoodItem) -> FoodItem:
        """Persist changes to a food item."""

    def delete_food(self, barcode: str) -> None:
        """Delete a food item."""

    def list_foods(
        self, search: str | None, offset: int, limit: int
    ) -> tuple[list[FoodItem], int]:
        """Return a page of foods and the total count."""


class ProductDatabaseClient(Protocol):
    """Interface for the external nutrition database."""

    async def get_product(self, barcode: str) -> ExternalProduct | None:
        """Return product facts for a barcode or None when unknown."""

    async def search_products(
        self, query: str, page: int, page_size: int
    ) -> ExternalSearchResult:
        """Search products by free text."""


@dataclass(frozen=True)
class FoodLookup:
    """Result of a barcode lookup."""

    food: FoodItem
    source: str
    created: bool = False
    product: ExternalProduct | None = None
    warning: str | None = None


@dataclass
class FoodService:
    """Service for barcode lookups and food item management."""

    repository: FoodRepository
    product_client: ProductDatabaseClient
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def lookup_barcode(self, barcode: str, auto_fetch: bool = True) -> FoodLookup:
        """Return a food item, fetching or refreshing it from Open Food Facts."""
        barcode = _require_barcode(barcode)
        stored = self.repository.get_food(barcode)
        incomplete = stored is not None and is_incomplete(stored)
        if stored is not None and not incomplete:
            return FoodLookup(food=stored, source="database")

        if auto_fetch:
            product = await self._fetch_product(barcode)
            if product is not None:
                fetched = food_from_product(product)
                if stored is not None:
                    _logger.info(
                        "Refreshing incomplete food item", extra={"barcode": barcode}
                    )
                    food = self.repository.update_food(fetched)
                    return FoodLookup(
                        food=food, source="openfoodfacts", product=product
                    )
                food = self.repository.create_food(fetched)
                return FoodLookup(
                    food=food, source="openfoodfacts", created=True, product=product
                )

        if stored is not None:
            return FoodLookup(
                food=stored,
                source="database",
                warning="Data may be incomplete - Open Food Facts lookup failed",
            )
        raise NotFoundError("Food item not found")

    async def create_food(
        self,
        barcode: str,
        payload: dict[str, object],
        *,
        fetch_external: bool = False,
    ) -> FoodLookup:
        """Create a manual food item, optionally seeded with external facts."""
        barcode = _require_barcode(barcode)
        if self.repository.get_food(barcode) is not None:
            raise ConflictError("Food item with this barcode already exists")

        product = await self._fetch_product(barcode) if fetch_external else None
        base = food_from_product(product) if product else None
        food = _merge_food(barcode, payload, base)
        created = self.repository.create_food(food)
        return FoodLookup(
            food=created,
            source="openfoodfacts_enhanced" if product else "manual",
            created=True,
            product=product,
        )

    def list_foods(
        self, search: str | None = None, page: int = 1, limit: int = 20
    ) -> tuple[list[FoodItem], int]:
        page = max(page, 1)
        limit = max(min(limit, 100), 1)
        return self.repository.list_foods(search or None, (page - 1) * limit, limit)

    def update_food(self, barcode: str, payload: dict[str, object]) -> FoodItem:
        current = self.get_food(barcode)
        updated = _merge_food(current.barcode, payload, current)
        return self.repository.update_food(updated)

    def delete_food(self, barcode: str) -> None:
        self.get_food(barcode)
        self.repository.delete_food(barcode)

    def get_food(self, barcode: str) -> FoodItem:
        food = self.repository.get_food(_require_barcode(barcode))
        if food is None:
            raise NotFoundError("Food item not found")
        return food

    async def search_external(
        self, query: str, page: int = 1, limit: int = 20
    ) -> ExternalSearchResult:
        if not query or not query.strip():
            raise ValidationError("Search query (q) is required")
        try:
            return await self._call_with_retry(
                lambda: self.product_client.search_products(query.strip(), page, limit),
                action="search",
            )
        except Exception as exc:
            raise ExternalServiceError(
                "Failed to search external food database"
            ) from exc

    async def _fetch_product(self, barcode: str) -> ExternalProduct | None:
        try:
            return await self._call_with_retry(
                lambda: self.product_client.get_product(barcode),
                action=f"get_product:{barcode}",
            )
        except Exception:
            _logger.exception(
                "Open Food Facts lookup failed", extra={"barcode": barcode}
            )
            return None

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[_T]]", *, action: str
    ) -> _T:
        """Call an async function with a short retry."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "Open Food Facts %s failed (attempt %s/%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def is_incomplete(food: FoodItem) -> bool:
    """Return True when stored facts look like a placeholder."""
    facts = food.facts
    return (
        facts.calories < SUSPICIOUS_CALORIES
        or not facts.carbs_g
        or not facts.protein_g
        or not facts.fat_g
        or PLACEHOLDER_NAME_MARKER in food.name
    )


def food_from_product(product: ExternalProduct) -> FoodItem:
    return FoodItem(
        barcode=product.barcode,
        name=product.name,
        brand=product.brand,
        facts=product.facts,
        serving_size_g=product.serving_size_g,
        source=FoodSource.OPENFOODFACTS,
        image_url=product.image_url,
        updated_at=datetime.now(tz=UTC),
    )


def _merge_food(
    barcode: str, payload: dict[str, object], base: FoodItem | None
) -> FoodItem:
    fact_fields = (
        "calories",
        "protein_g",
        "carbs_g",
        "fat_g",
        "sugar_g",
        "fiber_g",
        "sodium_g",
    )
    fact_changes = {
        field: _non_negative(field, payload[field])
        for field in fact_fields
        if payload.get(field) is not None
    }
    name = payload.get("name") or (base.name if base else None)
    if not name or (base is None and "calories" not in fact_changes):
        raise ValidationError("Name and caloriesPer100g are required fields")

    if base is None:
        facts = NutrientFacts(
            calories=fact_changes.pop("calories"),
            protein_g=fact_changes.pop("protein_g", 0.0),
            carbs_g=fact_changes.pop("carbs_g", 0.0),
            fat_g=fact_changes.pop("fat_g", 0.0),
        )
        base = FoodItem(
            barcode=barcode,
            name=str(name),
            brand=None,
            facts=facts,
            serving_size_g=DEFAULT_SERVING_SIZE_G,
            source=FoodSource.MANUAL,
        )
    serving = payload.get("serving_size_g")
    return replace(
        base,
        name=str(name),
        brand=payload.get("brand", base.brand),  # type: ignore[arg-type]
        facts=replace(base.facts, **fact_changes),
        serving_size_g=(
            _non_negative("serving_size_g", serving)
            if serving is not None
            else base.serving_size_g
        ),
        image_url=payload.get("image_url", base.image_url),  # type: ignore[arg-type]
        updated_at=datetime.now(tz=UTC),
    )


def _non_negative(field: str, value: object) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a number") from exc
    if number < 0:
        raise ValidationError(f"{field} must be >= 0")
    return number


def _require_barcode(barcode: str) -> str:
    cleaned = (barcode or "").strip()
    if not cleaned:
        raise ValidationError("Barcode is required")
    return cleaned
