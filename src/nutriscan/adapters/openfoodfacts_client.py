"""Open Food Facts API client."""

import re
from dataclasses import dataclass

import httpx

from nutriscan.domain.foods import ExternalProduct, ExternalSearchResult, NutrientFacts
from nutriscan.services.foods import ProductDatabaseClient
from nutriscan.services.numbers import round_int

KJ_PER_KCAL = 4.184
DEFAULT_SERVING_SIZE_G = 100.0
REQUEST_TIMEOUT_SECONDS = 10

_SERVING_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")
_PER_100G_SUFFIXES = ("_100g", "-100g", "_per_100g", "-per-100g")


@dataclass
class HttpxOpenFoodFactsClient(ProductDatabaseClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    user_agent: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, user_agent: str) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            user_agent=user_agent,
            http_client=httpx.AsyncClient(),
        )

    async def get_product(self, barcode: str) -> ExternalProduct | None:
        """Fetch a product; None when unknown or without nutriments."""
        response = await self.http_client.get(
            f"{self.base_url}/api/v0/product/{barcode}.json",
            headers={"User-Agent": self.user_agent},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data = response.json()
        product = data.get("product")
        if data.get("status") == 0 or not product:
            return None
        facts = extract_facts(product.get("nutriments"))
        if facts is None:
            return None
        return ExternalProduct(
            barcode=barcode,
            name=product_name(product),
            brand=product.get("brands") or None,
            facts=facts,
            serving_size_g=serving_size(product.get("serving_size")),
            image_url=product.get("image_url") or None,
            ingredients=product.get("ingredients_text") or "",
            categories=product.get("categories") or "",
        )

    async def search_products(
        self, query: str, page: int, page_size: int
    ) -> ExternalSearchResult:
        response = await self.http_client.get(
            f"{self.base_url}/cgi/search.pl",
            params={
                "search_terms": query,
                "search_simple": 1,
                "action": "process",
                "json": 1,
                "page": page,
                "page_size": page_size,
            },
            headers={"User-Agent": self.user_agent},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data = response.json()
        return ExternalSearchResult(
            count=int(data.get("count") or 0),
            page=int(data.get("page") or 1),
            page_size=int(data.get("page_size") or page_size),
            products=[
                {
                    "barcode": product.get("code"),
                    "name": product_name(product),
                    "brand": product.get("brands") or "Unknown",
                    "imageUrl": product.get("image_url") or None,
                }
                for product in data.get("products") or []
            ],
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def extract_facts(nutriments: dict[str, object] | None) -> NutrientFacts | None:
    """Normalize per-100g nutriments, converting kJ to kcal when needed."""
    if not nutriments:
        return None

    def per_100g(name: str) -> float:
        for key in [f"{name}{suffix}" for suffix in _PER_100G_SUFFIXES] + [name]:
            value = nutriments.get(key)
            if value is not None and value != "":
                return _to_float(value)
        return 0.0

    energy = per_100g("energy-kcal") or per_100g("energy_kcal")
    if not energy:
        kilojoules = (
            per_100g("energy-kj") or per_100g("energy_kj") or per_100g("energy")
        )
        energy = float(round_int(kilojoules / KJ_PER_KCAL)) if kilojoules else 0.0
    return NutrientFacts(
        calories=energy,
        protein_g=per_100g("proteins"),
        carbs_g=per_100g("carbohydrates"),
        fat_g=per_100g("fat"),
        sugar_g=per_100g("sugars"),
        fiber_g=per_100g("fiber"),
        sodium_g=per_100g("sodium"),
    )


def product_name(product: dict[str, object]) -> str:
    for key in (
        "product_name",
        "product_name_en",
        "generic_name",
        "abbreviated_product_name",
    ):
        value = product.get(key)
        if value:
            return str(value)
    return "Unknown Product"


def serving_size(raw: object) -> float:
    if isinstance(raw, str):
        match = _SERVING_NUMBER.search(raw)
        if match:
            return float(match.group(1))
    return DEFAULT_SERVING_SIZE_G


def _to_float(value: object) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
