"""Supabase repository for food items keyed by barcode."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from nutriscan.adapters.supabase_errors import execute_insert
from nutriscan.domain.foods import FoodItem, FoodSource, NutrientFacts
from nutriscan.services.foods import FoodRepository

_COLUMNS = (
    "barcode, name, brand, calories_per_100g, protein_per_100g, carbs_per_100g, "
    "fat_per_100g, sugar_per_100g, fiber_per_100g, sodium_per_100g, "
    "serving_size_g, image_url, source, updated_at"
)


@dataclass
class SupabaseFoodRepository(FoodRepository):
    """Supabase implementation for food items."""

    client: Client

    def get_food(self, barcode: str) -> FoodItem | None:
        response = (
            self.client.table("food_items")
            .select(_COLUMNS)
            .eq("barcode", barcode)
            .limit(1)
            .execute()
        )
        if response.data:
            return _to_food(response.data[0])
        return None

    def create_food(self, food: FoodItem) -> FoodItem:
        row = execute_insert(
            self.client.table("food_items").insert(_to_row(food)),
            "Food item with this barcode already exists",
        )
        return _to_food(row)

    def update_food(self, food: FoodItem) -> FoodItem:
        payload = _to_row(food)
        payload.pop("barcode")
        response = (
            self.client.table("food_items")
            .update(payload)
            .eq("barcode", food.barcode)
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update food item in Supabase")
        return _to_food(response.data[0])

    def delete_food(self, barcode: str) -> None:
        self.client.table("food_items").delete().eq("barcode", barcode).execute()

    def list_foods(
        self, search: str | None, offset: int, limit: int
    ) -> tuple[list[FoodItem], int]:
        """Return foods ordered by name, optionally filtered by a name fragment."""
        query = self.client.table("food_items").select(_COLUMNS, count="exact")
        if search:
            query = query.ilike("name", f"%{search}%")
        response = query.order("name").range(offset, offset + limit - 1).execute()
        rows = response.data or []
        total = response.count if response.count is not None else len(rows)
        return [_to_food(row) for row in rows], total


def _to_row(food: FoodItem) -> dict[str, object]:
    facts = food.facts
    return {
        "barcode": food.barcode,
        "name": food.name,
        "brand": food.brand,
        "calories_per_100g": facts.calories,
        "protein_per_100g": facts.protein_g,
        "carbs_per_100g": facts.carbs_g,
        "fat_per_100g": facts.fat_g,
        "sugar_per_100g": facts.sugar_g,
        "fiber_per_100g": facts.fiber_g,
        "sodium_per_100g": facts.sodium_g,
        "serving_size_g": food.serving_size_g,
        "image_url": food.image_url,
        "source": food.source.value,
        "updated_at": (food.updated_at or datetime.now(tz=UTC)).isoformat(),
    }


def _to_food(row: dict[str, object]) -> FoodItem:
    updated_at = row.get("updated_at")
    return FoodItem(
        barcode=str(row["barcode"]),
        name=str(row["name"]),
        brand=row.get("brand"),  # type: ignore[arg-type]
        facts=NutrientFacts(
            calories=_float(row.get("calories_per_100g")),
            protein_g=_float(row.get("protein_per_100g")),
            carbs_g=_float(row.get("carbs_per_100g")),
            fat_g=_float(row.get("fat_per_100g")),
            sugar_g=_float(row.get("sugar_per_100g")),
            fiber_g=_optional_float(row.get("fiber_per_100g")),
            sodium_g=_optional_float(row.get("sodium_per_100g")),
        ),
        serving_size_g=_float(row.get("serving_size_g")) or 100.0,
        source=FoodSource(str(row.get("source") or FoodSource.MANUAL.value)),
        image_url=row.get("image_url"),  # type: ignore[arg-type]
        updated_at=datetime.fromisoformat(str(updated_at)) if updated_at else None,
    )


def _float(value: object) -> float:
    return float(value) if value is not None else 0.0  # type: ignore[arg-type]


def _optional_float(value: object) -> float | None:
    return float(value) if value is not None else None  # type: ignore[arg-type]
