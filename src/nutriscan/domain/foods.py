"""Domain models for food items."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class FoodSource(StrEnum):
    """Provenance of food facts."""

    OPENFOODFACTS = "openfoodfacts"
    MANUAL = "manual"


@dataclass(frozen=True)
class NutrientFacts:
    """Nutrient values per 100 g."""

    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    sugar_g: float = 0.0
    fiber_g: float | None = None
    sodium_g: float | None = None


@dataclass(frozen=True)
class FoodItem:
    """Food item keyed by barcode."""

    barcode: str
    name: str
    brand: str | None
    facts: NutrientFacts
    serving_size_g: float
    source: FoodSource
    image_url: str | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ExternalProduct:
    """Product data returned by the external nutrition database."""

    barcode: str
    name: str
    brand: str | None
    facts: NutrientFacts
    serving_size_g: float
    image_url: str | None
    ingredients: str
    categories: str


@dataclass(frozen=True)
class ExternalSearchResult:
    """Paged search result from the external nutrition database."""

    count: int
    page: int
    page_size: int
    products: list[dict[str, object]]
