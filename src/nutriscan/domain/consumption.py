"""Domain models for consumption logging."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID


@dataclass(frozen=True)
class NutrientAmounts:
    """Nutrients consumed in a single entry or a day."""

    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    sugar_g: float


@dataclass(frozen=True)
class ConsumptionLogEntry:
    """A logged consumption of a food item."""

    id: UUID
    user_id: UUID
    barcode: str
    food_name: str
    amount_g: float
    log_date: date
    consumed_at: datetime
    nutrients: NutrientAmounts


@dataclass(frozen=True)
class LogPage:
    """Page of consumption log entries."""

    entries: list[ConsumptionLogEntry]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)


@dataclass(frozen=True)
class NutrientComparison:
    """Consumed amount of a nutrient compared to its goal."""

    consumed: float
    goal: float
    remaining: float
    percentage: int | None


@dataclass(frozen=True)
class DailySummary:
    """Totals for a day, optionally compared to the user's goal."""

    day: date
    totals: NutrientAmounts
    item_count: int
    comparison: dict[str, NutrientComparison] | None
    entries: list[ConsumptionLogEntry]
