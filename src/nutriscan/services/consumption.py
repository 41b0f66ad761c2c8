"""Consumption logging service."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from nutriscan.domain.consumption import (
    ConsumptionLogEntry,
    DailySummary,
    LogPage,
    NutrientAmounts,
    NutrientComparison,
)
from nutriscan.domain.errors import NotFoundError, ValidationError
from nutriscan.domain.foods import FoodItem
from nutriscan.domain.goals import DailyGoal
from nutriscan.services.foods import FoodLookup, FoodService
from nutriscan.services.numbers import round_half_up, round_int

_logger = logging.getLogger(__name__)

DEFAULT_SCAN_AMOUNT_G = 100.0
MAX_PAGE_SIZE = 100
SUMMARY_BATCH_SIZE = 200
_NUTRIENT_FIELDS = ("calories", "protein_g", "carbs_g", "fat_g", "sugar_g")


class ConsumptionRepository(Protocol):
    """Persistence interface for consumption logs."""

    def create_entry(
        self,
        user_id: UUID,
        food: FoodItem,
        amount_g: float,
        log_date: date,
        consumed_at: datetime,
        nutrients: NutrientAmounts,
    ) -> ConsumptionLogEntry:
        """Insert a log entry and return it."""

    def get_entry(self, user_id: UUID, entry_id: UUID) -> ConsumptionLogEntry | None:
        """Return a user's entry by id, if present."""

    def update_entry(self, entry: ConsumptionLogEntry) -> ConsumptionLogEntry:
        """Persist changes to an entry."""

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        """Delete a user's entry."""

    def list_entries(  # noqa: PLR0913
        self,
        user_id: UUID,
        start: date | None,
        end: date | None,
        offset: int,
        limit: int,
    ) -> tuple[list[ConsumptionLogEntry], int]:
        """Return entries between two dates (inclusive) newest first, and a count."""


class GoalLookup(Protocol):
    """Read access to goals for daily comparisons."""

    def get_goal(self, user_id: UUID) -> DailyGoal | None:
        """Return the user's goal, if present."""


@dataclass
class ConsumptionLogService:
    """Service that scales food facts and persists consumption logs."""

    repository: ConsumptionRepository
    food_service: FoodService
    goals: GoalLookup
    timezone: str = "UTC"

    def today(self) -> date:
        return datetime.now(tz=ZoneInfo(self.timezone)).date()

    def log_food(  # noqa: PLR0913
        self,
        user_id: UUID,
        barcode: str,
        amount_g: float,
        log_date: date | None = None,
        overrides: dict[str, float] | None = None,
    ) -> ConsumptionLogEntry:
        """Log a stored food item, auto-calculating nutrients from the amount."""
        food = self.food_service.get_food(barcode)
        amount = _require_amount(amount_g)
        nutrients = calculate_nutrients(food, amount)
        if overrides:
            nutrients = _apply_overrides(nutrients, overrides)
        entry = self.repository.create_entry(
            user_id=user_id,
            food=food,
            amount_g=amount,
            log_date=log_date or self.today(),
            consumed_at=datetime.now(tz=UTC),
            nutrients=nutrients,
        )
        _logger.info(
            "Logged consumption",
            extra={"user_id": str(user_id), "barcode": food.barcode, "grams": amount},
        )
        return entry

    async def scan_and_log(
        self, user_id: UUID, barcode: str, amount_g: float = DEFAULT_SCAN_AMOUNT_G
    ) -> tuple[FoodLookup, ConsumptionLogEntry]:
        """Look up a barcode, fetching it externally if needed, and log it today."""
        lookup = await self.food_service.lookup_barcode(barcode)
        entry = self.log_food(user_id, lookup.food.barcode, amount_g)
        return lookup, entry

    def get_entry(self, user_id: UUID, entry_id: UUID) -> ConsumptionLogEntry:
        entry = self.repository.get_entry(user_id, entry_id)
        if entry is None:
            raise NotFoundError("Consumption log not found")
        return entry

    def list_entries(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        day: date | None = None,
        start: date | None = None,
        end: date | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> LogPage:
        """Return a page of entries filtered by a day or a date range."""
        if day is not None:
            start = end = day
        page = max(page, 1)
        limit = max(min(limit, MAX_PAGE_SIZE), 1)
        entries, total = self.repository.list_entries(
            user_id, start, end, (page - 1) * limit, limit
        )
        return LogPage(entries=entries, page=page, limit=limit, total=total)

    def update_entry(
        self,
        user_id: UUID,
        entry_id: UUID,
        changes: dict[str, object],
        *,
        auto_calculate: bool = True,
    ) -> ConsumptionLogEntry:
        """Update an entry; a changed amount re-derives nutrients in auto mode."""
        entry = self.get_entry(user_id, entry_id)
        log_date = changes.get("log_date") or entry.log_date
        if not isinstance(log_date, date):
            raise ValidationError("log_date must be a date")
        updated = replace(entry, log_date=log_date)

        amount = changes.get("amount_g")
        if amount is not None:
            updated = replace(updated, amount_g=_require_amount(amount))
            if auto_calculate:
                food = self.food_service.get_food(entry.barcode)
                updated = replace(
                    updated, nutrients=calculate_nutrients(food, updated.amount_g)
                )
        if not auto_calculate:
            overrides = {
                key: changes[key] for key in _NUTRIENT_FIELDS if key in changes
            }
            updated = replace(
                updated, nutrients=_apply_overrides(updated.nutrients, overrides)
            )
        return self.repository.update_entry(updated)

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        self.get_entry(user_id, entry_id)
        self.repository.delete_entry(user_id, entry_id)

    def daily_summary(self, user_id: UUID, day: date) -> DailySummary:
        """Return totals for a day compared with the user's goal."""
        entries: list[ConsumptionLogEntry] = []
        while True:
            batch, total = self.repository.list_entries(
                user_id, day, day, len(entries), SUMMARY_BATCH_SIZE
            )
            entries.extend(batch)
            if not batch or len(entries) >= total:
                break
        totals = sum_nutrients(entries, digits=1)
        goal = self.goals.get_goal(user_id)
        return DailySummary(
            day=day,
            totals=totals,
            item_count=len(entries),
            comparison=_compare(totals, goal) if goal else None,
            entries=entries,
        )


def calculate_nutrients(food: FoodItem, amount_g: float) -> NutrientAmounts:
    """Scale per-100g facts by the consumed amount, rounded to one decimal."""
    ratio = amount_g / 100
    facts = food.facts
    return NutrientAmounts(
        calories=round_half_up(facts.calories * ratio, 1),
        protein_g=round_half_up(facts.protein_g * ratio, 1),
        carbs_g=round_half_up(facts.carbs_g * ratio, 1),
        fat_g=round_half_up(facts.fat_g * ratio, 1),
        sugar_g=round_half_up((facts.sugar_g or 0.0) * ratio, 1),
    )


def sum_nutrients(
    entries: list[ConsumptionLogEntry], digits: int | None = None
) -> NutrientAmounts:
    """Sum entry nutrients, treating missing values as zero."""
    totals = dict.fromkeys(_NUTRIENT_FIELDS, 0.0)
    for entry in entries:
        for field in _NUTRIENT_FIELDS:
            totals[field] += getattr(entry.nutrients, field, None) or 0.0
    if digits is not None:
        totals = {key: round_half_up(value, digits) for key, value in totals.items()}
    return NutrientAmounts(**totals)


def _compare(totals: NutrientAmounts, goal: DailyGoal) -> dict[str, NutrientComparison]:
    targets = {
        "calories": float(goal.targets.calories),
        "protein_g": goal.targets.protein_g,
        "carbs_g": goal.targets.carbs_g,
        "fat_g": goal.targets.fat_g,
    }
    comparison = {}
    for field, target in targets.items():
        consumed = getattr(totals, field)
        comparison[field] = NutrientComparison(
            consumed=consumed,
            goal=target,
            remaining=round_half_up(max(0.0, target - consumed), 1),
            percentage=round_int(consumed / target * 100) if target > 0 else None,
        )
    return comparison


def _apply_overrides(
    nutrients: NutrientAmounts, overrides: dict[str, object]
) -> NutrientAmounts:
    values = {}
    for field in _NUTRIENT_FIELDS:
        value = overrides.get(field)
        if value is None:
            continue
        try:
            number = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"{field} must be a number") from exc
        if number < 0:
            raise ValidationError(f"{field} must be >= 0")
        values[field] = number
    return replace(nutrients, **values)


def _require_amount(amount_g: object) -> float:
    if amount_g is None or isinstance(amount_g, bool):
        raise ValidationError("amountConsumed must be greater than 0")
    try:
        amount = float(amount_g)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError("amountConsumed must be greater than 0") from exc
    if amount <= 0:
        raise ValidationError("amountConsumed must be greater than 0")
    return amount
