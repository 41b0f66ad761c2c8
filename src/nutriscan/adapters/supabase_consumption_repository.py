"""Supabase repository for consumption logs."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from nutriscan.adapters.supabase_errors import execute_insert
from nutriscan.domain.consumption import ConsumptionLogEntry, NutrientAmounts
from nutriscan.domain.foods import FoodItem
from nutriscan.services.consumption import ConsumptionRepository

_COLUMNS = (
    "id, user_id, barcode, food_name, amount_g, log_date, consumed_at, "
    "calories, protein_g, carbs_g, fat_g, sugar_g"
)


@dataclass
class SupabaseConsumptionRepository(ConsumptionRepository):
    """Supabase implementation for consumption logs."""

    client: Client

    def create_entry(  # noqa: PLR0913
        self,
        user_id: UUID,
        food: FoodItem,
        amount_g: float,
        log_date: date,
        consumed_at: datetime,
        nutrients: NutrientAmounts,
    ) -> ConsumptionLogEntry:
        row = execute_insert(
            self.client.table("consumption_logs").insert(
                {
                    "user_id": str(user_id),
                    "barcode": food.barcode,
                    "food_name": food.name,
                    "amount_g": amount_g,
                    "log_date": log_date.isoformat(),
                    "consumed_at": consumed_at.isoformat(),
                    **_nutrient_columns(nutrients),
                }
            ),
            "Consumption log already exists",
        )
        return _to_entry(row)

    def get_entry(self, user_id: UUID, entry_id: UUID) -> ConsumptionLogEntry | None:
        response = (
            self.client.table("consumption_logs")
            .select(_COLUMNS)
            .eq("id", str(entry_id))
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if response.data:
            return _to_entry(response.data[0])
        return None

    def update_entry(self, entry: ConsumptionLogEntry) -> ConsumptionLogEntry:
        response = (
            self.client.table("consumption_logs")
            .update(
                {
                    "amount_g": entry.amount_g,
                    "log_date": entry.log_date.isoformat(),
                    **_nutrient_columns(entry.nutrients),
                }
            )
            .eq("id", str(entry.id))
            .eq("user_id", str(entry.user_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update consumption log in Supabase")
        return _to_entry(response.data[0])

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        self.client.table("consumption_logs").delete().eq("id", str(entry_id)).eq(
            "user_id", str(user_id)
        ).execute()

    def list_entries(  # noqa: PLR0913
        self,
        user_id: UUID,
        start: date | None,
        end: date | None,
        offset: int,
        limit: int,
    ) -> tuple[list[ConsumptionLogEntry], int]:
        """Return entries newest first with the total matching count."""
        query = (
            self.client.table("consumption_logs")
            .select(_COLUMNS, count="exact")
            .eq("user_id", str(user_id))
        )
        if start is not None:
            query = query.gte("log_date", start.isoformat())
        if end is not None:
            query = query.lte("log_date", end.isoformat())
        response = (
            query.order("consumed_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        rows = response.data or []
        total = response.count if response.count is not None else len(rows)
        return [_to_entry(row) for row in rows], total


def _nutrient_columns(nutrients: NutrientAmounts) -> dict[str, float]:
    return {
        "calories": nutrients.calories,
        "protein_g": nutrients.protein_g,
        "carbs_g": nutrients.carbs_g,
        "fat_g": nutrients.fat_g,
        "sugar_g": nutrients.sugar_g,
    }


def _to_entry(row: dict[str, object]) -> ConsumptionLogEntry:
    return ConsumptionLogEntry(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        barcode=str(row["barcode"]),
        food_name=str(row.get("food_name") or "Unknown food"),
        amount_g=float(row["amount_g"]),  # type: ignore[arg-type]
        log_date=date.fromisoformat(str(row["log_date"])),
        consumed_at=datetime.fromisoformat(str(row["consumed_at"])),
        nutrients=NutrientAmounts(
            calories=float(row.get("calories") or 0),  # type: ignore[arg-type]
            protein_g=float(row.get("protein_g") or 0),  # type: ignore[arg-type]
            carbs_g=float(row.get("carbs_g") or 0),  # type: ignore[arg-type]
            fat_g=float(row.get("fat_g") or 0),  # type: ignore[arg-type]
            sugar_g=float(row.get("sugar_g") or 0),  # type: ignore[arg-type]
        ),
    )
