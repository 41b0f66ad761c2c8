"""Supabase repository for daily goals."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutriscan.adapters.supabase_errors import execute_insert
from nutriscan.domain.goals import DailyGoal, GoalTargets, GoalType
from nutriscan.services.goals import GoalRepository

_COLUMNS = (
    "user_id, goal_type, target_calories, target_protein_g, target_carbs_g, "
    "target_fat_g, is_auto_calculated, updated_at"
)


@dataclass
class SupabaseGoalRepository(GoalRepository):
    """Supabase implementation for daily goals, one row per user."""

    client: Client

    def get_goal(self, user_id: UUID) -> DailyGoal | None:
        response = (
            self.client.table("daily_goals")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if response.data:
            return _to_goal(response.data[0])
        return None

    def create_goal(self, goal: DailyGoal) -> DailyGoal:
        row = execute_insert(
            self.client.table("daily_goals").insert(_to_row(goal)),
            "Daily goal already exists. Use PUT to update.",
        )
        return _to_goal(row)

    def update_goal(self, goal: DailyGoal) -> DailyGoal:
        payload = _to_row(goal)
        payload.pop("user_id")
        response = (
            self.client.table("daily_goals")
            .update(payload)
            .eq("user_id", str(goal.user_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update daily goal in Supabase")
        return _to_goal(response.data[0])

    def delete_goal(self, user_id: UUID) -> None:
        self.client.table("daily_goals").delete().eq("user_id", str(user_id)).execute()


def _to_row(goal: DailyGoal) -> dict[str, object]:
    return {
        "user_id": str(goal.user_id),
        "goal_type": goal.goal_type.value,
        "target_calories": goal.targets.calories,
        "target_protein_g": goal.targets.protein_g,
        "target_carbs_g": goal.targets.carbs_g,
        "target_fat_g": goal.targets.fat_g,
        "is_auto_calculated": goal.is_auto_calculated,
        "updated_at": (goal.updated_at or datetime.now(tz=UTC)).isoformat(),
    }


def _to_goal(row: dict[str, object]) -> DailyGoal:
    updated_at = row.get("updated_at")
    return DailyGoal(
        user_id=UUID(str(row["user_id"])),
        goal_type=GoalType(str(row["goal_type"])),
        targets=GoalTargets(
            calories=int(row["target_calories"]),  # type: ignore[arg-type]
            protein_g=float(row["target_protein_g"]),  # type: ignore[arg-type]
            carbs_g=float(row["target_carbs_g"]),  # type: ignore[arg-type]
            fat_g=float(row["target_fat_g"]),  # type: ignore[arg-type]
        ),
        is_auto_calculated=bool(row.get("is_auto_calculated", True)),
        updated_at=datetime.fromisoformat(str(updated_at)) if updated_at else None,
    )
