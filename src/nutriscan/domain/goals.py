"""Domain models for daily nutrition goals."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class GoalType(StrEnum):
    """Canonical goal categories."""

    LOSE = "lose"
    MAINTAIN = "maintain"
    GAIN = "gain"


@dataclass(frozen=True)
class GoalTargets:
    """Daily calorie and macro targets."""

    calories: int
    protein_g: float
    carbs_g: float
    fat_g: float


@dataclass(frozen=True)
class DailyGoal:
    """Persisted daily goal for a user."""

    user_id: UUID
    goal_type: GoalType
    targets: GoalTargets
    is_auto_calculated: bool
    updated_at: datetime | None = None
