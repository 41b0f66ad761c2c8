"""Daily goal lifecycle service."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from nutriscan.domain.errors import ConflictError, NotFoundError, ValidationError
from nutriscan.domain.goals import DailyGoal, GoalTargets, GoalType
from nutriscan.domain.profiles import Profile
from nutriscan.services.goal_engine import calculate_for_profile

_logger = logging.getLogger(__name__)

_TARGET_FIELDS = ("calories", "protein_g", "carbs_g", "fat_g")


class GoalRepository(Protocol):
    """Persistence interface for daily goals."""

    def get_goal(self, user_id: UUID) -> DailyGoal | None:
        """Return the user's goal, if present."""

    def create_goal(self, goal: DailyGoal) -> DailyGoal:
        """Insert a goal; raise ConflictError when one already exists."""

    def update_goal(self, goal: DailyGoal) -> DailyGoal:
        """Persist changes to an existing goal."""

    def delete_goal(self, user_id: UUID) -> None:
        """Delete the user's goal."""


class ProfileLookup(Protocol):
    """Read access to profiles needed for goal derivation."""

    def get_profile(self, user_id: UUID) -> Profile | None:
        """Return the user's profile, if present."""


@dataclass
class GoalService:
    """Service for creating, deriving and updating daily goals."""

    repository: GoalRepository
    profiles: ProfileLookup

    def get_goal(self, user_id: UUID) -> DailyGoal:
        """Return the stored goal without creating one."""
        goal = self.repository.get_goal(user_id)
        if goal is None:
            raise NotFoundError("Daily goal not found")
        return goal

    def create_goal(
        self,
        user_id: UUID,
        goal_type: GoalType,
        targets: GoalTargets | None = None,
        *,
        auto_calculate: bool = True,
    ) -> DailyGoal:
        """Create a goal from the profile or from manual targets."""
        if self.repository.get_goal(user_id) is not None:
            raise ConflictError("Daily goal already exists. Use PUT to update.")
        if auto_calculate or targets is None:
            targets = self._derive(user_id, goal_type)
            auto_calculate = True
        else:
            _check_targets(targets)
        goal = self.repository.create_goal(
            DailyGoal(
                user_id=user_id,
                goal_type=goal_type,
                targets=targets,
                is_auto_calculated=auto_calculate,
                updated_at=datetime.now(tz=UTC),
            )
        )
        _logger.info(
            "Created daily goal",
            extra={
                "user_id": str(user_id),
                "goal_type": goal_type.value,
                "auto": auto_calculate,
            },
        )
        return goal

    def ensure_goal(
        self, user_id: UUID, goal_type: GoalType = GoalType.MAINTAIN
    ) -> DailyGoal:
        """Return the existing goal or derive and store one from the profile."""
        existing = self.repository.get_goal(user_id)
        if existing is not None:
            return existing
        try:
            return self.create_goal(user_id, goal_type)
        except ConflictError:
            # Lost a race with a concurrent creation for the same user.
            stored = self.repository.get_goal(user_id)
            if stored is None:
                raise
            return stored

    def update_goal(
        self,
        user_id: UUID,
        changes: dict[str, object],
        *,
        recalculate: bool = False,
    ) -> DailyGoal:
        """Apply manual target overrides or recalculate from the profile."""
        current = self.get_goal(user_id)
        goal_type = changes.get("goal_type", current.goal_type)
        if not isinstance(goal_type, GoalType):
            raise ValidationError("goal_type must be a GoalType")
        if recalculate:
            updated = replace(
                current,
                goal_type=goal_type,
                targets=self._derive(user_id, goal_type),
                is_auto_calculated=True,
                updated_at=datetime.now(tz=UTC),
            )
        else:
            target_changes = {
                key: changes[key]
                for key in _TARGET_FIELDS
                if changes.get(key) is not None
            }
            type_changed = goal_type is not current.goal_type
            auto = current.is_auto_calculated and not target_changes
            if auto and type_changed:
                targets = self._derive(user_id, goal_type)
            else:
                targets = replace(current.targets, **target_changes)
                _check_targets(targets)
            updated = replace(
                current,
                goal_type=goal_type,
                targets=targets,
                is_auto_calculated=auto,
                updated_at=datetime.now(tz=UTC),
            )
        return self.repository.update_goal(updated)

    def delete_goal(self, user_id: UUID) -> None:
        self.get_goal(user_id)
        self.repository.delete_goal(user_id)

    def preview_goal(self, user_id: UUID, goal_type: GoalType) -> GoalTargets:
        """Calculate targets from the profile without saving them."""
        return self._derive(user_id, goal_type)

    def _derive(self, user_id: UUID, goal_type: GoalType) -> GoalTargets:
        profile = self.profiles.get_profile(user_id)
        if profile is None:
            raise ValidationError(
                "Profile required to calculate daily goals. "
                "Please complete your profile first."
            )
        targets = calculate_for_profile(profile, goal_type)
        if any(getattr(targets, field) < 0 for field in _TARGET_FIELDS):
            raise ValidationError(
                "Calculated daily goals are negative for this profile. "
                "Please set targets manually."
            )
        return targets


def _check_targets(targets: GoalTargets) -> None:
    for field in _TARGET_FIELDS:
        value = getattr(targets, field)
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise ValidationError(f"{field} must be a number")
        if value < 0:
            raise ValidationError(f"{field} must be >= 0")
