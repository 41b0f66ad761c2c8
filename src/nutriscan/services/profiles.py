"""Profile lifecycle service."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from nutriscan.domain.errors import ConflictError, NotFoundError, ValidationError
from nutriscan.domain.goals import DailyGoal, GoalType
from nutriscan.domain.profiles import ActivityLevel, Profile, Sex, calculate_bmi
from nutriscan.services.goals import GoalService

_logger = logging.getLogger(__name__)

AGE_RANGE = (1, 120)
HEIGHT_RANGE_CM = (30.0, 300.0)
WEIGHT_RANGE_KG = (20.0, 500.0)
_UPDATABLE_FIELDS = ("age", "sex", "height_cm", "weight_kg", "activity_level")


class ProfileRepository(Protocol):
    """Persistence interface for profiles."""

    def get_profile(self, user_id: UUID) -> Profile | None:
        """Return the user's profile, if present."""

    def create_profile(self, profile: Profile) -> Profile:
        """Insert a profile; raise ConflictError when one already exists."""

    def update_profile(self, profile: Profile) -> Profile:
        """Persist changes to an existing profile."""

    def delete_profile(self, user_id: UUID) -> None:
        """Delete the user's profile."""


@dataclass(frozen=True)
class ProfileCreation:
    """Result of onboarding: the profile and, when derivable, its goal."""

    profile: Profile
    goal: DailyGoal | None
    warning: str | None = None


@dataclass
class ProfileService:
    """Application service for biometric profiles."""

    repository: ProfileRepository
    goal_service: GoalService

    def has_profile(self, user_id: UUID) -> bool:
        return self.repository.get_profile(user_id) is not None

    def create_profile(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        age: int,
        sex: str,
        height_cm: float,
        weight_kg: float,
        activity_level: str,
        goal_type: GoalType = GoalType.MAINTAIN,
    ) -> ProfileCreation:
        """Create a profile and make sure a matching daily goal exists."""
        if self.repository.get_profile(user_id) is not None:
            raise ConflictError("Profile already exists. Use PUT to update.")
        profile = _build_profile(
            user_id,
            age=age,
            sex=sex,
            height_cm=height_cm,
            weight_kg=weight_kg,
            activity_level=activity_level,
        )
        created = self.repository.create_profile(profile)
        _logger.info(
            "Created profile", extra={"user_id": str(user_id), "bmi": created.bmi}
        )

        try:
            goal = self.goal_service.ensure_goal(user_id, goal_type)
        except Exception:
            _logger.exception(
                "Failed to create daily goal after onboarding",
                extra={"user_id": str(user_id)},
            )
            return ProfileCreation(
                profile=created,
                goal=None,
                warning=(
                    "Daily goals could not be created automatically "
                    "but can be created later."
                ),
            )
        return ProfileCreation(profile=created, goal=goal)

    def get_profile(self, user_id: UUID) -> Profile:
        profile = self.repository.get_profile(user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    def update_profile(self, user_id: UUID, changes: dict[str, object]) -> Profile:
        """Apply a partial update; BMI follows height and weight."""
        current = self.get_profile(user_id)
        values = {
            field: changes[field]
            for field in _UPDATABLE_FIELDS
            if changes.get(field) is not None
        }
        merged = replace(current, **values)
        updated = _build_profile(
            user_id,
            age=merged.age,
            sex=merged.sex,
            height_cm=merged.height_cm,
            weight_kg=merged.weight_kg,
            activity_level=merged.activity_level,
        )
        return self.repository.update_profile(updated)

    def delete_profile(self, user_id: UUID) -> None:
        self.get_profile(user_id)
        self.repository.delete_profile(user_id)


def _build_profile(  # noqa: PLR0913
    user_id: UUID,
    *,
    age: object,
    sex: object,
    height_cm: object,
    weight_kg: object,
    activity_level: object,
) -> Profile:
    age_value = int(_in_range("age", age, AGE_RANGE))
    height = _in_range("height", height_cm, HEIGHT_RANGE_CM)
    weight = _in_range("weight", weight_kg, WEIGHT_RANGE_KG)
    try:
        sex_value = Sex(str(sex))
    except ValueError as exc:
        raise ValidationError(f"Invalid gender: {sex!r}") from exc
    try:
        activity = ActivityLevel(str(activity_level))
    except ValueError as exc:
        raise ValidationError(f"Invalid activity level: {activity_level!r}") from exc
    return Profile(
        user_id=user_id,
        age=age_value,
        sex=sex_value.value,
        height_cm=height,
        weight_kg=weight,
        bmi=calculate_bmi(weight, height),
        activity_level=activity.value,
        updated_at=datetime.now(tz=UTC),
    )


def _in_range(field: str, value: object, bounds: tuple[float, float]) -> float:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"Missing required field: {field}")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a number") from exc
    low, high = bounds
    if not low <= number <= high:
        raise ValidationError(f"{field} must be between {low:g} and {high:g}")
    return number
