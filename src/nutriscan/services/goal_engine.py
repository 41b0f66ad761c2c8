"""Daily calorie and macro target calculation.

BMR follows Mifflin-St Jeor, TDEE scales it by an activity multiplier, the
goal shifts it by a fixed 500 kcal, and macros are split with protein and
fat as fixed shares of the calorie target while carbs absorb the rest.
"""

import math
from dataclasses import dataclass

from nutriscan.domain.errors import GoalValidationError
from nutriscan.domain.goals import GoalTargets, GoalType
from nutriscan.domain.profiles import Profile
from nutriscan.services.numbers import round_int

ACTIVITY_MULTIPLIERS: dict[str, float] = {
    "sedentary": 1.2,
    "lightly_active": 1.375,
    "moderately_active": 1.55,
    "very_active": 1.725,
    "extra_active": 1.9,
}
DEFAULT_ACTIVITY_MULTIPLIER = 1.2

GOAL_CALORIE_DELTA = 500

PROTEIN_SHARE_LOSE = 0.30
PROTEIN_SHARE_DEFAULT = 0.25
FAT_SHARE = 0.25

KCAL_PER_G_PROTEIN = 4
KCAL_PER_G_CARBS = 4
KCAL_PER_G_FAT = 9

_LEGACY_GOAL_TYPES: dict[str, GoalType] = {
    "lose": GoalType.LOSE,
    "lose_weight": GoalType.LOSE,
    "weight_loss": GoalType.LOSE,
    "loss": GoalType.LOSE,
    "maintain": GoalType.MAINTAIN,
    "maintain_weight": GoalType.MAINTAIN,
    "maintenance": GoalType.MAINTAIN,
    "gain": GoalType.GAIN,
    "gain_weight": GoalType.GAIN,
    "weight_gain": GoalType.GAIN,
}


@dataclass(frozen=True)
class Biometrics:
    """Validated biometric inputs for the calculation."""

    age: float
    sex: str
    height_cm: float
    weight_kg: float
    activity_level: str


def parse_goal_type(value: str | GoalType | None) -> GoalType:
    """Translate a goal type, including legacy spellings, to the canonical enum."""
    if value is None:
        return GoalType.MAINTAIN
    if isinstance(value, GoalType):
        return value
    goal_type = _LEGACY_GOAL_TYPES.get(str(value).strip().lower())
    if goal_type is None:
        raise GoalValidationError(f"Unknown goal type: {value!r}")
    return goal_type


def validate_biometrics(  # noqa: PLR0913
    age: object,
    sex: object,
    height_cm: object,
    weight_kg: object,
    activity_level: object,
) -> Biometrics:
    """Return validated biometrics or raise GoalValidationError."""
    if sex is None or not str(sex).strip():
        raise GoalValidationError("Missing required field: gender")
    return Biometrics(
        age=_require_number("age", age),
        sex=str(sex).strip().lower(),
        height_cm=_require_number("height", height_cm),
        weight_kg=_require_number("weight", weight_kg),
        activity_level="" if activity_level is None else str(activity_level),
    )


def basal_metabolic_rate(biometrics: Biometrics) -> float:
    base = (
        10 * biometrics.weight_kg + 6.25 * biometrics.height_cm - 5 * biometrics.age
    )
    if biometrics.sex == "male":
        return base + 5
    return base - 161


def activity_multiplier(activity_level: str | None) -> float:
    """Return the multiplier for an activity level, 1.2 when unrecognised."""
    if activity_level is None:
        return DEFAULT_ACTIVITY_MULTIPLIER
    return ACTIVITY_MULTIPLIERS.get(str(activity_level), DEFAULT_ACTIVITY_MULTIPLIER)


def total_daily_energy_expenditure(biometrics: Biometrics) -> float:
    return basal_metabolic_rate(biometrics) * activity_multiplier(
        biometrics.activity_level
    )


def calorie_target(tdee: float, goal_type: GoalType) -> int:
    if goal_type is GoalType.LOSE:
        return round_int(tdee - GOAL_CALORIE_DELTA)
    if goal_type is GoalType.GAIN:
        return round_int(tdee + GOAL_CALORIE_DELTA)
    return round_int(tdee)


def split_macros(calories: int, goal_type: GoalType) -> GoalTargets:
    """Split a calorie target into protein, fat and carb grams."""
    protein_share = (
        PROTEIN_SHARE_LOSE if goal_type is GoalType.LOSE else PROTEIN_SHARE_DEFAULT
    )
    protein_g = round_int(calories * protein_share / KCAL_PER_G_PROTEIN)
    fat_g = round_int(calories * FAT_SHARE / KCAL_PER_G_FAT)
    remaining = calories - protein_g * KCAL_PER_G_PROTEIN - fat_g * KCAL_PER_G_FAT
    carbs_g = round_int(remaining / KCAL_PER_G_CARBS)
    return GoalTargets(
        calories=calories, protein_g=protein_g, carbs_g=carbs_g, fat_g=fat_g
    )


def calculate_targets(biometrics: Biometrics, goal_type: GoalType) -> GoalTargets:
    """Compute daily calorie and macro targets."""
    tdee = total_daily_energy_expenditure(biometrics)
    return split_macros(calorie_target(tdee, goal_type), goal_type)


def calculate_for_profile(profile: Profile, goal_type: GoalType) -> GoalTargets:
    """Compute targets from a stored profile."""
    biometrics = validate_biometrics(
        age=profile.age,
        sex=profile.sex,
        height_cm=profile.height_cm,
        weight_kg=profile.weight_kg,
        activity_level=profile.activity_level,
    )
    return calculate_targets(biometrics, goal_type)


def _require_number(field: str, value: object) -> float:
    if value is None or isinstance(value, bool):
        raise GoalValidationError(f"Missing or non-numeric field: {field}")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise GoalValidationError(f"Missing or non-numeric field: {field}") from exc
    if not math.isfinite(number):
        raise GoalValidationError(f"Missing or non-numeric field: {field}")
    return number
