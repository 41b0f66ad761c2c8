"""Domain models for biometric profiles."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

UNDERWEIGHT_BMI = 18.5
OVERWEIGHT_BMI = 25.0
OBESE_BMI = 30.0


class Sex(StrEnum):
    """Biological sex category used by the BMR formula."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(StrEnum):
    """Supported activity levels."""

    SEDENTARY = "sedentary"
    LIGHTLY_ACTIVE = "lightly_active"
    MODERATELY_ACTIVE = "moderately_active"
    VERY_ACTIVE = "very_active"
    EXTRA_ACTIVE = "extra_active"


@dataclass(frozen=True)
class Profile:
    """Biometric profile owned by a single user."""

    user_id: UUID
    age: int
    sex: str
    height_cm: float
    weight_kg: float
    bmi: float
    activity_level: str
    updated_at: datetime | None = None

    @property
    def bmi_category(self) -> str:
        return bmi_category(self.bmi)


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    """Return BMI rounded to one decimal place."""
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 1)


def bmi_category(bmi: float) -> str:
    if bmi < UNDERWEIGHT_BMI:
        return "underweight"
    if bmi < OVERWEIGHT_BMI:
        return "normal"
    if bmi < OBESE_BMI:
        return "overweight"
    return "obese"
