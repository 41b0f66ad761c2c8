"""Request bodies accepted by the HTTP API."""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nutriscan.domain.assistant import ProductInfo


class CamelModel(BaseModel):
    """Base model reading camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(CamelModel):
    token: str


class ProfileCreateRequest(CamelModel):
    age: int
    gender: str
    height: float
    weight: float
    activity_level: str
    goal_type: str | None = None


class ProfileUpdateRequest(CamelModel):
    age: int | None = None
    gender: str | None = None
    height: float | None = None
    weight: float | None = None
    activity_level: str | None = None

    def changes(self) -> dict[str, object]:
        return {
            "age": self.age,
            "sex": self.gender,
            "height_cm": self.height,
            "weight_kg": self.weight,
            "activity_level": self.activity_level,
        }


class GoalTargetsFields(CamelModel):
    target_calories: int | None = Field(default=None, ge=0)
    target_protein: float | None = Field(default=None, ge=0)
    target_carbs: float | None = Field(default=None, ge=0)
    target_fat: float | None = Field(default=None, ge=0)

    def target_changes(self) -> dict[str, object]:
        values = {
            "calories": self.target_calories,
            "protein_g": self.target_protein,
            "carbs_g": self.target_carbs,
            "fat_g": self.target_fat,
        }
        return {key: value for key, value in values.items() if value is not None}


class GoalCreateRequest(GoalTargetsFields):
    goal_type: str | None = None
    auto_calculate: bool = True


class GoalUpdateRequest(GoalTargetsFields):
    goal_type: str | None = None
    recalculate: bool = False


class GoalEnsureRequest(CamelModel):
    goal_type: str | None = None


class GoalCalculateRequest(CamelModel):
    """Biometrics for a stateless calculation; validated by the engine."""

    age: Any = None
    gender: Any = None
    height: Any = None
    weight: Any = None
    activity_level: Any = None
    goal_type: str | None = None


class FoodFields(CamelModel):
    name: str | None = None
    brand: str | None = None
    calories_per_100g: float | None = Field(default=None, alias="caloriesPer100g")
    proteins_per_100g: float | None = Field(default=None, alias="proteinsPer100g")
    carbs_per_100g: float | None = Field(default=None, alias="carbsPer100g")
    fats_per_100g: float | None = Field(default=None, alias="fatsPer100g")
    sugars_per_100g: float | None = Field(default=None, alias="sugarsPer100g")
    fiber_per_100g: float | None = Field(default=None, alias="fiberPer100g")
    sodium_per_100g: float | None = Field(default=None, alias="sodiumPer100g")
    serving_size: float | None = None
    image_url: str | None = None

    def payload(self) -> dict[str, object]:
        values = {
            "name": self.name,
            "brand": self.brand,
            "calories": self.calories_per_100g,
            "protein_g": self.proteins_per_100g,
            "carbs_g": self.carbs_per_100g,
            "fat_g": self.fats_per_100g,
            "sugar_g": self.sugars_per_100g,
            "fiber_g": self.fiber_per_100g,
            "sodium_g": self.sodium_per_100g,
            "serving_size_g": self.serving_size,
            "image_url": self.image_url,
        }
        return {key: value for key, value in values.items() if value is not None}


class FoodCreateRequest(FoodFields):
    barcode: str
    fetch_from_open_food_facts: bool = False


class NutrientOverrides(CamelModel):
    calories_consumed: float | None = None
    proteins_consumed: float | None = None
    carbs_consumed: float | None = None
    fats_consumed: float | None = None
    sugars_consumed: float | None = None

    def overrides(self) -> dict[str, object]:
        values = {
            "calories": self.calories_consumed,
            "protein_g": self.proteins_consumed,
            "carbs_g": self.carbs_consumed,
            "fat_g": self.fats_consumed,
            "sugar_g": self.sugars_consumed,
        }
        return {key: value for key, value in values.items() if value is not None}


class LogCreateRequest(NutrientOverrides):
    barcode: str
    amount_consumed: float
    log_date: date | None = Field(default=None, alias="date")
    auto_calculate: bool = True


class LogScanRequest(CamelModel):
    barcode: str
    amount_consumed: float = 100.0


class LogUpdateRequest(NutrientOverrides):
    amount_consumed: float | None = None
    log_date: date | None = Field(default=None, alias="date")
    auto_calculate: bool = True


class HistoryMessage(CamelModel):
    text: str
    is_user: bool


class ChatRequest(CamelModel):
    message: str
    context: str | None = None
    conversation_history: list[HistoryMessage] = Field(default_factory=list)


class NutritionQuestionRequest(CamelModel):
    question: str
    product_data: ProductInfo | None = None


class RecommendationRequest(CamelModel):
    product_data: ProductInfo
    user_preferences: dict[str, Any] | None = None
