"""Models for assistant replies and product recommendations."""

from dataclasses import dataclass

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class ChatMessage:
    """Single message from a previous conversation turn."""

    text: str
    is_user: bool


@dataclass(frozen=True)
class AssistantReply:
    """Reply returned to the caller."""

    text: str
    is_fallback: bool = False


class AlternativeNutrition(BaseModel):
    """Nutrition estimate for an alternative product."""

    calories: float = 0
    fat: float = 0
    carbs: float = 0
    protein: float = 0
    sugar: float = 0
    fiber: float = 0
    sodium: float = 0


class Alternative(BaseModel):
    """Healthier alternative to a scanned product."""

    name: str
    brand: str | None = None
    nutrition: AlternativeNutrition = Field(default_factory=AlternativeNutrition)
    health_score: int = Field(default=50, ge=1, le=100, alias="healthScore")
    why_better: list[str] = Field(default_factory=list, alias="whyBetter")
    available_at: list[str] = Field(default_factory=list, alias="availableAt")

    model_config = {"populate_by_name": True}


class HealthInsights(BaseModel):
    """Positive aspects, concerns and tips for a product."""

    positive: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class Recommendation(BaseModel):
    """Structured health analysis for a product."""

    health_score: int = Field(ge=1, le=100, alias="healthScore")
    health_insights: HealthInsights = Field(alias="healthInsights")
    alternatives: list[Alternative] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class ProductNutrition(BaseModel):
    """Per-100g nutrition sent by the client for a product."""

    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    sugar: float | None = None
    fiber: float | None = None
    sodium: float | None = None


class ProductInfo(BaseModel):
    """Product details a question or recommendation refers to."""

    name: str | None = None
    brand: str | None = None
    barcode: str | None = None
    nutrition: ProductNutrition = Field(default_factory=ProductNutrition)
    ingredients: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
