"""Nutrition assistant backed by an LLM completion client."""

import json
import logging
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from nutriscan.domain.assistant import (
    Alternative,
    AlternativeNutrition,
    AssistantReply,
    ChatMessage,
    HealthInsights,
    ProductInfo,
    Recommendation,
)
from nutriscan.domain.errors import ValidationError
from nutriscan.domain.models import UserRecord
from nutriscan.services.numbers import format_number

_logger = logging.getLogger(__name__)

HISTORY_LIMIT = 6
MAX_REPLY_LENGTH = 400
TRUNCATED_REPLY_LENGTH = 380
MIN_HEALTH_SCORE = 20
MAX_HEALTH_SCORE = 95

EMPTY_REPLY = "I'm sorry, I couldn't generate a response. Please try again."
BLANK_REPLY = (
    "I'm here to help with your nutrition questions! What would you like to know?"
)
NUTRITION_QUESTION_FALLBACK = (
    "I'm having trouble accessing nutritional information right now. "
    "Please try asking your question again, or consult with a registered "
    "dietitian for personalized advice."
)

_ROLE_PREFIX = re.compile(r"^(AI Assistant:|Assistant:|Bot:)", re.IGNORECASE)
_AI_PREFIX = re.compile(r"^AI:\s*", re.IGNORECASE)
_CODE_FENCE = re.compile(r"```(?:json)?\n?")


class ChatContext(StrEnum):
    """Conversation styles offered by the assistant."""

    NUTRITION_ASSISTANT = "nutrition_assistant"
    GENERAL = "general"
    FOOD_ANALYSIS = "food_analysis"


SYSTEM_PROMPTS: dict[ChatContext, str] = {
    ChatContext.NUTRITION_ASSISTANT: """\
You are a ultra-concise nutrition assistant for NutriScan.

Rules:
- Max 80 words per response
- Write in short, clear sentences
- Be direct, no fluff
- Give 1-3 actionable tips only
- Skip introductions/conclusions
- NO bullet points or lists

IMPORTANT: If user data shows profile is incomplete or goals are not set, \
tell them to complete their profile setup first. Don't mention specific \
calorie numbers if their profile is incomplete. Be consistent with the data \
you have.

Answer briefly and practically in paragraph form.""",
    ChatContext.GENERAL: (
        "You are an ultra-concise AI assistant for NutriScan. Max 80 words. "
        "Write in short sentences, no bullets or lists. Be direct and give "
        "actionable tips in paragraph form."
    ),
    ChatContext.FOOD_ANALYSIS: (
        "You are a food analysis expert. Max 80 words. Write in short "
        "sentences, no bullets. Be direct and specific about nutrition facts "
        "in paragraph form."
    ),
}

FALLBACK_REPLIES: dict[ChatContext, str] = {
    ChatContext.NUTRITION_ASSISTANT: (
        "I'm having trouble connecting to my nutrition database right now. "
        "However, I'd be happy to help you with general nutrition questions! "
        "Feel free to ask about calories, macronutrients, or healthy eating tips."
    ),
    ChatContext.FOOD_ANALYSIS: (
        "I'm temporarily unable to analyze food data, but I can still provide "
        "general nutrition guidance. What specific questions do you have about "
        "food and nutrition?"
    ),
    ChatContext.GENERAL: (
        "I'm experiencing some technical difficulties, but I'm still here to "
        "help with your nutrition and health questions. What would you like "
        "to know?"
    ),
}

RECOMMENDATION_PROMPT = """\
Analyze the following food product and provide comprehensive health recommendations:

Product Information:
- Name: {name}
- Brand: {brand}
- Barcode: {barcode}

Nutrition per 100g:
- Calories: {calories}
- Carbohydrates: {carbs}g
- Protein: {protein}g
- Fat: {fat}g
- Sugar: {sugar}g
- Fiber: {fiber}g (estimated if not provided)
- Sodium: {sodium}mg (estimated if not provided)
{extras}
User Preferences:
{preferences}

Return ONLY a JSON object with this shape:
{{
  "healthScore": 1-100 where 100 is healthiest,
  "healthInsights": {{
    "positive": ["2-4 positive nutritional aspects"],
    "concerns": ["2-4 health concerns or areas for improvement"],
    "recommendations": ["3-4 specific recommendations for healthy consumption"]
  }},
  "alternatives": [
    {{
      "name": "Specific product name",
      "brand": "Brand name",
      "nutrition": {{"calories": 0, "fat": 0, "carbs": 0, "protein": 0,
                     "sugar": 0, "fiber": 0, "sodium": 0}},
      "healthScore": 1-100,
      "whyBetter": ["2-3 reasons why this alternative is healthier"],
      "availableAt": ["2-3 common stores"]
    }}
  ]
}}

Guidelines:
1. Health score should weigh calories, sugar, protein, fiber, sodium, processing
2. Provide 3 realistic alternative products that are commonly available
3. Make recommendations specific to the product type
4. Consider portion sizes and realistic consumption patterns
5. Return ONLY the JSON object, no additional text or formatting"""


class CompletionClient(Protocol):
    """Interface for LLM text completion."""

    async def complete(
        self, *, model: str, reasoning_effort: str | None, store: bool, prompt: str
    ) -> str:
        """Return the generated text for a prompt."""


class ContextBuilder(Protocol):
    def build_context(self, user: UserRecord) -> str: ...


@dataclass(frozen=True)
class RecommendationResult:
    """Recommendation plus where it came from."""

    recommendation: Recommendation
    source: str
    warning: str | None = None


@dataclass
class AssistantService:
    """Builds prompts, calls the completion client and cleans replies."""

    client: CompletionClient
    context_builder: ContextBuilder
    model: str
    reasoning_effort: str | None = None
    store: bool = False

    async def chat(
        self,
        user: UserRecord,
        message: str,
        context: ChatContext = ChatContext.GENERAL,
        history: list[ChatMessage] | None = None,
    ) -> AssistantReply:
        """Answer a chat message; upstream failures yield a canned reply."""
        if not message or not message.strip():
            raise ValidationError("Message is required")
        personalization = self.context_builder.build_context(user)
        prompt = (
            f"{SYSTEM_PROMPTS[context]}\n\n"
            f"{personalization}\n\n"
            f"{render_history(history or [])}\n\n"
            f"User: {message}\n\n"
            "AI Assistant: "
        )
        try:
            text = await self._complete(prompt)
        except Exception:
            _logger.exception(
                "Chat completion failed",
                extra={"user_id": str(user.id), "context": context.value},
            )
            return AssistantReply(text=FALLBACK_REPLIES[context], is_fallback=True)
        return AssistantReply(text=clean_reply(text))

    async def nutrition_question(
        self, user: UserRecord, question: str, product: ProductInfo | None = None
    ) -> AssistantReply:
        if not question or not question.strip():
            raise ValidationError("Question is required")
        personalization = self.context_builder.build_context(user)
        prompt = build_nutrition_prompt(question, product, personalization)
        try:
            text = await self._complete(prompt)
        except Exception:
            _logger.exception(
                "Nutrition question completion failed",
                extra={"user_id": str(user.id)},
            )
            return AssistantReply(text=NUTRITION_QUESTION_FALLBACK, is_fallback=True)
        return AssistantReply(text=clean_reply(text))

    async def recommend(
        self, product: ProductInfo, preferences: dict[str, object] | None = None
    ) -> RecommendationResult:
        """Return a health analysis, falling back to a heuristic one."""
        prompt = build_recommendation_prompt(product, preferences)
        try:
            text = await self._complete(prompt)
        except Exception:
            _logger.exception("Recommendation completion failed")
            return RecommendationResult(
                recommendation=fallback_recommendation(product),
                source="fallback",
                warning="AI service unavailable, using fallback recommendations",
            )
        try:
            recommendation = parse_recommendation(text)
        except (ValueError, PydanticValidationError):
            _logger.warning("Could not parse recommendation output", exc_info=True)
            return RecommendationResult(
                recommendation=fallback_recommendation(product), source="fallback"
            )
        return RecommendationResult(recommendation=recommendation, source="openai")

    async def _complete(self, prompt: str) -> str:
        return await self.client.complete(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            prompt=prompt,
        )


def parse_chat_context(value: str | None) -> ChatContext:
    """Map a requested conversation style, defaulting to general."""
    try:
        return ChatContext(value or ChatContext.GENERAL)
    except ValueError:
        return ChatContext.GENERAL


def render_history(history: list[ChatMessage]) -> str:
    if not history:
        return "This is the start of a new conversation."
    lines = [
        f"{'User' if message.is_user else 'Assistant'}: {message.text}"
        for message in history[-HISTORY_LIMIT:]
    ]
    return "Previous conversation context:\n" + "\n".join(lines) + "\n\n---"


def clean_reply(text: str | None) -> str:
    """Strip role prefixes and cap the reply length."""
    if not text:
        return EMPTY_REPLY
    cleaned = _AI_PREFIX.sub("", _ROLE_PREFIX.sub("", text)).strip()
    if not cleaned:
        return BLANK_REPLY
    if len(cleaned) > MAX_REPLY_LENGTH:
        cleaned = cleaned[:TRUNCATED_REPLY_LENGTH] + "..."
    return cleaned


def build_nutrition_prompt(
    question: str, product: ProductInfo | None, personalization: str
) -> str:
    parts = [
        "You are a nutrition expert helping a user with their specific question "
        f"about food and nutrition.\n\nUser Question: {question}"
    ]
    if product is not None:
        nutrition = product.nutrition
        parts.append(
            "Product Context:\n"
            f"- Name: {product.name or 'Unknown'}\n"
            f"- Brand: {product.brand or 'Unknown'}\n"
            f"- Calories per 100g: {_or_unknown(nutrition.calories)}\n"
            f"- Protein: {_or_unknown(nutrition.protein)}g\n"
            f"- Carbs: {_or_unknown(nutrition.carbs)}g\n"
            f"- Fat: {_or_unknown(nutrition.fat)}g\n"
            f"- Sugar: {_or_unknown(nutrition.sugar)}g"
        )
    parts.append(personalization)
    parts.append(
        "Please provide a helpful, accurate, and highly personalized response that:\n"
        "- Addresses their specific question\n"
        "- References their current nutrition progress and goals\n"
        "- Considers their eating patterns and preferences\n"
        "- Provides actionable advice based on their profile\n"
        "- Is encouraging and supportive of their health journey\n"
        "- Keeps the response conversational and practical"
    )
    return "\n\n".join(parts)


def build_recommendation_prompt(
    product: ProductInfo, preferences: dict[str, object] | None
) -> str:
    nutrition = product.nutrition
    extras = ""
    if product.ingredients:
        extras += f"\nIngredients: {', '.join(product.ingredients)}\n"
    if product.categories:
        extras += f"\nCategories: {', '.join(product.categories)}\n"
    return RECOMMENDATION_PROMPT.format(
        name=product.name or "Unknown Product",
        brand=product.brand or "Unknown Brand",
        barcode=product.barcode or "N/A",
        calories=format_number(nutrition.calories or 0),
        carbs=format_number(nutrition.carbs or 0),
        protein=format_number(nutrition.protein or 0),
        fat=format_number(nutrition.fat or 0),
        sugar=format_number(nutrition.sugar or 0),
        fiber=format_number(nutrition.fiber or 2),
        sodium=format_number(nutrition.sodium or 200),
        extras=extras,
        preferences=(
            json.dumps(preferences, sort_keys=True)
            if preferences
            else "No specific preferences provided"
        ),
    )


def parse_recommendation(text: str) -> Recommendation:
    """Parse model output, tolerating markdown code fences."""
    payload = json.loads(_CODE_FENCE.sub("", text).strip())
    return Recommendation.model_validate(payload)


def fallback_recommendation(product: ProductInfo) -> Recommendation:
    """Score a product with simple per-100g thresholds."""
    nutrition = product.nutrition
    calories = nutrition.calories or 0
    protein = nutrition.protein or 0
    carbs = nutrition.carbs or 0
    fat = nutrition.fat or 0
    sugar = nutrition.sugar or 0

    score = 70
    if sugar > 15:
        score -= 15
    if sugar < 5:
        score += 10
    if protein > 10:
        score += 10
    if fat > 20:
        score -= 10
    if calories < 100:
        score += 10
    if calories > 400:
        score -= 15
    score = max(MIN_HEALTH_SCORE, min(MAX_HEALTH_SCORE, score))

    positive = []
    if protein > 10:
        positive.append(
            f"Good protein content ({format_number(protein)}g per 100g)"
        )
    if calories < 200:
        positive.append("Relatively low in calories")
    if fat < 5:
        positive.append("Low fat content")
    if not positive:
        positive.append("Provides essential nutrients")

    concerns = []
    if sugar > 15:
        concerns.append(
            f"High sugar content ({format_number(sugar)}g per 100g)"
        )
    if calories > 400:
        concerns.append("High calorie density")
    if fat > 20:
        concerns.append(
            f"High fat content ({format_number(fat)}g per 100g)"
        )
    if not concerns:
        concerns.append("Monitor portion sizes for optimal health")

    tips = [
        "Consider portion control when consuming this product",
        "Balance with fiber-rich vegetables and fruits",
        "Stay hydrated and maintain regular physical activity",
        "Check nutrition labels for similar products to compare",
    ]

    alternatives = [
        Alternative(
            name="Organic Whole Grain Alternative",
            brand="Nature's Choice",
            nutrition=AlternativeNutrition(
                calories=max(100, calories - 50),
                fat=max(1, fat - 5),
                carbs=max(10, carbs - 10),
                protein=protein + 3,
                sugar=max(1, sugar - 8),
                fiber=6,
                sodium=150,
            ),
            health_score=min(MAX_HEALTH_SCORE, score + 15),
            why_better=[
                "Lower sugar content",
                "Higher fiber and protein",
                "Made with organic ingredients",
            ],
            available_at=["Whole Foods", "Target", "Local health stores"],
        ),
        Alternative(
            name="Plant-Based Protein Option",
            brand="GreenLife",
            nutrition=AlternativeNutrition(
                calories=max(120, calories - 30),
                fat=max(2, fat - 3),
                carbs=max(15, carbs - 5),
                protein=protein + 5,
                sugar=max(2, sugar - 10),
                fiber=8,
                sodium=180,
            ),
            health_score=min(MAX_HEALTH_SCORE, score + 18),
            why_better=[
                "Plant-based protein source",
                "Higher fiber content",
                "No artificial additives",
            ],
            available_at=["Trader Joe's", "Amazon", "Local grocery stores"],
        ),
        Alternative(
            name="Low-Sodium Heart-Healthy Version",
            brand="CardioWise",
            nutrition=AlternativeNutrition(
                calories=max(80, calories - 20),
                fat=max(1, fat - 4),
                carbs=carbs,
                protein=protein + 2,
                sugar=max(1, sugar - 5),
                fiber=4,
                sodium=80,
            ),
            health_score=min(MAX_HEALTH_SCORE, score + 12),
            why_better=[
                "Significantly less sodium",
                "Heart-healthy formulation",
                "Added beneficial nutrients",
            ],
            available_at=["CVS", "Walgreens", "Health food stores"],
        ),
    ]

    return Recommendation(
        health_score=score,
        health_insights=HealthInsights(
            positive=positive[:3], concerns=concerns[:3], recommendations=tips[:3]
        ),
        alternatives=alternatives,
    )


def _or_unknown(value: float | None) -> str:
    return format_number(value) if value else "Unknown"
