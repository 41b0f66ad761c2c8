"""Assistant chat and product recommendation endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from nutriscan.api.dependencies import current_user, get_container
from nutriscan.api.schemas import (
    ChatRequest,
    NutritionQuestionRequest,
    RecommendationRequest,
)
from nutriscan.containers import AppContainer
from nutriscan.domain.assistant import ChatMessage
from nutriscan.domain.models import UserRecord
from nutriscan.services.assistant import parse_chat_context

router = APIRouter(prefix="/api/assistant", tags=["assistant"])
recommendations_router = APIRouter(prefix="/api/recommendations", tags=["assistant"])


@router.post("/chat")
async def chat(
    body: ChatRequest,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Answer a chat message with the user's personalization context."""
    context = parse_chat_context(body.context)
    reply = await container.assistant_service.chat(
        user,
        body.message,
        context,
        [
            ChatMessage(text=message.text, is_user=message.is_user)
            for message in body.conversation_history
        ],
    )
    return {
        "response": reply.text,
        "context": context.value,
        "isFallback": reply.is_fallback,
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }


@router.post("/nutrition-question")
async def nutrition_question(
    body: NutritionQuestionRequest,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    reply = await container.assistant_service.nutrition_question(
        user, body.question, body.product_data
    )
    return {
        "response": reply.text,
        "type": "nutrition_advice",
        "isFallback": reply.is_fallback,
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }


@recommendations_router.post("/generate", dependencies=[Depends(current_user)])
async def generate_recommendations(
    body: RecommendationRequest, container: AppContainer = Depends(get_container)
) -> dict[str, object]:
    """Return a health score, insights and alternatives for a product."""
    result = await container.assistant_service.recommend(
        body.product_data, body.user_preferences
    )
    payload: dict[str, object] = {
        "data": result.recommendation.model_dump(by_alias=True),
        "source": result.source,
    }
    if result.warning:
        payload["warning"] = result.warning
    return payload
