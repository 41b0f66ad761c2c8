"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutriscan.adapters.openai_completion_client import OpenAICompletionClient
from nutriscan.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient
from nutriscan.adapters.supabase_consumption_repository import (
    SupabaseConsumptionRepository,
)
from nutriscan.adapters.supabase_food_repository import SupabaseFoodRepository
from nutriscan.adapters.supabase_goal_repository import SupabaseGoalRepository
from nutriscan.adapters.supabase_identity_verifier import SupabaseIdentityVerifier
from nutriscan.adapters.supabase_profile_repository import SupabaseProfileRepository
from nutriscan.adapters.supabase_user_repository import SupabaseUserRepository
from nutriscan.config import Settings
from nutriscan.services.assistant import AssistantService
from nutriscan.services.consumption import ConsumptionLogService
from nutriscan.services.context import PersonalizationContextService
from nutriscan.services.foods import FoodService
from nutriscan.services.goals import GoalService
from nutriscan.services.profiles import ProfileService
from nutriscan.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    user_service: UserService
    profile_service: ProfileService
    goal_service: GoalService
    food_service: FoodService
    consumption_service: ConsumptionLogService
    context_service: PersonalizationContextService
    assistant_service: AssistantService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    user_repository = SupabaseUserRepository(supabase_client)
    profile_repository = SupabaseProfileRepository(supabase_client)
    goal_repository = SupabaseGoalRepository(supabase_client)
    food_repository = SupabaseFoodRepository(supabase_client)
    consumption_repository = SupabaseConsumptionRepository(supabase_client)

    user_service = UserService(
        repository=user_repository,
        identity_verifier=SupabaseIdentityVerifier(supabase_client),
    )
    goal_service = GoalService(repository=goal_repository, profiles=profile_repository)
    profile_service = ProfileService(
        repository=profile_repository, goal_service=goal_service
    )
    product_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.openfoodfacts_base_url,
        user_agent=resolved_settings.openfoodfacts_user_agent,
    )
    food_service = FoodService(
        repository=food_repository,
        product_client=product_client,
        retry_attempts=resolved_settings.openfoodfacts_retry_attempts,
    )
    consumption_service = ConsumptionLogService(
        repository=consumption_repository,
        food_service=food_service,
        goals=goal_repository,
        timezone=resolved_settings.timezone,
    )
    context_service = PersonalizationContextService(
        profiles=profile_repository,
        goals=goal_repository,
        logs=consumption_repository,
        timezone=resolved_settings.timezone,
    )
    completion_client = OpenAICompletionClient.create(
        resolved_settings.openai_api_key,
        timeout_seconds=resolved_settings.openai_timeout_seconds,
    )
    assistant_service = AssistantService(
        client=completion_client,
        context_builder=context_service,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )

    async def close_resources() -> None:
        await product_client.close()
        await completion_client.close()

    return AppContainer(
        settings=resolved_settings,
        user_service=user_service,
        profile_service=profile_service,
        goal_service=goal_service,
        food_service=food_service,
        consumption_service=consumption_service,
        context_service=context_service,
        assistant_service=assistant_service,
        close_resources=close_resources,
    )
