"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from uuid import UUID, uuid4

import pytest

from nutriscan.config import Settings
from nutriscan.containers import AppContainer
from nutriscan.domain.consumption import ConsumptionLogEntry, NutrientAmounts
from nutriscan.domain.errors import AuthenticationError, ConflictError
from nutriscan.domain.foods import (
    ExternalProduct,
    ExternalSearchResult,
    FoodItem,
    FoodSource,
    NutrientFacts,
)
from nutriscan.domain.goals import DailyGoal
from nutriscan.domain.models import Identity, UserRecord
from nutriscan.domain.profiles import Profile
from nutriscan.services.assistant import AssistantService, CompletionClient
from nutriscan.services.consumption import (
    ConsumptionLogService,
    ConsumptionRepository,
)
from nutriscan.services.context import PersonalizationContextService
from nutriscan.services.foods import (
    FoodRepository,
    FoodService,
    ProductDatabaseClient,
)
from nutriscan.services.goals import GoalRepository, GoalService
from nutriscan.services.profiles import ProfileRepository, ProfileService
from nutriscan.services.users import IdentityVerifier, UserRepository, UserService

VALID_TOKEN = "valid-token"


@dataclass
class FakeIdentityVerifier(IdentityVerifier):
    """Maps known tokens to identities; anything else is rejected."""

    identities: dict[str, Identity] = field(
        default_factory=lambda: {
            VALID_TOKEN: Identity(
                subject="auth-subject-1",
                email="ada@example.com",
                name="Ada",
                picture_url=None,
            )
        }
    )

    def verify(self, token: str) -> Identity:
        identity = self.identities.get(token)
        if identity is None:
            raise AuthenticationError("Invalid or expired token")
        return identity


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[str, UserRecord] = field(default_factory=dict)

    def get_by_subject(self, auth_subject: str) -> UserRecord | None:
        return self.users.get(auth_subject)

    def create_user(self, identity: Identity) -> UserRecord:
        user = UserRecord(
            id=uuid4(),
            auth_subject=identity.subject,
            email=identity.email,
            name=identity.name,
            picture_url=identity.picture_url,
        )
        self.users[identity.subject] = user
        return user

    def update_user(self, user_id: UUID, changes: dict[str, object]) -> UserRecord:
        for subject, user in self.users.items():
            if user.id == user_id:
                updated = replace(user, **changes)
                self.users[subject] = updated
                return updated
        raise RuntimeError("User not found")


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profiles: dict[UUID, Profile] = field(default_factory=dict)
    fail_reads: bool = False

    def get_profile(self, user_id: UUID) -> Profile | None:
        if self.fail_reads:
            raise RuntimeError("database unavailable")
        return self.profiles.get(user_id)

    def create_profile(self, profile: Profile) -> Profile:
        if profile.user_id in self.profiles:
            raise ConflictError("Profile already exists. Use PUT to update.")
        self.profiles[profile.user_id] = profile
        return profile

    def update_profile(self, profile: Profile) -> Profile:
        self.profiles[profile.user_id] = profile
        return profile

    def delete_profile(self, user_id: UUID) -> None:
        self.profiles.pop(user_id, None)


@dataclass
class InMemoryGoalRepository(GoalRepository):
    """In-memory daily goal repository for tests."""

    goals: dict[UUID, DailyGoal] = field(default_factory=dict)
    fail_creates: bool = False

    def get_goal(self, user_id: UUID) -> DailyGoal | None:
        return self.goals.get(user_id)

    def create_goal(self, goal: DailyGoal) -> DailyGoal:
        if self.fail_creates:
            raise RuntimeError("database unavailable")
        if goal.user_id in self.goals:
            raise ConflictError("Daily goal already exists. Use PUT to update.")
        self.goals[goal.user_id] = goal
        return goal

    def update_goal(self, goal: DailyGoal) -> DailyGoal:
        self.goals[goal.user_id] = goal
        return goal

    def delete_goal(self, user_id: UUID) -> None:
        self.goals.pop(user_id, None)


@dataclass
class InMemoryFoodRepository(FoodRepository):
    """In-memory food repository for tests."""

    foods: dict[str, FoodItem] = field(default_factory=dict)

    def get_food(self, barcode: str) -> FoodItem | None:
        return self.foods.get(barcode)

    def create_food(self, food: FoodItem) -> FoodItem:
        if food.barcode in self.foods:
            raise ConflictError("Food item with this barcode already exists")
        self.foods[food.barcode] = food
        return food

    def update_food(self, food: FoodItem) -> FoodItem:
        self.foods[food.barcode] = food
        return food

    def delete_food(self, barcode: str) -> None:
        self.foods.pop(barcode, None)

    def list_foods(
        self, search: str | None, offset: int, limit: int
    ) -> tuple[list[FoodItem], int]:
        matches = sorted(
            (
                food
                for food in self.foods.values()
                if not search or search.lower() in food.name.lower()
            ),
            key=lambda food: food.name,
        )
        return matches[offset : offset + limit], len(matches)


@dataclass
class InMemoryConsumptionRepository(ConsumptionRepository):
    """In-memory consumption log repository for tests."""

    entries: dict[UUID, ConsumptionLogEntry] = field(default_factory=dict)

    def create_entry(  # noqa: PLR0913
        self,
        user_id: UUID,
        food: FoodItem,
        amount_g: float,
        log_date: date,
        consumed_at: datetime,
        nutrients: NutrientAmounts,
    ) -> ConsumptionLogEntry:
        entry = ConsumptionLogEntry(
            id=uuid4(),
            user_id=user_id,
            barcode=food.barcode,
            food_name=food.name,
            amount_g=amount_g,
            log_date=log_date,
            consumed_at=consumed_at,
            nutrients=nutrients,
        )
        self.entries[entry.id] = entry
        return entry

    def get_entry(self, user_id: UUID, entry_id: UUID) -> ConsumptionLogEntry | None:
        entry = self.entries.get(entry_id)
        if entry is None or entry.user_id != user_id:
            return None
        return entry

    def update_entry(self, entry: ConsumptionLogEntry) -> ConsumptionLogEntry:
        self.entries[entry.id] = entry
        return entry

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        if self.get_entry(user_id, entry_id) is not None:
            del self.entries[entry_id]

    def list_entries(  # noqa: PLR0913
        self,
        user_id: UUID,
        start: date | None,
        end: date | None,
        offset: int,
        limit: int,
    ) -> tuple[list[ConsumptionLogEntry], int]:
        matches = sorted(
            (
                entry
                for entry in self.entries.values()
                if entry.user_id == user_id
                and (start is None or entry.log_date >= start)
                and (end is None or entry.log_date <= end)
            ),
            key=lambda entry: entry.consumed_at,
            reverse=True,
        )
        return matches[offset : offset + limit], len(matches)


@dataclass
class FakeProductClient(ProductDatabaseClient):
    """Product database fake with canned products and failure injection."""

    products: dict[str, ExternalProduct] = field(default_factory=dict)
    failures: int = 0
    calls: list[str] = field(default_factory=list)
    search_results: list[dict[str, object]] = field(default_factory=list)

    async def get_product(self, barcode: str) -> ExternalProduct | None:
        self.calls.append(barcode)
        if self.failures:
            self.failures -= 1
            raise RuntimeError("Open Food Facts unavailable")
        return self.products.get(barcode)

    async def search_products(
        self, query: str, page: int, page_size: int
    ) -> ExternalSearchResult:
        self.calls.append(f"search:{query}")
        if self.failures:
            self.failures -= 1
            raise RuntimeError("Open Food Facts unavailable")
        return ExternalSearchResult(
            count=len(self.search_results),
            page=page,
            page_size=page_size,
            products=self.search_results,
        )


@dataclass
class FakeCompletionClient(CompletionClient):
    """Completion client returning queued replies and recording prompts."""

    replies: list[str] = field(default_factory=list)
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    async def complete(
        self, *, model: str, reasoning_effort: str | None, store: bool, prompt: str
    ) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return "Eat more vegetables."


def make_food(  # noqa: PLR0913
    barcode: str = "3017620422003",
    name: str = "Hazelnut Spread",
    calories: float = 539.0,
    protein_g: float = 6.3,
    carbs_g: float = 57.5,
    fat_g: float = 30.9,
    sugar_g: float = 56.3,
    source: FoodSource = FoodSource.OPENFOODFACTS,
) -> FoodItem:
    return FoodItem(
        barcode=barcode,
        name=name,
        brand="Ferrero",
        facts=NutrientFacts(
            calories=calories,
            protein_g=protein_g,
            carbs_g=carbs_g,
            fat_g=fat_g,
            sugar_g=sugar_g,
        ),
        serving_size_g=15.0,
        source=source,
    )


def make_product(barcode: str = "5449000000996", name: str = "Cola") -> ExternalProduct:
    return ExternalProduct(
        barcode=barcode,
        name=name,
        brand="Coca-Cola",
        facts=NutrientFacts(
            calories=42.0, protein_g=1.0, carbs_g=10.6, fat_g=0.5, sugar_g=10.6
        ),
        serving_size_g=330.0,
        image_url="https://images.example/cola.jpg",
        ingredients="water, sugar",
        categories="beverages",
    )


def make_user(name: str | None = "Ada") -> UserRecord:
    return UserRecord(
        id=uuid4(), auth_subject=f"subject-{uuid4()}", email=None, name=name
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        openai_api_key="openai-key",
    )


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def goal_repository() -> InMemoryGoalRepository:
    return InMemoryGoalRepository()


@pytest.fixture
def food_repository() -> InMemoryFoodRepository:
    return InMemoryFoodRepository()


@pytest.fixture
def consumption_repository() -> InMemoryConsumptionRepository:
    return InMemoryConsumptionRepository()


@pytest.fixture
def product_client() -> FakeProductClient:
    return FakeProductClient()


@pytest.fixture
def completion_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    user_repository: InMemoryUserRepository,
    profile_repository: InMemoryProfileRepository,
    goal_repository: InMemoryGoalRepository,
    food_repository: InMemoryFoodRepository,
    consumption_repository: InMemoryConsumptionRepository,
    product_client: FakeProductClient,
    completion_client: FakeCompletionClient,
) -> AppContainer:
    user_service = UserService(
        repository=user_repository, identity_verifier=FakeIdentityVerifier()
    )
    goal_service = GoalService(repository=goal_repository, profiles=profile_repository)
    profile_service = ProfileService(
        repository=profile_repository, goal_service=goal_service
    )
    food_service = FoodService(
        repository=food_repository,
        product_client=product_client,
        retry_delay_seconds=0,
    )
    consumption_service = ConsumptionLogService(
        repository=consumption_repository,
        food_service=food_service,
        goals=goal_repository,
    )
    context_service = PersonalizationContextService(
        profiles=profile_repository,
        goals=goal_repository,
        logs=consumption_repository,
    )
    assistant_service = AssistantService(
        client=completion_client,
        context_builder=context_service,
        model=settings.openai_model,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        user_service=user_service,
        profile_service=profile_service,
        goal_service=goal_service,
        food_service=food_service,
        consumption_service=consumption_service,
        context_service=context_service,
        assistant_service=assistant_service,
        close_resources=close_resources,
    )
