"""Shared test fixtures."""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import date
from zoneinfo import ZoneInfo

import pytest

from meal_coach.config import Settings
from meal_coach.containers import AppContainer
from meal_coach.domain.errors import SyncError
from meal_coach.domain.images import GeneratedImage
from meal_coach.domain.plans import DailyPlan, MacroNutrients, Meal, WeeklyPlan
from meal_coach.domain.profile import UserProfile
from meal_coach.domain.state import UserState
from meal_coach.services.cache import InMemoryCache
from meal_coach.services.generation import MealPlanGenerator, StructuredGenerationClient
from meal_coach.services.images import ImageGenerationClient, MealImageService
from meal_coach.services.local_state import LocalStateStore
from meal_coach.services.planning import PlanService
from meal_coach.services.plans import recompute_totals
from meal_coach.services.profile import ProfileService
from meal_coach.services.shopping import ShoppingListService
from meal_coach.services.snapshots import restore_state, snapshot_state
from meal_coach.services.sync import RemoteStateRepository, SyncCoordinator
from meal_coach.services.tracking import AlertService, TrackingService

WEEKDAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]


def make_meal(  # noqa: PLR0913
    name: str,
    calories: float,
    protein: float = 20,
    carbohydrates: float = 40,
    fat: float = 10,
    ingredients: list[str] | None = None,
    meal_type: str = "Lunch",
) -> Meal:
    return Meal(
        name=name,
        type=meal_type,
        description=f"{name} description",
        macros=MacroNutrients(
            calories=calories,
            protein=protein,
            carbohydrates=carbohydrates,
            fat=fat,
        ),
        ingredients=ingredients or [],
        instructions=["Cook", "Serve"],
    )


def make_day(label: str, meals: list[Meal]) -> DailyPlan:
    return recompute_totals(DailyPlan(day_of_week=label, meals=meals))


def make_week(week_number: int = 0, calories: float = 500) -> WeeklyPlan:
    days = [
        make_day(
            label,
            [
                make_meal(f"{label} breakfast", calories, meal_type="Breakfast"),
                make_meal(f"{label} lunch", calories),
                make_meal(f"{label} dinner", calories, meal_type="Dinner"),
            ],
        )
        for label in WEEKDAY_NAMES
    ]
    return WeeklyPlan(week_number=week_number, plan=days)


def make_profile(
    target_calories: float = 1500, start_date: date = date(2026, 10, 5)
) -> UserProfile:
    return UserProfile(
        name="Alex Martin",
        sex="female",
        age=30,
        height_cm=165,
        weight_kg=60,
        activity_level="moderate",
        goal="lose",
        meals_per_day=3,
        daily_budget=15,
        cooking_level="intermediate",
        bmr=1320.25,
        tdee=2046.3875,
        target_calories=target_calories,
        start_date=start_date,
        start_weight_kg=60,
        goal_weight_kg=55,
        goal_timeline_weeks=12,
        preferences="no pork",
    )


def week_payload(calories: float = 500, days: int = 7) -> str:
    week = make_week(calories=calories)
    plan = [day.model_dump(by_alias=True) for day in week.plan[:days]]
    return json.dumps({"plan": plan})


@dataclass
class FakeGenerationClient(StructuredGenerationClient):
    """Fake structured client returning queued replies in order."""

    replies: list[str] = field(default_factory=list)
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
    ) -> str:
        self.calls.append(
            {"model": model, "prompt": prompt, "schema_name": schema_name}
        )
        if self.error is not None:
            raise self.error
        return self.replies.pop(0)


@dataclass
class FakeImageClient(ImageGenerationClient):
    """Fake image client recording prompts."""

    image: GeneratedImage | None = field(
        default_factory=lambda: GeneratedImage(mime_type="image/png", data_b64="aW1n")
    )
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)
    release: asyncio.Event | None = None

    async def generate_image(self, *, prompt: str) -> GeneratedImage | None:
        self.prompts.append(prompt)
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.image


@dataclass
class InMemoryRemoteRepository(RemoteStateRepository):
    """Remote store keeping JSON snapshots per user."""

    snapshots: dict[str, dict[str, object]] = field(default_factory=dict)
    saves: list[str] = field(default_factory=list)
    fail_load: bool = False
    fail_save: bool = False

    def load_state(self, user_id: str) -> UserState:
        if self.fail_load:
            raise SyncError("remote unavailable")
        payload = self.snapshots.get(user_id)
        if payload is None:
            return UserState()
        return restore_state(payload)

    def save_state(self, user_id: str, state: UserState) -> None:
        if self.fail_save:
            raise SyncError("remote unavailable")
        self.saves.append(user_id)
        self.snapshots[user_id] = snapshot_state(state)


async def no_sleep(_seconds: float) -> None:
    await asyncio.sleep(0)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        openai_api_key="openai-key",
        cache_db_path=tmp_path / "cache.sqlite3",
    )


@pytest.fixture
def generation_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def image_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture
def remote_repository() -> InMemoryRemoteRepository:
    return InMemoryRemoteRepository()


@pytest.fixture
def generator(generation_client: FakeGenerationClient) -> MealPlanGenerator:
    return MealPlanGenerator(
        client=generation_client,
        model="gpt-5.2",
        reasoning_effort="medium",
        store=False,
    )


@pytest.fixture
def container(
    settings: Settings,
    generator: MealPlanGenerator,
    image_client: FakeImageClient,
    remote_repository: InMemoryRemoteRepository,
) -> AppContainer:
    state = UserState()
    local_state = LocalStateStore(InMemoryCache())
    image_service = MealImageService(
        client=image_client,
        memory=InMemoryCache(),
        persistent=InMemoryCache(),
        request_delay_seconds=0,
        sleep=no_sleep,
    )
    sync_coordinator = SyncCoordinator(
        state=state,
        remote=remote_repository,
        local=local_state,
        debounce_seconds=0,
        sleep=no_sleep,
    )

    async def close_resources() -> None:
        await sync_coordinator.wait_idle()
        await image_service.wait_idle()

    return AppContainer(
        settings=settings,
        timezone=ZoneInfo(settings.timezone),
        state=state,
        local_state=local_state,
        profile_service=ProfileService(state),
        plan_service=PlanService(state=state, generator=generator),
        shopping_list_service=ShoppingListService(generator=generator),
        tracking_service=TrackingService(state),
        alert_service=AlertService(state),
        image_service=image_service,
        sync_coordinator=sync_coordinator,
        close_resources=close_resources,
    )
