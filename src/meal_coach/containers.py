"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from supabase import create_client

from meal_coach.adapters.openai_generation_client import OpenAIGenerationClient
from meal_coach.adapters.openai_image_client import OpenAIImageClient
from meal_coach.adapters.sqlite_store import SqliteCache, connect
from meal_coach.adapters.supabase_state_repository import SupabaseStateRepository
from meal_coach.config import Settings
from meal_coach.domain.state import UserState
from meal_coach.services.cache import InMemoryCache, migrate_legacy_entries
from meal_coach.services.generation import MealPlanGenerator
from meal_coach.services.images import MealImageService
from meal_coach.services.local_state import LocalStateStore
from meal_coach.services.planning import PlanService
from meal_coach.services.profile import ProfileService
from meal_coach.services.shopping import ShoppingListService
from meal_coach.services.sync import SyncCoordinator
from meal_coach.services.tracking import AlertService, TrackingService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    timezone: ZoneInfo
    state: UserState
    local_state: LocalStateStore
    profile_service: ProfileService
    plan_service: PlanService
    shopping_list_service: ShoppingListService
    tracking_service: TrackingService
    alert_service: AlertService
    image_service: MealImageService
    sync_coordinator: SyncCoordinator
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    timezone = ZoneInfo(resolved_settings.timezone)
    remote_repository = SupabaseStateRepository(supabase_client, timezone=timezone)

    conn = connect(resolved_settings.cache_db_path)
    image_store = SqliteCache(conn, table="image_cache")
    migrate_legacy_entries(image_store)
    local_state = LocalStateStore(SqliteCache(conn, table="local_state"))
    state = local_state.load() or UserState()

    generation_client = OpenAIGenerationClient.create(
        resolved_settings.openai_api_key,
        max_output_tokens=resolved_settings.openai_max_output_tokens,
    )
    generator = MealPlanGenerator(
        client=generation_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    image_client = OpenAIImageClient.create(
        api_key=resolved_settings.openai_api_key,
        model=resolved_settings.openai_image_model,
    )
    image_service = MealImageService(
        client=image_client,
        memory=InMemoryCache(),
        persistent=image_store,
        request_delay_seconds=resolved_settings.image_request_delay_seconds,
    )
    sync_coordinator = SyncCoordinator(
        state=state,
        remote=remote_repository,
        local=local_state,
        debounce_seconds=resolved_settings.sync_debounce_seconds,
    )

    async def close_resources() -> None:
        await sync_coordinator.wait_idle()
        await image_service.wait_idle()
        await generation_client.close()
        await image_client.close()
        conn.close()

    return AppContainer(
        settings=resolved_settings,
        timezone=timezone,
        state=state,
        local_state=local_state,
        profile_service=ProfileService(state),
        plan_service=PlanService(state=state, generator=generator),
        shopping_list_service=ShoppingListService(
            generator=generator, mode=resolved_settings.shopping_list_mode
        ),
        tracking_service=TrackingService(state),
        alert_service=AlertService(state),
        image_service=image_service,
        sync_coordinator=sync_coordinator,
        close_resources=close_resources,
    )
