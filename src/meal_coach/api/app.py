"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from meal_coach.api.models import (
    ActivityRequest,
    GenerateWeekRequest,
    LocaleRequest,
    MeasurementRequest,
    RegenerationRequest,
    SessionRequest,
    ToggleMealRequest,
    WaterRequest,
    WeightRequest,
)
from meal_coach.app_logging import configure_logging
from meal_coach.containers import AppContainer
from meal_coach.domain.dates import DateKey
from meal_coach.domain.errors import GenerationError, SyncError
from meal_coach.domain.locale import Locale
from meal_coach.domain.plans import CategorizedShoppingList, DailyPlan, WeeklyPlan
from meal_coach.domain.tracking import Activity, BodyMeasurement
from meal_coach.services.calendar import plan_day_date
from meal_coach.services.metabolism import compute_bmi, compute_macro_targets
from meal_coach.services.plans import consumed_totals, macro_percentage
from meal_coach.services.profile import ProfileInput
from meal_coach.services.stats import HISTORY_DAYS, progress_history, weight_progress

NO_DATA_MESSAGE = "No data for this period"


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(GenerationError)
    async def generation_error_handler(
        _request: Request, exc: GenerationError
    ) -> JSONResponse:
        logger.warning("Generation failed (%s): %s", exc.code, exc.detail)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"code": exc.code, "detail": exc.user_message},
        )

    @app.exception_handler(LookupError)
    async def missing_data_handler(_request: Request, exc: LookupError) -> JSONResponse:
        logger.info("Lookup failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": NO_DATA_MESSAGE},
        )

    def today() -> date:
        return DateKey.today(container.timezone).day

    def resolve_locale(locale: Locale | None) -> Locale:
        if locale is not None:
            return locale
        return container.local_state.get_locale(container.settings.default_locale)

    def changed() -> None:
        container.sync_coordinator.notify_changed()

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/session")
    async def start_session(payload: SessionRequest) -> dict[str, object]:
        """Sign a user in and load their stored data."""
        try:
            result = await container.sync_coordinator.pull(payload.user_id)
        except SyncError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
            ) from exc
        return {"user_id": result.user_id, "needs_onboarding": result.needs_onboarding}

    @app.delete("/session")
    async def end_session() -> dict[str, str]:
        """Sign out and wipe local copies of the user's data."""
        await container.sync_coordinator.logout()
        return {"status": "ok"}

    @app.put("/locale")
    async def set_locale(payload: LocaleRequest) -> dict[str, str]:
        """Persist the interface language."""
        container.local_state.set_locale(payload.locale)
        return {"locale": payload.locale}

    @app.get("/profile")
    async def get_profile() -> dict[str, object]:
        """Return the current profile."""
        if container.state.profile is None:
            raise LookupError("No profile")
        return asdict(container.state.profile)

    @app.put("/profile")
    async def put_profile(payload: ProfileInput) -> dict[str, object]:
        """Create the profile on first call, update it afterwards."""
        if container.state.profile is None:
            profile = container.profile_service.create_profile(payload, today())
        else:
            profile = container.profile_service.update_profile(payload)
        changed()
        return asdict(profile)

    @app.delete("/profile")
    async def delete_profile() -> dict[str, str]:
        """Reset the profile and all dependent data."""
        container.profile_service.reset()
        changed()
        return {"status": "ok"}

    @app.post("/profile/weight")
    async def record_weight(payload: WeightRequest) -> dict[str, object]:
        """Log a weight and return the re-derived profile."""
        profile = container.profile_service.record_weight(
            payload.weight_kg, payload.day or today()
        )
        changed()
        return asdict(profile)

    @app.get("/profile/targets")
    async def profile_targets() -> dict[str, object]:
        """Return energy and macro targets for the current profile."""
        profile = container.state.profile
        if profile is None:
            raise LookupError("No profile")
        return {
            "bmr": profile.bmr,
            "tdee": profile.tdee,
            "target_calories": profile.target_calories,
            "macros": asdict(compute_macro_targets(profile.target_calories)),
            "bmi": compute_bmi(profile.height_cm, profile.weight_kg),
        }

    @app.get("/progress")
    async def progress(days: int = HISTORY_DAYS) -> dict[str, object]:
        """Return weight progress and recent consumption history."""
        profile = container.state.profile
        if profile is None:
            raise LookupError("No profile")
        return {
            "weight": asdict(weight_progress(profile)),
            "history": asdict(progress_history(container.state, today(), days)),
        }

    @app.post("/plans/generate")
    async def generate_plan(
        payload: GenerateWeekRequest, locale: Locale | None = None
    ) -> WeeklyPlan:
        """Generate the plan for the current (or a given) program week."""
        plan = await container.plan_service.generate_week(
            resolve_locale(locale), today(), payload.custom_prompt, payload.week
        )
        changed()
        return plan

    @app.get("/plans/{week}")
    async def get_plan(week: int) -> WeeklyPlan:
        """Return the plan for a program week."""
        return container.plan_service.get_week(week)

    @app.post("/plans/{week}/days/{day}/regenerate")
    async def regenerate_day(
        week: int, day: int, payload: RegenerationRequest, locale: Locale | None = None
    ) -> DailyPlan:
        """Replace a whole day with a generated one."""
        updated = await container.plan_service.regenerate_day(
            week, day, resolve_locale(locale), payload.to_options()
        )
        changed()
        return updated

    @app.post("/plans/{week}/days/{day}/meals/{meal}/regenerate")
    async def regenerate_meal(  # noqa: PLR0913
        week: int,
        day: int,
        meal: int,
        payload: RegenerationRequest,
        locale: Locale | None = None,
    ) -> DailyPlan:
        """Replace one meal with a generated one."""
        updated = await container.plan_service.regenerate_meal(
            week, day, meal, resolve_locale(locale), payload.to_options()
        )
        changed()
        return updated

    @app.post("/plans/{week}/days/{day}/meals")
    async def add_meal(
        week: int, day: int, payload: RegenerationRequest, locale: Locale | None = None
    ) -> DailyPlan:
        """Append a generated meal to a day."""
        updated = await container.plan_service.add_meal(
            week, day, resolve_locale(locale), payload.to_options()
        )
        changed()
        return updated

    @app.post("/plans/{week}/days/{day}/complete")
    async def complete_day(
        week: int, day: int, payload: RegenerationRequest, locale: Locale | None = None
    ) -> DailyPlan:
        """Fill a day's remaining calories with generated meals."""
        updated = await container.plan_service.complete_day(
            week, day, resolve_locale(locale), payload.to_options()
        )
        changed()
        return updated

    @app.delete("/plans/{week}/days/{day}/meals/{meal}")
    async def remove_meal(week: int, day: int, meal: int) -> DailyPlan:
        """Delete one meal from a day."""
        updated = container.plan_service.remove_meal(week, day, meal)
        changed()
        return updated

    @app.get("/plans/{week}/days/{day}/status")
    async def day_status(week: int, day: int) -> dict[str, object]:
        """Return the day's classification and consumed progress."""
        plan_day = container.plan_service.get_day(week, day)
        profile = container.state.profile
        if profile is None:
            raise LookupError("No profile")
        macros = compute_macro_targets(profile.target_calories)
        consumed = consumed_totals(
            plan_day,
            container.state.completed_meals.get(
                _slot_key(container, week, day), set()
            ),
        )
        return {
            "status": container.plan_service.status(week, day),
            "planned": plan_day.daily_totals,
            "consumed": consumed,
            "progress": {
                "calories": macro_percentage(consumed.calories, macros.calories),
                "protein": macro_percentage(consumed.protein, macros.protein_g),
                "carbohydrates": macro_percentage(
                    consumed.carbohydrates, macros.carbs_g
                ),
                "fat": macro_percentage(consumed.fat, macros.fat_g),
            },
        }

    @app.get("/plans/{week}/shopping-list")
    async def shopping_list(
        week: int, locale: Locale | None = None
    ) -> list[CategorizedShoppingList]:
        """Return the consolidated shopping list for a week."""
        plan = container.plan_service.get_week(week)
        return await container.shopping_list_service.build(
            plan, resolve_locale(locale)
        )

    @app.post("/tracking/meals/toggle")
    async def toggle_meal(payload: ToggleMealRequest) -> dict[str, object]:
        """Flip a meal's consumed flag."""
        consumed = container.tracking_service.toggle_meal(
            payload.day or today(), payload.meal_name
        )
        changed()
        return {"meal_name": payload.meal_name, "consumed": consumed}

    @app.post("/tracking/water")
    async def log_water(payload: WaterRequest) -> dict[str, object]:
        """Add water and/or change the day's goal."""
        day = payload.day or today()
        record = container.tracking_service.water_for(day)
        if payload.goal_ml is not None:
            record = container.tracking_service.set_water_goal(day, payload.goal_ml)
        if payload.amount_ml is not None:
            record = container.tracking_service.log_water(day, payload.amount_ml)
        changed()
        return asdict(record)

    @app.put("/tracking/measurements")
    async def upsert_measurement(payload: MeasurementRequest) -> dict[str, object]:
        """Store the body measurements for a date."""
        measurement = container.tracking_service.upsert_measurement(
            BodyMeasurement(
                date=payload.day,
                weight_kg=payload.weight_kg,
                waist_cm=payload.waist_cm,
                hips_cm=payload.hips_cm,
                chest_cm=payload.chest_cm,
                arms_cm=payload.arms_cm,
                thighs_cm=payload.thighs_cm,
                body_fat_pct=payload.body_fat_pct,
            )
        )
        changed()
        return asdict(measurement)

    @app.get("/tracking/activities")
    async def list_activities(day: date | None = None) -> dict[str, object]:
        """Return activities, optionally for one date, with calories burned."""
        activities = [
            asdict(activity)
            for activity in container.state.activities
            if day is None or activity.date == day
        ]
        burned = (
            container.tracking_service.activity_calories(day)
            if day is not None
            else sum(a.calories_burned for a in container.state.activities)
        )
        return {"activities": activities, "calories_burned": burned}

    @app.post("/tracking/activities")
    async def add_activity(payload: ActivityRequest) -> dict[str, object]:
        """Log an activity."""
        activity = container.tracking_service.add_activity(
            payload.day,
            payload.category,
            payload.duration_minutes,
            payload.calories_burned,
            payload.notes,
        )
        changed()
        return asdict(activity)

    @app.put("/tracking/activities/{activity_id}")
    async def update_activity(
        activity_id: str, payload: ActivityRequest
    ) -> dict[str, object]:
        """Replace an activity."""
        activity = container.tracking_service.update_activity(
            Activity(
                id=activity_id,
                date=payload.day,
                category=payload.category,
                duration_minutes=payload.duration_minutes,
                calories_burned=payload.calories_burned,
                notes=payload.notes,
            )
        )
        changed()
        return asdict(activity)

    @app.delete("/tracking/activities/{activity_id}")
    async def delete_activity(activity_id: str) -> dict[str, str]:
        """Delete an activity."""
        container.tracking_service.delete_activity(activity_id)
        changed()
        return {"status": "ok"}

    @app.get("/alerts")
    async def list_alerts(locale: Locale | None = None) -> dict[str, object]:
        """Evaluate today's rules and return unread alerts."""
        created = container.alert_service.evaluate(today(), resolve_locale(locale))
        if created:
            changed()
        return {
            "alerts": [asdict(alert) for alert in container.alert_service.unread()]
        }

    @app.post("/alerts/{alert_id}/read")
    async def mark_alert_read(alert_id: str) -> dict[str, object]:
        """Mark an alert as read."""
        alert = container.alert_service.mark_read(alert_id)
        changed()
        return asdict(alert)

    @app.delete("/alerts/{alert_id}")
    async def dismiss_alert(alert_id: str) -> dict[str, str]:
        """Dismiss an alert."""
        container.alert_service.dismiss(alert_id)
        changed()
        return {"status": "ok"}

    @app.get("/images/{meal_name}")
    async def meal_image(
        meal_name: str, locale: Locale | None = None
    ) -> dict[str, str]:
        """Return a data URL illustrating a meal."""
        image_url = await container.image_service.get_image(
            meal_name, resolve_locale(locale)
        )
        return {"meal_name": meal_name, "image_url": image_url}

    @app.get("/images")
    async def image_stats() -> dict[str, int]:
        """Return image cache counters."""
        return asdict(container.image_service.stats())

    @app.post("/sync")
    async def force_sync() -> dict[str, object]:
        """Push the current state immediately."""
        if not container.sync_coordinator.authenticated:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in"
            )
        return asdict(await container.sync_coordinator.force_sync())

    @app.get("/sync/status")
    async def sync_status() -> dict[str, object]:
        """Return the outcome of the last push."""
        return {
            "authenticated": container.sync_coordinator.authenticated,
            **asdict(container.sync_coordinator.status),
        }

    return app


def _slot_key(container: AppContainer, week: int, day: int) -> DateKey:
    """Return the date key a plan slot is shown on."""
    profile = container.state.profile
    if profile is None:
        raise LookupError("No profile")
    return DateKey.from_date(plan_day_date(profile.start_date, week, day))
