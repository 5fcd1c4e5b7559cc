"""Supabase implementation of remote user state storage."""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from supabase import Client

from meal_coach.domain.dates import DateKey
from meal_coach.domain.errors import SyncError
from meal_coach.domain.plans import WeeklyPlan
from meal_coach.domain.profile import PrepTimeLimits, UserProfile
from meal_coach.domain.state import UserState
from meal_coach.domain.tracking import (
    BodyMeasurement,
    NutritionalAlert,
    TrackingEntry,
    WaterIntake,
)
from meal_coach.services.plans import PlanBook
from meal_coach.services.snapshots import plan_to_dict
from meal_coach.services.sync import RemoteStateRepository

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseStateRepository(RemoteStateRepository):
    """Stores a user's profile row and replaces their collections on save."""

    client: Client
    timezone: ZoneInfo = ZoneInfo("UTC")

    def load_state(self, user_id: str) -> UserState:
        """Read every table for a user."""
        try:
            profile_rows = self._select("user_profiles", "*", "id", user_id)
            if not profile_rows:
                return UserState()
            plan_rows = (
                self.client.table("meal_plans")
                .select("plan_data")
                .eq("user_id", user_id)
                .order("created_at")
                .execute()
            ).data or []
            return UserState(
                profile=_parse_profile(profile_rows[0], self.timezone),
                plans=_parse_plans(plan_rows),
                tracking=[
                    TrackingEntry(
                        date=_day(row["date"], self.timezone),
                        weight_kg=row["weight"],
                    )
                    for row in self._select(
                        "tracking_entries", "*", "user_id", user_id
                    )
                ],
                completed_meals={
                    DateKey.parse(row["plan_id"]): set(row.get("meal_ids") or [])
                    for row in self._select(
                        "completed_meals", "plan_id, meal_ids", "user_id", user_id
                    )
                },
                water=[
                    WaterIntake(
                        date=_day(row["date"], self.timezone),
                        amount_ml=row["amount"],
                        goal_ml=row["goal"],
                    )
                    for row in self._select(
                        "water_intake", "*", "user_id", user_id
                    )
                ],
                measurements=[
                    _parse_measurement(row, self.timezone)
                    for row in self._select(
                        "body_measurements", "*", "user_id", user_id
                    )
                ],
                alerts=[
                    _parse_alert(row, self.timezone)
                    for row in self._select(
                        "nutritional_alerts", "*", "user_id", user_id
                    )
                ],
            )
        except Exception as exc:
            raise SyncError(f"Failed to load state for {user_id}: {exc}") from exc

    def save_state(self, user_id: str, state: UserState) -> None:
        """Upsert the profile and rewrite every collection."""
        if state.profile is None:
            raise SyncError("Cannot save a state without a profile")
        try:
            self.client.table("user_profiles").upsert(
                _profile_row(user_id, state.profile)
            ).execute()
            self._replace(
                "meal_plans",
                user_id,
                [{"plan_data": plan_to_dict(plan)} for plan in state.plans],
            )
            self._replace(
                "tracking_entries",
                user_id,
                [
                    {"date": str(DateKey.from_date(e.date)), "weight": e.weight_kg}
                    for e in state.tracking
                ],
            )
            self._replace(
                "completed_meals",
                user_id,
                [
                    {"plan_id": str(key), "meal_ids": sorted(names)}
                    for key, names in state.completed_meals.items()
                ],
            )
            self._replace(
                "water_intake",
                user_id,
                [
                    {
                        "date": str(DateKey.from_date(w.date)),
                        "amount": w.amount_ml,
                        "goal": w.goal_ml,
                    }
                    for w in state.water
                ],
            )
            self._replace(
                "body_measurements",
                user_id,
                [_measurement_row(m) for m in state.measurements],
            )
            self._replace(
                "nutritional_alerts",
                user_id,
                [_alert_row(alert) for alert in state.alerts],
            )
        except Exception as exc:
            raise SyncError(f"Failed to save state for {user_id}: {exc}") from exc
        _logger.debug("Saved %s plans for %s", len(state.plans), user_id)

    def _select(
        self, table: str, columns: str, column: str, value: str
    ) -> list[dict[str, Any]]:
        response = self.client.table(table).select(columns).eq(column, value).execute()
        return response.data or []

    def _replace(
        self, table: str, user_id: str, rows: list[dict[str, object]]
    ) -> None:
        self.client.table(table).delete().eq("user_id", user_id).execute()
        if rows:
            self.client.table(table).insert(
                [{"user_id": user_id, **row} for row in rows]
            ).execute()


def _day(raw: object, tz: ZoneInfo) -> date:
    """Read a stored date or timestamp as the local day it falls on."""
    text = str(raw).strip()
    try:
        return DateKey.parse(text).day
    except ValueError:
        return DateKey.from_datetime(datetime.fromisoformat(text), tz).day


def _profile_row(user_id: str, profile: UserProfile) -> dict[str, object]:
    first_name, _, last_name = profile.name.partition(" ")
    return {
        "id": user_id,
        "name": profile.name,
        "first_name": first_name,
        "last_name": last_name,
        "gender": profile.sex,
        "age": profile.age,
        "height": profile.height_cm,
        "weight": profile.weight_kg,
        "activity_level": profile.activity_level,
        "goal": profile.goal,
        "preferences": profile.preferences,
        "notes": profile.notes,
        "remarks": profile.remarks,
        "daily_budget": profile.daily_budget,
        "cooking_level": profile.cooking_level,
        "meals_per_day": profile.meals_per_day,
        "goal_weight": profile.goal_weight_kg,
        "goal_timeline": profile.goal_timeline_weeks,
        "bmr": profile.bmr,
        "tdee": profile.tdee,
        "target_calories": profile.target_calories,
        "start_date": str(DateKey.from_date(profile.start_date)),
        "start_weight": profile.start_weight_kg,
        "max_prep_time_week_lunch": profile.prep_times.weekday_lunch,
        "max_prep_time_week_dinner": profile.prep_times.weekday_dinner,
        "max_prep_time_weekend_lunch": profile.prep_times.weekend_lunch,
        "max_prep_time_weekend_dinner": profile.prep_times.weekend_dinner,
        "updated_at": datetime.now(tz=UTC).isoformat(),
    }


def _parse_profile(row: dict[str, Any], tz: ZoneInfo) -> UserProfile:
    defaults = PrepTimeLimits()
    return UserProfile(
        name=row.get("name") or "",
        sex=row["gender"],
        age=int(row["age"]),
        height_cm=float(row["height"]),
        weight_kg=float(row["weight"]),
        activity_level=row["activity_level"],
        goal=row["goal"],
        meals_per_day=int(row.get("meals_per_day") or 3),
        daily_budget=float(row.get("daily_budget") or 0),
        cooking_level=row.get("cooking_level") or "intermediate",
        bmr=float(row["bmr"]),
        tdee=float(row["tdee"]),
        target_calories=float(row["target_calories"]),
        start_date=_day(row["start_date"], tz),
        start_weight_kg=float(row.get("start_weight") or row["weight"]),
        goal_weight_kg=float(row.get("goal_weight") or row["weight"]),
        goal_timeline_weeks=int(row.get("goal_timeline") or 12),
        prep_times=PrepTimeLimits(
            weekday_lunch=row.get("max_prep_time_week_lunch")
            or defaults.weekday_lunch,
            weekday_dinner=row.get("max_prep_time_week_dinner")
            or defaults.weekday_dinner,
            weekend_lunch=row.get("max_prep_time_weekend_lunch")
            or defaults.weekend_lunch,
            weekend_dinner=row.get("max_prep_time_weekend_dinner")
            or defaults.weekend_dinner,
        ),
        preferences=row.get("preferences") or "",
        notes=row.get("notes") or "",
        remarks=row.get("remarks") or "",
    )


def _parse_plans(rows: list[dict[str, Any]]) -> list[WeeklyPlan]:
    plans = []
    for index, row in enumerate(rows):
        data = dict(row["plan_data"])
        if data.get("weekNumber") is None:
            # Plans saved before week numbering take their load position.
            data["weekNumber"] = index
        plans.append(WeeklyPlan.model_validate(data))
    return PlanBook(plans).plans


def _measurement_row(measurement: BodyMeasurement) -> dict[str, object]:
    return {
        "date": str(DateKey.from_date(measurement.date)),
        "weight": measurement.weight_kg,
        "waist": measurement.waist_cm,
        "hips": measurement.hips_cm,
        "chest": measurement.chest_cm,
        "arms": measurement.arms_cm,
        "thighs": measurement.thighs_cm,
        "body_fat": measurement.body_fat_pct,
    }


def _parse_measurement(row: dict[str, Any], tz: ZoneInfo) -> BodyMeasurement:
    return BodyMeasurement(
        date=_day(row["date"], tz),
        weight_kg=row.get("weight"),
        waist_cm=row.get("waist"),
        hips_cm=row.get("hips"),
        chest_cm=row.get("chest"),
        arms_cm=row.get("arms"),
        thighs_cm=row.get("thighs"),
        body_fat_pct=row.get("body_fat"),
    )


def _alert_row(alert: NutritionalAlert) -> dict[str, object]:
    return {
        "alert_id": alert.id,
        "type": alert.severity,
        "title": alert.title,
        "message": alert.message,
        "date": str(DateKey.from_date(alert.date)),
        "is_read": alert.is_read,
    }


def _parse_alert(row: dict[str, Any], tz: ZoneInfo) -> NutritionalAlert:
    return NutritionalAlert(
        id=row["alert_id"],
        severity=row["type"],
        title=row["title"],
        message=row["message"],
        date=_day(row["date"], tz),
        is_read=bool(row.get("is_read")),
    )
