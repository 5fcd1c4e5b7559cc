"""JSON-ready snapshots of a user state."""

from dataclasses import asdict
from datetime import date
from typing import Any

from meal_coach.domain.dates import DateKey
from meal_coach.domain.plans import WeeklyPlan
from meal_coach.domain.profile import PrepTimeLimits, UserProfile
from meal_coach.domain.state import UserState
from meal_coach.domain.tracking import (
    Activity,
    BodyMeasurement,
    NutritionalAlert,
    TrackingEntry,
    WaterIntake,
)

SNAPSHOT_VERSION = 1


def profile_to_dict(profile: UserProfile) -> dict[str, Any]:
    payload = asdict(profile)
    payload["start_date"] = str(DateKey.from_date(profile.start_date))
    return payload


def profile_from_dict(payload: dict[str, Any]) -> UserProfile:
    values = dict(payload)
    values["start_date"] = DateKey.parse(values["start_date"]).day
    values["prep_times"] = PrepTimeLimits(**(values.get("prep_times") or {}))
    return UserProfile(**values)


def plan_to_dict(plan: WeeklyPlan) -> dict[str, Any]:
    return plan.model_dump(by_alias=True, mode="json")


def snapshot_state(state: UserState) -> dict[str, Any]:
    """Return a JSON-serializable copy of everything in ``state``."""
    return {
        "version": SNAPSHOT_VERSION,
        "profile": profile_to_dict(state.profile) if state.profile else None,
        "plans": [plan_to_dict(plan) for plan in state.plans],
        "tracking": [_dated(asdict(entry)) for entry in state.tracking],
        "completed_meals": {
            str(key): sorted(names) for key, names in state.completed_meals.items()
        },
        "water": [_dated(asdict(record)) for record in state.water],
        "measurements": [_dated(asdict(record)) for record in state.measurements],
        "alerts": [_dated(asdict(alert)) for alert in state.alerts],
        "activities": [_dated(asdict(activity)) for activity in state.activities],
    }


def restore_state(payload: dict[str, Any]) -> UserState:
    """Rebuild a user state from :func:`snapshot_state` output."""
    profile = payload.get("profile")
    return UserState(
        profile=profile_from_dict(profile) if profile else None,
        plans=[WeeklyPlan.model_validate(plan) for plan in payload.get("plans", [])],
        tracking=[
            TrackingEntry(**_undated(entry)) for entry in payload.get("tracking", [])
        ],
        completed_meals={
            DateKey.parse(key): set(names)
            for key, names in payload.get("completed_meals", {}).items()
        },
        water=[WaterIntake(**_undated(record)) for record in payload.get("water", [])],
        measurements=[
            BodyMeasurement(**_undated(record))
            for record in payload.get("measurements", [])
        ],
        alerts=[
            NutritionalAlert(**_undated(alert)) for alert in payload.get("alerts", [])
        ],
        activities=[
            Activity(**_undated(activity))
            for activity in payload.get("activities", [])
        ],
    )


def _dated(record: dict[str, Any]) -> dict[str, Any]:
    value = record["date"]
    if isinstance(value, date):
        record["date"] = str(DateKey.from_date(value))
    return record


def _undated(record: dict[str, Any]) -> dict[str, Any]:
    values = dict(record)
    values["date"] = DateKey.parse(values["date"]).day
    return values
