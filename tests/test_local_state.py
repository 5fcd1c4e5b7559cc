"""Tests for state snapshots and the local mirror."""

import json
from datetime import date

from meal_coach.domain.dates import DateKey
from meal_coach.domain.state import UserState
from meal_coach.domain.tracking import (
    Activity,
    BodyMeasurement,
    NutritionalAlert,
    TrackingEntry,
    WaterIntake,
)
from meal_coach.services.cache import InMemoryCache
from meal_coach.services.local_state import STATE_KEY, LocalStateStore
from meal_coach.services.snapshots import restore_state, snapshot_state
from tests.conftest import make_profile, make_week


def _full_state() -> UserState:
    day = date(2026, 10, 14)
    return UserState(
        profile=make_profile(),
        plans=[make_week(0), make_week(1)],
        tracking=[TrackingEntry(date=day, weight_kg=59.5)],
        completed_meals={
            DateKey.from_date(day): {"Wednesday lunch", "Wednesday dinner"}
        },
        water=[WaterIntake(date=day, amount_ml=750, goal_ml=2500)],
        measurements=[BodyMeasurement(date=day, waist_cm=78, body_fat_pct=24)],
        alerts=[
            NutritionalAlert(
                id="perfect-day-2026-10-14",
                severity="success",
                title="Perfect day!",
                message="Keep it up!",
                date=day,
            )
        ],
        activities=[
            Activity(
                id="a1",
                date=day,
                category="running",
                duration_minutes=30,
                calories_burned=280,
            )
        ],
    )


def test_snapshot_is_json_ready() -> None:
    payload = snapshot_state(_full_state())

    encoded = json.loads(json.dumps(payload))

    assert encoded["version"] == 1
    assert encoded["profile"]["start_date"] == "2026-10-05"
    assert encoded["completed_meals"] == {
        "2026-10-14": ["Wednesday dinner", "Wednesday lunch"]
    }
    assert encoded["plans"][1]["weekNumber"] == 1
    assert encoded["water"][0]["date"] == "2026-10-14"


def test_restore_rebuilds_state() -> None:
    original = _full_state()

    restored = restore_state(json.loads(json.dumps(snapshot_state(original))))

    assert restored == original


def test_local_store_round_trip_and_clear() -> None:
    store = LocalStateStore(InMemoryCache())
    assert store.load() is None

    store.save(_full_state())
    loaded = store.load()

    assert loaded is not None
    assert loaded.profile == make_profile()
    store.clear()
    assert store.load() is None


def test_unreadable_state_is_discarded() -> None:
    cache = InMemoryCache()
    cache.set(STATE_KEY, "{not json")
    store = LocalStateStore(cache)

    assert store.load() is None
    assert not cache.has(STATE_KEY)


def test_locale_preference() -> None:
    cache = InMemoryCache()
    store = LocalStateStore(cache)

    assert store.get_locale("en") == "en"
    store.set_locale("fr")
    assert store.get_locale("en") == "fr"
    cache.set("meal_coach_locale", "de")
    assert store.get_locale("en") == "en"
