"""Tests for the Supabase state repository."""

from dataclasses import dataclass, field, replace
from datetime import date
from zoneinfo import ZoneInfo

import pytest

from meal_coach.adapters.supabase_state_repository import SupabaseStateRepository
from meal_coach.domain.dates import DateKey
from meal_coach.domain.errors import SyncError
from meal_coach.domain.profile import PrepTimeLimits
from meal_coach.domain.state import UserState
from meal_coach.domain.tracking import NutritionalAlert, WaterIntake
from meal_coach.services.snapshots import plan_to_dict
from tests.conftest import make_profile, make_week


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {
            "select": [],
            "insert": [],
            "upsert": [],
            "delete": [],
        }
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)
    error: Exception | None = None

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def upsert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        if self.error is not None:
            raise self.error
        action = getattr(self, "_action", "select")
        self.actions.append(action)
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _profile_row(user_id: str = "user-1") -> dict[str, object]:
    return {
        "id": user_id,
        "name": "Alex Martin",
        "gender": "female",
        "age": 30,
        "height": 165,
        "weight": 60,
        "activity_level": "moderate",
        "goal": "lose",
        "preferences": "no pork",
        "notes": None,
        "remarks": None,
        "daily_budget": 15,
        "cooking_level": "intermediate",
        "meals_per_day": 3,
        "goal_weight": 55,
        "goal_timeline": 12,
        "bmr": 1320.25,
        "tdee": 2046.3875,
        "target_calories": 1500,
        "start_date": "2026-10-05",
        "start_weight": 60,
        "max_prep_time_week_lunch": None,
        "max_prep_time_week_dinner": 40,
        "max_prep_time_weekend_lunch": None,
        "max_prep_time_weekend_dinner": None,
    }


def test_load_state_for_unknown_user_is_empty() -> None:
    client = FakeSupabaseClient()

    state = SupabaseStateRepository(client).load_state("user-1")

    assert state == UserState()
    assert "meal_plans" not in client.tables


def test_load_state_parses_rows() -> None:
    client = FakeSupabaseClient()
    client.table("user_profiles").queue("select", [_profile_row()])
    legacy = plan_to_dict(make_week(0, calories=400))
    del legacy["weekNumber"]
    client.table("meal_plans").queue(
        "select",
        [{"plan_data": plan_to_dict(make_week(1))}, {"plan_data": legacy}],
    )
    client.table("tracking_entries").queue(
        "select", [{"date": "2026-10-05", "weight": 60}]
    )
    client.table("completed_meals").queue(
        "select", [{"plan_id": "2026-10-14", "meal_ids": ["Wednesday lunch"]}]
    )
    client.table("water_intake").queue(
        "select",
        [{"date": "2026-10-14T00:00:00+00:00", "amount": 750, "goal": 2000}],
    )
    client.table("nutritional_alerts").queue(
        "select",
        [
            {
                "alert_id": "perfect-day-2026-10-14",
                "type": "success",
                "title": "Perfect day!",
                "message": "Keep it up!",
                "date": "2026-10-14",
                "is_read": True,
            }
        ],
    )

    state = SupabaseStateRepository(client).load_state("user-1")

    assert state.profile == replace(
        make_profile(), prep_times=PrepTimeLimits(weekday_dinner=40)
    )
    assert [plan.week_number for plan in state.plans] == [1]
    assert state.completed_meals == {
        DateKey(date(2026, 10, 14)): {"Wednesday lunch"}
    }
    assert state.water == [WaterIntake(date(2026, 10, 14), 750, 2000)]
    assert state.alerts[0].is_read is True
    assert state.activities == []
    assert ("user_id", "user-1") in client.tables["meal_plans"].last_filters


def test_legacy_plans_take_load_position() -> None:
    client = FakeSupabaseClient()
    client.table("user_profiles").queue("select", [_profile_row()])
    first = plan_to_dict(make_week(0, calories=300))
    second = plan_to_dict(make_week(0, calories=400))
    del first["weekNumber"]
    del second["weekNumber"]
    client.table("meal_plans").queue(
        "select", [{"plan_data": first}, {"plan_data": second}]
    )

    state = SupabaseStateRepository(client).load_state("user-1")

    assert [plan.week_number for plan in state.plans] == [0, 1]
    assert state.plans[1].plan[0].meals[0].macros.calories == 400


def test_save_state_upserts_profile_and_rewrites_collections() -> None:
    client = FakeSupabaseClient()
    state = UserState(
        profile=make_profile(),
        plans=[make_week(0)],
        completed_meals={DateKey(date(2026, 10, 14)): {"B", "A"}},
        alerts=[
            NutritionalAlert(
                id="protein-low-2026-10-14",
                severity="info",
                title="Low protein intake",
                message="Eat more protein",
                date=date(2026, 10, 14),
            )
        ],
    )

    SupabaseStateRepository(client).save_state("user-1", state)

    profile_row = client.tables["user_profiles"].last_payload
    assert profile_row["id"] == "user-1"
    assert profile_row["first_name"] == "Alex"
    assert profile_row["last_name"] == "Martin"
    assert profile_row["gender"] == "female"
    assert profile_row["start_date"] == "2026-10-05"
    plans = client.tables["meal_plans"]
    assert plans.actions == ["delete", "insert"]
    assert plans.last_payload[0]["user_id"] == "user-1"
    assert plans.last_payload[0]["plan_data"]["weekNumber"] == 0
    assert client.tables["completed_meals"].last_payload == [
        {"user_id": "user-1", "plan_id": "2026-10-14", "meal_ids": ["A", "B"]}
    ]
    assert client.tables["nutritional_alerts"].last_payload[0]["type"] == "info"
    assert client.tables["water_intake"].actions == ["delete"]


def test_save_state_without_profile_raises() -> None:
    with pytest.raises(SyncError):
        SupabaseStateRepository(FakeSupabaseClient()).save_state(
            "user-1", UserState()
        )


def test_client_failures_become_sync_errors() -> None:
    client = FakeSupabaseClient()
    client.table("user_profiles").error = RuntimeError("network down")
    repository = SupabaseStateRepository(client)

    with pytest.raises(SyncError, match="network down"):
        repository.load_state("user-1")
    with pytest.raises(SyncError):
        repository.save_state("user-1", UserState(profile=make_profile()))


def test_timestamps_resolve_to_the_local_day() -> None:
    client = FakeSupabaseClient()
    client.table("user_profiles").queue("select", [_profile_row()])
    client.table("tracking_entries").queue(
        "select", [{"date": "2026-10-16T23:30:00-05:00", "weight": 59}]
    )
    client.table("water_intake").queue(
        "select",
        [{"date": "2026-10-16T23:30:00-05:00", "amount": 500, "goal": 2000}],
    )

    in_utc = SupabaseStateRepository(client).load_state("user-1")

    assert in_utc.tracking[0].date == date(2026, 10, 17)
    assert in_utc.water[0].date == date(2026, 10, 17)
    assert in_utc.profile.start_date == date(2026, 10, 5)


def test_timestamps_use_the_configured_zone() -> None:
    client = FakeSupabaseClient()
    client.table("user_profiles").queue("select", [_profile_row()])
    client.table("tracking_entries").queue(
        "select", [{"date": "2026-10-17T02:00:00+00:00", "weight": 59}]
    )
    repository = SupabaseStateRepository(
        client, timezone=ZoneInfo("America/Chicago")
    )

    state = repository.load_state("user-1")

    assert state.tracking[0].date == date(2026, 10, 16)
