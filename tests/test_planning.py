"""Tests for the plan lifecycle service."""

import asyncio
import json
from datetime import date

import pytest

from meal_coach.domain.state import UserState
from meal_coach.services.generation import MealPlanGenerator
from meal_coach.services.planning import MissingPlanError, PlanService
from meal_coach.services.prompts import RegenerationOptions
from tests.conftest import (
    FakeGenerationClient,
    make_meal,
    make_profile,
    make_week,
    week_payload,
)


@pytest.fixture
def state() -> UserState:
    return UserState(profile=make_profile(), plans=[make_week(0), make_week(1)])


@pytest.fixture
def service(state: UserState, generator: MealPlanGenerator) -> PlanService:
    return PlanService(state=state, generator=generator)


def test_generate_week_stores_current_week(
    generation_client: FakeGenerationClient, generator: MealPlanGenerator
) -> None:
    state = UserState(profile=make_profile(start_date=date(2026, 10, 5)))
    service = PlanService(state=state, generator=generator)
    generation_client.replies.append(week_payload())

    plan = asyncio.run(service.generate_week("en", today=date(2026, 10, 21)))

    assert plan.week_number == 2
    assert [p.week_number for p in state.plans] == [2]


def test_generate_week_replaces_existing_week(
    service: PlanService,
    state: UserState,
    generation_client: FakeGenerationClient,
) -> None:
    generation_client.replies.append(week_payload(calories=300))

    asyncio.run(
        service.generate_week("en", today=date(2026, 10, 5), week=1)
    )

    assert [p.week_number for p in state.plans] == [0, 1]
    assert state.plans[1].plan[0].daily_totals.calories == pytest.approx(900)


def test_generate_week_requires_profile(generator: MealPlanGenerator) -> None:
    service = PlanService(state=UserState(), generator=generator)

    with pytest.raises(MissingPlanError):
        asyncio.run(service.generate_week("en", today=date(2026, 10, 5)))


def test_get_day_for_missing_week_raises(service: PlanService) -> None:
    with pytest.raises(MissingPlanError):
        service.get_day(5, 0)
    with pytest.raises(MissingPlanError):
        service.get_day(0, 7)


def test_regenerate_meal_updates_stored_day(
    service: PlanService,
    state: UserState,
    generation_client: FakeGenerationClient,
) -> None:
    generation_client.replies.append(
        make_meal("Tofu bowl", 450).model_dump_json(by_alias=True)
    )

    day = asyncio.run(
        service.regenerate_meal(1, 2, 1, "en", RegenerationOptions())
    )

    assert day.meals[1].name == "Tofu bowl"
    assert day.daily_totals.calories == pytest.approx(1450)
    assert state.plans[1].plan[2] == day
    assert "about 500 kcal" in generation_client.calls[0]["prompt"]


def test_regenerate_meal_rejects_bad_meal_index(service: PlanService) -> None:
    with pytest.raises(MissingPlanError):
        asyncio.run(service.regenerate_meal(0, 0, 9, "en", RegenerationOptions()))


def test_add_meal_appends_generated_meal(
    service: PlanService, generation_client: FakeGenerationClient
) -> None:
    generation_client.replies.append(
        make_meal("Apple", 80, meal_type="Snack").model_dump_json(by_alias=True)
    )

    day = asyncio.run(service.add_meal(0, 0, "en", RegenerationOptions()))

    assert [meal.name for meal in day.meals][-1] == "Apple"
    assert day.daily_totals.calories == pytest.approx(1580)


def test_complete_day_without_deficit_is_unchanged(
    service: PlanService, generation_client: FakeGenerationClient
) -> None:
    before = service.get_day(0, 0)

    day = asyncio.run(service.complete_day(0, 0, "en", RegenerationOptions()))

    assert day == before
    assert generation_client.calls == []


def test_complete_day_fills_deficit(
    service: PlanService,
    state: UserState,
    generation_client: FakeGenerationClient,
) -> None:
    service.remove_meal(0, 3, 2)
    generation_client.replies.append(
        json.dumps(
            {"meals": [make_meal("Stew", 500).model_dump(by_alias=True)]}
        )
    )

    day = asyncio.run(service.complete_day(0, 3, "en", RegenerationOptions()))

    assert len(day.meals) == 3
    assert state.plans[0].plan[3].daily_totals.calories == pytest.approx(1500)


def test_remove_meal_and_status(service: PlanService) -> None:
    assert service.status(0, 1) == "on_target"

    day = service.remove_meal(0, 1, 0)

    assert len(day.meals) == 2
    assert service.status(0, 1) == "under"


def test_current_week(service: PlanService) -> None:
    assert service.current_week(date(2026, 10, 4)) == 0
    assert service.current_week(date(2026, 10, 12)) == 1
