"""Meal plan generation through a structured-output model."""

import json
import logging
from dataclasses import dataclass
from typing import Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from meal_coach.domain.errors import (
    GenerationError,
    GenerationStructureError,
    GenerationUnavailableError,
)
from meal_coach.domain.locale import WEEKDAYS, Locale
from meal_coach.domain.plans import (
    CategorizedShoppingList,
    DailyPlan,
    GeneratedMeals,
    GeneratedShoppingList,
    GeneratedWeek,
    Meal,
    WeeklyPlan,
)
from meal_coach.domain.profile import UserProfile
from meal_coach.services.plans import recompute_totals
from meal_coach.services.prompts import (
    GenerationRequest,
    RegenerationOptions,
    build_day_completion_request,
    build_day_request,
    build_meal_addition_request,
    build_meal_replacement_request,
    build_shopping_list_request,
    build_week_request,
)

DAYS_IN_PLAN = 7

_logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class StructuredGenerationClient(Protocol):
    """Interface for schema-constrained text generation."""

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
        """Return the raw JSON text produced for the prompt."""


@dataclass
class MealPlanGenerator:
    """Builds generation requests and validates what comes back."""

    client: StructuredGenerationClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def generate_week(
        self,
        profile: UserProfile,
        locale: Locale,
        week_number: int,
        custom_prompt: str | None = None,
    ) -> WeeklyPlan:
        """Generate a full seven-day plan for a program week."""
        request = build_week_request(profile, locale, custom_prompt)
        week = await self._run(request, GeneratedWeek, locale)
        if len(week.plan) != DAYS_IN_PLAN:
            raise GenerationStructureError(
                f"Expected {DAYS_IN_PLAN} days, received {len(week.plan)}", locale
            )
        days = [recompute_totals(day) for day in week.plan]
        for day in days:
            if len(day.meals) != profile.meals_per_day:
                _logger.warning(
                    "Generated %s has %s meals, expected %s",
                    day.day_of_week,
                    len(day.meals),
                    profile.meals_per_day,
                )
        return WeeklyPlan(week_number=week_number, plan=days)

    async def regenerate_day(
        self,
        profile: UserProfile,
        locale: Locale,
        day_index: int,
        options: RegenerationOptions,
    ) -> DailyPlan:
        """Generate a replacement for one weekday."""
        day_label = WEEKDAYS[locale][day_index]
        request = build_day_request(profile, locale, day_label, options)
        day = await self._run(request, DailyPlan, locale)
        return recompute_totals(day.model_copy(update={"day_of_week": day_label}))

    async def regenerate_meal(
        self,
        profile: UserProfile,
        locale: Locale,
        day: DailyPlan,
        index: int,
        options: RegenerationOptions,
    ) -> Meal:
        """Generate a replacement for the meal at ``index``."""
        request = build_meal_replacement_request(profile, locale, day, index, options)
        return await self._run(request, Meal, locale)

    async def generate_additional_meal(
        self,
        profile: UserProfile,
        locale: Locale,
        day: DailyPlan,
        options: RegenerationOptions,
    ) -> Meal:
        """Generate one extra meal sized to the day's residual calories."""
        request = build_meal_addition_request(profile, locale, day, options)
        return await self._run(request, Meal, locale)

    async def complete_day(
        self,
        profile: UserProfile,
        locale: Locale,
        day: DailyPlan,
        options: RegenerationOptions,
    ) -> list[Meal]:
        """Generate meals that fill the day's deficit; empty when none."""
        request = build_day_completion_request(profile, locale, day, options)
        if request is None:
            return []
        result = await self._run(request, GeneratedMeals, locale)
        return result.meals

    async def generate_shopping_list(
        self, plan: WeeklyPlan, locale: Locale
    ) -> list[CategorizedShoppingList]:
        """Ask the model to consolidate and categorize a plan's ingredients."""
        request = build_shopping_list_request(plan, locale)
        if request is None:
            return []
        result = await self._run(request, GeneratedShoppingList, locale)
        return result.shopping_list

    async def _run(
        self, request: GenerationRequest, result_type: type[_ModelT], locale: Locale
    ) -> _ModelT:
        try:
            raw = await self.client.generate(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=request.prompt,
                schema_name=request.name,
                schema=request.schema,
            )
        except GenerationError:
            raise
        except Exception as exc:
            _logger.warning("Generation %s failed: %s", request.name, exc)
            raise GenerationUnavailableError(str(exc), locale) from exc
        return _parse(raw, result_type, request.name, locale)


def _parse(
    raw: str, result_type: type[_ModelT], name: str, locale: Locale
) -> _ModelT:
    """Parse and validate a JSON reply."""
    try:
        payload = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as exc:
        _logger.warning("Generation %s returned non-JSON output", name)
        raise GenerationStructureError(f"Invalid JSON: {exc}", locale) from exc
    try:
        return result_type.model_validate(payload)
    except ValidationError as exc:
        _logger.warning("Generation %s returned unexpected shape", name)
        raise GenerationStructureError(str(exc), locale) from exc
