"""Plan lifecycle: generate, regenerate and edit days in a user's plan book."""

import logging
from dataclasses import dataclass
from datetime import date

from meal_coach.domain.locale import Locale
from meal_coach.domain.plans import DailyPlan, WeeklyPlan
from meal_coach.domain.profile import UserProfile
from meal_coach.domain.state import UserState
from meal_coach.services.calendar import week_index
from meal_coach.services.generation import MealPlanGenerator
from meal_coach.services.plans import (
    DayStatus,
    PlanBook,
    add_meal,
    day_status,
    extend_meals,
    remove_meal,
    replace_meal,
)
from meal_coach.services.prompts import RegenerationOptions

_logger = logging.getLogger(__name__)


class MissingPlanError(LookupError):
    """Raised when no plan data exists for the requested period."""


@dataclass
class PlanService:
    """Applies generated and manual edits to the plans held in a user state."""

    state: UserState
    generator: MealPlanGenerator

    def book(self) -> PlanBook:
        """Return the user's plans ordered by week index."""
        return PlanBook(list(self.state.plans))

    def current_week(self, today: date) -> int:
        """Return the program week index containing ``today``."""
        return week_index(self._profile().start_date, today)

    def get_day(self, week: int, day_index: int) -> DailyPlan:
        """Return one plan day or raise ``MissingPlanError``."""
        plan = self.book().get(week)
        if plan is None or not 0 <= day_index < len(plan.plan):
            raise MissingPlanError(f"No plan for week {week}, day {day_index}")
        return plan.plan[day_index]

    def get_week(self, week: int) -> WeeklyPlan:
        """Return one weekly plan or raise ``MissingPlanError``."""
        plan = self.book().get(week)
        if plan is None:
            raise MissingPlanError(f"No plan for week {week}")
        return plan

    async def generate_week(
        self,
        locale: Locale,
        today: date,
        custom_prompt: str | None = None,
        week: int | None = None,
    ) -> WeeklyPlan:
        """Generate and store the plan for ``week`` or the current week."""
        profile = self._profile()
        target_week = self.current_week(today) if week is None else week
        plan = await self.generator.generate_week(
            profile, locale, target_week, custom_prompt
        )
        book = self.book()
        book.upsert(plan)
        self.state.plans = book.plans
        _logger.info("Stored generated plan for week %s", target_week)
        return plan

    async def regenerate_day(
        self,
        week: int,
        day_index: int,
        locale: Locale,
        options: RegenerationOptions,
    ) -> DailyPlan:
        """Replace a whole day with a newly generated one."""
        self.get_day(week, day_index)
        day = await self.generator.regenerate_day(
            self._profile(), locale, day_index, options
        )
        return self._store_day(week, day_index, day)

    async def regenerate_meal(  # noqa: PLR0913
        self,
        week: int,
        day_index: int,
        meal_index: int,
        locale: Locale,
        options: RegenerationOptions,
    ) -> DailyPlan:
        """Replace one meal, sized to what the rest of the day leaves."""
        day = self.get_day(week, day_index)
        if not 0 <= meal_index < len(day.meals):
            raise MissingPlanError(f"No meal {meal_index} on day {day_index}")
        meal = await self.generator.regenerate_meal(
            self._profile(), locale, day, meal_index, options
        )
        return self._store_day(week, day_index, replace_meal(day, meal_index, meal))

    async def add_meal(
        self,
        week: int,
        day_index: int,
        locale: Locale,
        options: RegenerationOptions,
    ) -> DailyPlan:
        """Append one generated meal to a day."""
        day = self.get_day(week, day_index)
        meal = await self.generator.generate_additional_meal(
            self._profile(), locale, day, options
        )
        return self._store_day(week, day_index, add_meal(day, meal))

    async def complete_day(
        self,
        week: int,
        day_index: int,
        locale: Locale,
        options: RegenerationOptions,
    ) -> DailyPlan:
        """Fill a day's calorie deficit; a day at or above target is unchanged."""
        day = self.get_day(week, day_index)
        meals = await self.generator.complete_day(
            self._profile(), locale, day, options
        )
        if not meals:
            return day
        return self._store_day(week, day_index, extend_meals(day, meals))

    def remove_meal(self, week: int, day_index: int, meal_index: int) -> DailyPlan:
        """Delete one meal from a day."""
        day = self.get_day(week, day_index)
        if not 0 <= meal_index < len(day.meals):
            raise MissingPlanError(f"No meal {meal_index} on day {day_index}")
        return self._store_day(week, day_index, remove_meal(day, meal_index))

    def status(self, week: int, day_index: int) -> DayStatus:
        """Classify a plan day against the profile's calorie target."""
        day = self.get_day(week, day_index)
        return day_status(day, self._profile().target_calories)

    def _store_day(self, week: int, day_index: int, day: DailyPlan) -> DailyPlan:
        book = self.book()
        book.update_day(week, day_index, day)
        self.state.plans = book.plans
        return day

    def _profile(self) -> UserProfile:
        if self.state.profile is None:
            raise MissingPlanError("No profile")
        return self.state.profile
