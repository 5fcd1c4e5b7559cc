"""Meal plan consistency: totals, mutations and target classification."""

from bisect import insort
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Literal

from meal_coach.domain.plans import DailyPlan, MacroNutrients, Meal, WeeklyPlan
from meal_coach.services.calendar import week_index, weekday_index

DayStatus = Literal["under", "on_target", "over"]

UNDER_TARGET_RATIO = 0.90
OVER_TARGET_RATIO = 1.10
NEAR_GOAL_RATIO = 0.90
EXCEEDED_RATIO = 1.10
PERFECT_LOW_RATIO = 0.95
PERFECT_HIGH_RATIO = 1.05


@dataclass(frozen=True)
class CalorieFlags:
    """Independent threshold checks used by alert messages."""

    near_goal: bool
    exceeded: bool
    perfect: bool


def sum_macros(meals: Iterable[Meal]) -> MacroNutrients:
    """Return the elementwise sum of meal macros."""
    total = MacroNutrients()
    for meal in meals:
        total = total + meal.macros
    return total


def recompute_totals(day: DailyPlan) -> DailyPlan:
    """Return the day with totals recomputed from its meals."""
    return day.model_copy(update={"daily_totals": sum_macros(day.meals)})


def add_meal(day: DailyPlan, meal: Meal) -> DailyPlan:
    """Append a meal and refresh totals."""
    return extend_meals(day, [meal])


def extend_meals(day: DailyPlan, meals: Iterable[Meal]) -> DailyPlan:
    """Append several meals and refresh totals."""
    return _with_meals(day, [*day.meals, *meals])


def replace_meal(day: DailyPlan, index: int, meal: Meal) -> DailyPlan:
    """Replace the meal at ``index`` and refresh totals."""
    _check_index(day, index)
    meals = list(day.meals)
    meals[index] = meal
    return _with_meals(day, meals)


def remove_meal(day: DailyPlan, index: int) -> DailyPlan:
    """Remove the meal at ``index`` and refresh totals."""
    _check_index(day, index)
    meals = list(day.meals)
    del meals[index]
    return _with_meals(day, meals)


def classify_day(total_calories: float, target_calories: float) -> DayStatus:
    """Classify a day's calories against the target."""
    if target_calories <= 0:
        return "over" if total_calories > 0 else "on_target"
    ratio = total_calories / target_calories
    if ratio < UNDER_TARGET_RATIO:
        return "under"
    if ratio > OVER_TARGET_RATIO:
        return "over"
    return "on_target"


def day_status(day: DailyPlan, target_calories: float) -> DayStatus:
    """Classify a plan day; an empty day is always under target."""
    if not day.meals:
        return "under"
    return classify_day(day.daily_totals.calories, target_calories)


def calorie_flags(total_calories: float, target_calories: float) -> CalorieFlags:
    """Evaluate the near-goal, exceeded and perfect thresholds."""
    return CalorieFlags(
        near_goal=NEAR_GOAL_RATIO * target_calories
        <= total_calories
        < target_calories,
        exceeded=total_calories > EXCEEDED_RATIO * target_calories,
        perfect=PERFECT_LOW_RATIO * target_calories
        <= total_calories
        <= PERFECT_HIGH_RATIO * target_calories,
    )


def macro_percentage(value: float, target: float) -> float:
    """Return progress toward a target in percent, zero for a zero target."""
    if target <= 0:
        return 0.0
    return value / target * 100


def consumed_totals(day: DailyPlan, completed_names: set[str]) -> MacroNutrients:
    """Sum macros of the meals marked consumed."""
    return sum_macros(meal for meal in day.meals if meal.name in completed_names)


@dataclass
class PlanBook:
    """Weekly plans ordered by week index, one plan per index."""

    plans: list[WeeklyPlan] = field(default_factory=list)

    def __post_init__(self) -> None:
        by_week: dict[int, WeeklyPlan] = {}
        for plan in self.plans:
            by_week[plan.week_number] = plan
        self.plans = sorted(by_week.values(), key=lambda plan: plan.week_number)

    def get(self, week: int) -> WeeklyPlan | None:
        """Return the plan for a week index."""
        for plan in self.plans:
            if plan.week_number == week:
                return plan
        return None

    def upsert(self, plan: WeeklyPlan) -> None:
        """Insert a plan, replacing any plan with the same week index."""
        self.plans = [p for p in self.plans if p.week_number != plan.week_number]
        insort(self.plans, plan, key=lambda item: item.week_number)

    def update_day(self, week: int, day_index: int, day: DailyPlan) -> WeeklyPlan:
        """Store a modified day, raising ``LookupError`` if the week is missing."""
        plan = self.get(week)
        if plan is None:
            raise LookupError(f"No plan for week {week}")
        days = list(plan.plan)
        days[day_index] = day
        updated = plan.model_copy(update={"plan": days})
        self.upsert(updated)
        return updated

    def day_for(self, start_date: date, day: date) -> DailyPlan | None:
        """Return the plan day shown for a calendar date, if any."""
        plan = self.get(week_index(start_date, day))
        if plan is None:
            return None
        index = weekday_index(day)
        if index >= len(plan.plan):
            return None
        return plan.plan[index]


def _with_meals(day: DailyPlan, meals: list[Meal]) -> DailyPlan:
    return day.model_copy(update={"meals": meals, "daily_totals": sum_macros(meals)})


def _check_index(day: DailyPlan, index: int) -> None:
    if not 0 <= index < len(day.meals):
        raise IndexError(f"Meal index {index} out of range for {day.day_of_week}")
