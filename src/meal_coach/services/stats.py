"""Weight progress and consumption history."""

from datetime import date, timedelta

from meal_coach.domain.dates import DateKey
from meal_coach.domain.plans import DailyPlan, MacroNutrients
from meal_coach.domain.profile import UserProfile
from meal_coach.domain.state import UserState
from meal_coach.domain.stats import (
    DailyConsumption,
    ProgressHistory,
    WeightProgress,
    WeightTrend,
)
from meal_coach.services.plans import PlanBook, consumed_totals

HISTORY_DAYS = 7
MAX_HISTORY_DAYS = 90
MAX_STREAK_DAYS = 365
STREAK_LOW_RATIO = 0.80
STREAK_HIGH_RATIO = 1.20


def weight_progress(profile: UserProfile) -> WeightProgress:
    """Return progress from the start weight toward the goal weight.

    Change and remaining weight are positive when they point in the goal's
    direction; ``maintain`` is measured like ``lose``.
    """
    gaining = profile.goal == "gain"
    current = profile.weight_kg
    start = profile.start_weight_kg
    goal = profile.goal_weight_kg
    change = current - start if gaining else start - current
    remaining = goal - current if gaining else current - goal
    total = abs(goal - start)
    percent = min(100.0, max(0.0, abs(change) / total * 100)) if total > 0 else 0.0

    trend: WeightTrend = "stable"
    if profile.goal == "lose" and change > 0:
        trend = "decreasing"
    elif gaining and change > 0:
        trend = "increasing"

    return WeightProgress(
        current_weight_kg=current,
        start_weight_kg=start,
        goal_weight_kg=goal,
        weight_change_kg=change,
        remaining_kg=remaining,
        progress_percent=percent,
        trend=trend,
    )


def progress_history(
    state: UserState, today: date, days: int = HISTORY_DAYS
) -> ProgressHistory:
    """Summarize the last ``days`` days, oldest first, ending with ``today``.

    Raises ``LookupError`` without a profile.
    """
    profile = state.profile
    if profile is None:
        raise LookupError("No profile")
    book = PlanBook(list(state.plans))
    span = min(max(days, 1), MAX_HISTORY_DAYS)

    daily: list[DailyConsumption] = []
    logged = MacroNutrients()
    logged_days = 0
    for offset in range(span - 1, -1, -1):
        day = today - timedelta(days=offset)
        plan_day = _plan_day(book, profile, day)
        completed = _completed(state, day)
        consumed = (
            consumed_totals(plan_day, completed) if plan_day else MacroNutrients()
        )
        eaten = (
            sum(1 for meal in plan_day.meals if meal.name in completed)
            if plan_day
            else 0
        )
        daily.append(
            DailyConsumption(
                day=day,
                calories=consumed.calories,
                protein_g=consumed.protein,
                carbs_g=consumed.carbohydrates,
                fat_g=consumed.fat,
                meals_completed=eaten,
            )
        )
        if plan_day is not None and completed:
            logged = logged + consumed
            logged_days += 1

    return ProgressHistory(
        daily=daily,
        streak_days=streak(state, today),
        avg_protein_g=_average(logged.protein, logged_days),
        avg_carbs_g=_average(logged.carbohydrates, logged_days),
        avg_fat_g=_average(logged.fat, logged_days),
    )


def streak(state: UserState, today: date) -> int:
    """Count consecutive days up to ``today`` eaten within 80-120% of target."""
    profile = state.profile
    if profile is None:
        return 0
    book = PlanBook(list(state.plans))
    low = profile.target_calories * STREAK_LOW_RATIO
    high = profile.target_calories * STREAK_HIGH_RATIO
    count = 0
    for offset in range(MAX_STREAK_DAYS):
        day = today - timedelta(days=offset)
        plan_day = _plan_day(book, profile, day)
        if plan_day is None:
            break
        calories = consumed_totals(plan_day, _completed(state, day)).calories
        if not low <= calories <= high:
            break
        count += 1
    return count


def _plan_day(book: PlanBook, profile: UserProfile, day: date) -> DailyPlan | None:
    if day < profile.start_date:
        return None
    return book.day_for(profile.start_date, day)


def _completed(state: UserState, day: date) -> set[str]:
    return state.completed_meals.get(DateKey.from_date(day), set())


def _average(total: float, count: int) -> int:
    return round(total / count) if count else 0
