"""Daily tracking: consumed meals, water, measurements, activities and alerts."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date
from uuid import uuid4

from meal_coach.domain.dates import DateKey
from meal_coach.domain.locale import Locale
from meal_coach.domain.state import UserState
from meal_coach.domain.tracking import (
    Activity,
    AlertSeverity,
    BodyMeasurement,
    NutritionalAlert,
    WaterIntake,
)
from meal_coach.services.calendar import days_between
from meal_coach.services.metabolism import compute_macro_targets
from meal_coach.services.plans import PlanBook, calorie_flags, consumed_totals

DEFAULT_WATER_GOAL_ML = 2000
WATER_CAP_RATIO = 1.5
LOW_PROTEIN_RATIO = 0.70
LOW_PROTEIN_MIN_MEALS = 2
INACTIVE_DAYS = 1

_ALERT_TEXT: dict[Locale, dict[str, tuple[str, str]]] = {
    "fr": {
        "calories-near-goal": (
            "Objectif calorique presque atteint !",
            "Il vous reste {remaining:.0f} calories à consommer aujourd'hui.",
        ),
        "calories-exceeded": (
            "Objectif calorique dépassé",
            "Vous avez dépassé votre objectif de {excess:.0f} calories. "
            "Pensez à adapter vos prochains repas.",
        ),
        "protein-low": (
            "Apport en protéines faible",
            "Vous n'avez consommé que {protein:.0f}g de protéines sur "
            "{protein_goal}g. Privilégiez les sources de protéines pour vos "
            "prochains repas.",
        ),
        "no-meals-recent": (
            "Aucun repas enregistré récemment",
            "Vous n'avez pas enregistré de repas depuis {days} jours. "
            "Pensez à suivre votre alimentation régulièrement.",
        ),
        "perfect-day": (
            "Journée parfaite !",
            "Vous avez atteint votre objectif calorique de manière optimale. "
            "Continuez comme ça !",
        ),
    },
    "en": {
        "calories-near-goal": (
            "Calorie goal almost reached!",
            "You have {remaining:.0f} calories left for today.",
        ),
        "calories-exceeded": (
            "Calorie goal exceeded",
            "You are {excess:.0f} calories over your goal. "
            "Consider adjusting your next meals.",
        ),
        "protein-low": (
            "Low protein intake",
            "You have had only {protein:.0f}g of protein out of {protein_goal}g. "
            "Favour protein sources for your next meals.",
        ),
        "no-meals-recent": (
            "No meals logged recently",
            "You have not logged a meal for {days} days. "
            "Try to track your meals regularly.",
        ),
        "perfect-day": (
            "Perfect day!",
            "You hit your calorie goal right on target. Keep it up!",
        ),
    },
}

_logger = logging.getLogger(__name__)


@dataclass
class TrackingService:
    """Mutates the tracking collections of a user state."""

    state: UserState

    def toggle_meal(self, day: date, meal_name: str) -> bool:
        """Flip the consumed flag for a meal; return the new flag."""
        key = DateKey.from_date(day)
        names = set(self.state.completed_meals.get(key, set()))
        if meal_name in names:
            names.discard(meal_name)
            consumed = False
        else:
            names.add(meal_name)
            consumed = True
        if names:
            self.state.completed_meals[key] = names
        else:
            self.state.completed_meals.pop(key, None)
        return consumed

    def is_consumed(self, day: date, meal_name: str) -> bool:
        """Return whether a meal is marked consumed on a day."""
        key = DateKey.from_date(day)
        return meal_name in self.state.completed_meals.get(key, set())

    def water_for(self, day: date) -> WaterIntake:
        """Return the day's water record, or an empty one with the default goal."""
        for record in self.state.water:
            if record.date == day:
                return record
        return WaterIntake(date=day, amount_ml=0, goal_ml=DEFAULT_WATER_GOAL_ML)

    def log_water(self, day: date, amount_ml: int) -> WaterIntake:
        """Add (or with a negative amount, remove) water for a day.

        The total never drops below zero nor exceeds 150% of the day's goal.
        """
        current = self.water_for(day)
        ceiling = int(current.goal_ml * WATER_CAP_RATIO)
        total = min(max(0, current.amount_ml + amount_ml), ceiling)
        return self._put_water(replace(current, amount_ml=total))

    def set_water_goal(self, day: date, goal_ml: int) -> WaterIntake:
        """Change the water goal for a day, keeping the amount."""
        if goal_ml <= 0:
            raise ValueError("Water goal must be positive")
        return self._put_water(replace(self.water_for(day), goal_ml=goal_ml))

    def upsert_measurement(self, measurement: BodyMeasurement) -> BodyMeasurement:
        """Store a measurement, replacing any other for the same date."""
        records = [m for m in self.state.measurements if m.date != measurement.date]
        records.append(measurement)
        self.state.measurements = sorted(records, key=lambda m: m.date)
        return measurement

    def add_activity(  # noqa: PLR0913
        self,
        day: date,
        category: str,
        duration_minutes: int,
        calories_burned: int,
        notes: str | None = None,
    ) -> Activity:
        """Log an activity; duration and calories are at least 1."""
        activity = Activity(
            id=uuid4().hex,
            date=day,
            category=category,
            duration_minutes=max(1, duration_minutes),
            calories_burned=max(1, calories_burned),
            notes=notes,
        )
        self.state.activities.append(activity)
        return activity

    def update_activity(self, activity: Activity) -> Activity:
        """Replace a stored activity by id."""
        for position, existing in enumerate(self.state.activities):
            if existing.id == activity.id:
                updated = replace(
                    activity,
                    duration_minutes=max(1, activity.duration_minutes),
                    calories_burned=max(1, activity.calories_burned),
                )
                self.state.activities[position] = updated
                return updated
        raise LookupError(f"Unknown activity {activity.id}")

    def delete_activity(self, activity_id: str) -> None:
        """Remove an activity by id."""
        remaining = [a for a in self.state.activities if a.id != activity_id]
        if len(remaining) == len(self.state.activities):
            raise LookupError(f"Unknown activity {activity_id}")
        self.state.activities = remaining

    def activity_calories(self, day: date) -> int:
        """Return calories burned through activities on a day."""
        return sum(a.calories_burned for a in self.state.activities if a.date == day)

    def _put_water(self, record: WaterIntake) -> WaterIntake:
        records = [w for w in self.state.water if w.date != record.date]
        records.append(record)
        self.state.water = sorted(records, key=lambda w: w.date)
        return record


@dataclass
class AlertService:
    """Raises nutrition alerts from the day's consumed meals."""

    state: UserState

    def evaluate(self, today: date, locale: Locale = "en") -> list[NutritionalAlert]:
        """Append any newly triggered alerts for ``today`` and return them.

        Each rule fires at most once per day; an id already present (read or
        not) is never added again.
        """
        profile = self.state.profile
        if profile is None or not self.state.plans:
            return []
        created: list[NutritionalAlert] = []
        existing = {alert.id for alert in self.state.alerts}

        def raise_alert(rule: str, severity: AlertSeverity, **values: object) -> None:
            alert_id = f"{rule}-{DateKey.from_date(today)}"
            if alert_id in existing:
                return
            title, message = _ALERT_TEXT[locale][rule]
            created.append(
                NutritionalAlert(
                    id=alert_id,
                    severity=severity,
                    title=title,
                    message=message.format(**values),
                    date=today,
                )
            )
            existing.add(alert_id)

        day = PlanBook(list(self.state.plans)).day_for(profile.start_date, today)
        if day is not None:
            completed = self.state.completed_meals.get(DateKey.from_date(today), set())
            consumed = consumed_totals(day, completed)
            goal = profile.target_calories
            protein_goal = compute_macro_targets(goal).protein_g
            flags = calorie_flags(consumed.calories, goal)
            if flags.near_goal:
                raise_alert(
                    "calories-near-goal", "success", remaining=goal - consumed.calories
                )
            if flags.exceeded:
                raise_alert(
                    "calories-exceeded", "warning", excess=consumed.calories - goal
                )
            if (
                consumed.protein < protein_goal * LOW_PROTEIN_RATIO
                and len(completed) >= LOW_PROTEIN_MIN_MEALS
            ):
                raise_alert(
                    "protein-low",
                    "info",
                    protein=consumed.protein,
                    protein_goal=protein_goal,
                )
            self._last_meal_rule(today, raise_alert)
            if flags.perfect:
                raise_alert("perfect-day", "success")

        if created:
            self.state.alerts.extend(created)
            _logger.info("Raised %s alert(s) for %s", len(created), today)
        return created

    def mark_read(self, alert_id: str) -> NutritionalAlert:
        """Flag an alert as read."""
        for position, alert in enumerate(self.state.alerts):
            if alert.id == alert_id:
                updated = replace(alert, is_read=True)
                self.state.alerts[position] = updated
                return updated
        raise LookupError(f"Unknown alert {alert_id}")

    def dismiss(self, alert_id: str) -> None:
        """Remove an alert."""
        remaining = [a for a in self.state.alerts if a.id != alert_id]
        if len(remaining) == len(self.state.alerts):
            raise LookupError(f"Unknown alert {alert_id}")
        self.state.alerts = remaining

    def unread(self) -> list[NutritionalAlert]:
        """Return alerts not yet read, newest first."""
        pending = [alert for alert in self.state.alerts if not alert.is_read]
        return sorted(pending, key=lambda alert: alert.date, reverse=True)

    def _last_meal_rule(self, today: date, raise_alert: Callable[..., None]) -> None:
        logged = [key.day for key, names in self.state.completed_meals.items() if names]
        if not logged:
            return
        last = max(logged)
        if last == today:
            return
        idle_days = days_between(last, today)
        if idle_days > INACTIVE_DAYS:
            raise_alert("no-meals-recent", "warning", days=idle_days)
