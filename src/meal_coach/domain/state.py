"""In-memory snapshot of everything a user owns."""

from dataclasses import dataclass, field

from meal_coach.domain.dates import DateKey
from meal_coach.domain.plans import WeeklyPlan
from meal_coach.domain.profile import UserProfile
from meal_coach.domain.tracking import (
    Activity,
    BodyMeasurement,
    NutritionalAlert,
    TrackingEntry,
    WaterIntake,
)


@dataclass
class UserState:
    """Mutable per-user state mirrored to local and remote storage."""

    profile: UserProfile | None = None
    plans: list[WeeklyPlan] = field(default_factory=list)
    tracking: list[TrackingEntry] = field(default_factory=list)
    completed_meals: dict[DateKey, set[str]] = field(default_factory=dict)
    water: list[WaterIntake] = field(default_factory=list)
    measurements: list[BodyMeasurement] = field(default_factory=list)
    alerts: list[NutritionalAlert] = field(default_factory=list)
    activities: list[Activity] = field(default_factory=list)

    def clear(self) -> None:
        """Drop the profile and every dependent collection."""
        self.profile = None
        self.plans = []
        self.tracking = []
        self.completed_meals = {}
        self.water = []
        self.measurements = []
        self.alerts = []
        self.activities = []

    def replace_with(self, other: "UserState", keep_activities: bool = False) -> None:
        """Adopt another state's contents in place."""
        activities = self.activities
        self.profile = other.profile
        self.plans = list(other.plans)
        self.tracking = list(other.tracking)
        self.completed_meals = {
            key: set(names) for key, names in other.completed_meals.items()
        }
        self.water = list(other.water)
        self.measurements = list(other.measurements)
        self.alerts = list(other.alerts)
        self.activities = activities if keep_activities else list(other.activities)
