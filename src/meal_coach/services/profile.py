"""Profile onboarding, edits and weight logging."""

import logging
from dataclasses import dataclass, replace
from datetime import date

from pydantic import BaseModel, Field

from meal_coach.domain.profile import (
    ActivityLevel,
    CookingLevel,
    Goal,
    PrepTimeLimits,
    Sex,
    UserProfile,
)
from meal_coach.domain.state import UserState
from meal_coach.domain.tracking import TrackingEntry
from meal_coach.services.metabolism import calculate_metabolism

_logger = logging.getLogger(__name__)


class ProfileInput(BaseModel):
    """Validated onboarding or profile edit payload."""

    name: str = Field(min_length=1)
    sex: Sex
    age: int = Field(ge=1, le=120)
    height_cm: float = Field(gt=0)
    weight_kg: float = Field(gt=0)
    activity_level: ActivityLevel
    goal: Goal
    meals_per_day: int = Field(default=3, ge=1, le=8)
    daily_budget: float = Field(default=0, ge=0)
    cooking_level: CookingLevel = "intermediate"
    goal_weight_kg: float | None = Field(default=None, gt=0)
    goal_timeline_weeks: int = Field(default=12, ge=1)
    weekday_lunch_minutes: int = Field(default=30, ge=1)
    weekday_dinner_minutes: int = Field(default=45, ge=1)
    weekend_lunch_minutes: int = Field(default=60, ge=1)
    weekend_dinner_minutes: int = Field(default=60, ge=1)
    preferences: str = ""
    notes: str = ""
    remarks: str = ""

    def prep_times(self) -> PrepTimeLimits:
        return PrepTimeLimits(
            weekday_lunch=self.weekday_lunch_minutes,
            weekday_dinner=self.weekday_dinner_minutes,
            weekend_lunch=self.weekend_lunch_minutes,
            weekend_dinner=self.weekend_dinner_minutes,
        )


def rederive(profile: UserProfile) -> UserProfile:
    """Return the profile with BMR, TDEE and target recomputed."""
    metabolism = calculate_metabolism(
        sex=profile.sex,
        age=profile.age,
        height_cm=profile.height_cm,
        weight_kg=profile.weight_kg,
        activity_level=profile.activity_level,
        goal=profile.goal,
    )
    return replace(
        profile,
        bmr=metabolism.bmr,
        tdee=metabolism.tdee,
        target_calories=metabolism.target_calories,
    )


@dataclass
class ProfileService:
    """Application service for the profile held in a user state."""

    state: UserState

    def create_profile(self, payload: ProfileInput, today: date) -> UserProfile:
        """Create the profile from onboarding answers."""
        profile = rederive(
            UserProfile(
                name=payload.name,
                sex=payload.sex,
                age=payload.age,
                height_cm=payload.height_cm,
                weight_kg=payload.weight_kg,
                activity_level=payload.activity_level,
                goal=payload.goal,
                meals_per_day=payload.meals_per_day,
                daily_budget=payload.daily_budget,
                cooking_level=payload.cooking_level,
                bmr=0,
                tdee=0,
                target_calories=0,
                start_date=today,
                start_weight_kg=payload.weight_kg,
                goal_weight_kg=payload.goal_weight_kg or payload.weight_kg,
                goal_timeline_weeks=payload.goal_timeline_weeks,
                prep_times=payload.prep_times(),
                preferences=payload.preferences,
                notes=payload.notes,
                remarks=payload.remarks,
            )
        )
        self.state.profile = profile
        self.state.plans = []
        self.state.completed_meals = {}
        self.state.tracking = [TrackingEntry(date=today, weight_kg=payload.weight_kg)]
        _logger.info("Profile created, target %.0f kcal", profile.target_calories)
        return profile

    def update_profile(self, payload: ProfileInput) -> UserProfile:
        """Apply edits to the existing profile, keeping its start fields."""
        current = self.state.profile
        if current is None:
            raise LookupError("No profile to update")
        profile = rederive(
            replace(
                current,
                name=payload.name,
                sex=payload.sex,
                age=payload.age,
                height_cm=payload.height_cm,
                weight_kg=payload.weight_kg,
                activity_level=payload.activity_level,
                goal=payload.goal,
                meals_per_day=payload.meals_per_day,
                daily_budget=payload.daily_budget,
                cooking_level=payload.cooking_level,
                goal_weight_kg=payload.goal_weight_kg or current.goal_weight_kg,
                goal_timeline_weeks=payload.goal_timeline_weeks,
                prep_times=payload.prep_times(),
                preferences=payload.preferences,
                notes=payload.notes,
                remarks=payload.remarks,
            )
        )
        self.state.profile = profile
        return profile

    def record_weight(self, weight_kg: float, today: date) -> UserProfile:
        """Log today's weight and re-derive the targets from it."""
        current = self.state.profile
        if current is None:
            raise LookupError("No profile to update")
        if weight_kg <= 0:
            raise ValueError("Weight must be positive")
        profile = rederive(replace(current, weight_kg=weight_kg))
        self.state.profile = profile
        entries = [entry for entry in self.state.tracking if entry.date != today]
        entries.append(TrackingEntry(date=today, weight_kg=weight_kg))
        self.state.tracking = sorted(entries, key=lambda entry: entry.date)
        _logger.info("Recorded weight %.1f kg for %s", weight_kg, today)
        return profile

    def reset(self) -> None:
        """Remove the profile and everything that depends on it."""
        self.state.clear()
        _logger.info("Profile reset")
