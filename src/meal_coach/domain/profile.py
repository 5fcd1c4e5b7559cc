"""User profile domain models."""

from dataclasses import dataclass
from datetime import date
from typing import Literal

Sex = Literal["male", "female"]
ActivityLevel = Literal["sedentary", "light", "moderate", "active", "very_active"]
Goal = Literal["lose", "maintain", "gain"]
CookingLevel = Literal["beginner", "intermediate", "expert"]


@dataclass(frozen=True)
class MetabolicProfile:
    """Derived energy figures for a profile."""

    bmr: float
    tdee: float
    target_calories: float


@dataclass(frozen=True)
class MacroTargets:
    """Daily macronutrient targets in grams."""

    calories: float
    protein_g: int
    carbs_g: int
    fat_g: int


@dataclass(frozen=True)
class PrepTimeLimits:
    """Maximum preparation minutes per meal slot."""

    weekday_lunch: int = 30
    weekday_dinner: int = 45
    weekend_lunch: int = 60
    weekend_dinner: int = 60


@dataclass(frozen=True)
class UserProfile:
    """Onboarding answers plus derived metabolic fields."""

    name: str
    sex: Sex
    age: int
    height_cm: float
    weight_kg: float
    activity_level: ActivityLevel
    goal: Goal
    meals_per_day: int
    daily_budget: float
    cooking_level: CookingLevel
    bmr: float
    tdee: float
    target_calories: float
    start_date: date
    start_weight_kg: float
    goal_weight_kg: float
    goal_timeline_weeks: int
    prep_times: PrepTimeLimits = PrepTimeLimits()
    preferences: str = ""
    notes: str = ""
    remarks: str = ""
