"""Pydantic models for API request payloads."""

from datetime import date

from pydantic import BaseModel, Field

from meal_coach.domain.locale import Locale
from meal_coach.domain.profile import CookingLevel
from meal_coach.services.prompts import RegenerationOptions


class SessionRequest(BaseModel):
    """Sign-in payload."""

    user_id: str = Field(min_length=1)


class LocaleRequest(BaseModel):
    """Interface language payload."""

    locale: Locale


class WeightRequest(BaseModel):
    """Weight log payload."""

    weight_kg: float = Field(gt=0)
    day: date | None = None


class GenerateWeekRequest(BaseModel):
    """Weekly plan generation payload."""

    custom_prompt: str | None = None
    week: int | None = Field(default=None, ge=0)


class RegenerationRequest(BaseModel):
    """Overrides for regenerating part of a plan."""

    prompt: str = ""
    budget: float | None = Field(default=None, ge=0)
    cooking_level: CookingLevel | None = None
    max_prep_time: int | None = Field(default=None, ge=1)
    meals_to_add: int | None = Field(default=None, ge=1, le=5)

    def to_options(self) -> RegenerationOptions:
        return RegenerationOptions(
            prompt=self.prompt,
            budget=self.budget,
            cooking_level=self.cooking_level,
            max_prep_time=self.max_prep_time,
            meals_to_add=self.meals_to_add,
        )


class ToggleMealRequest(BaseModel):
    """Consumed-meal toggle payload."""

    meal_name: str = Field(min_length=1)
    day: date | None = None


class WaterRequest(BaseModel):
    """Water log payload; either field may be omitted."""

    amount_ml: int | None = None
    goal_ml: int | None = Field(default=None, gt=0)
    day: date | None = None


class MeasurementRequest(BaseModel):
    """Body measurement payload."""

    day: date
    weight_kg: float | None = Field(default=None, gt=0)
    waist_cm: float | None = Field(default=None, gt=0)
    hips_cm: float | None = Field(default=None, gt=0)
    chest_cm: float | None = Field(default=None, gt=0)
    arms_cm: float | None = Field(default=None, gt=0)
    thighs_cm: float | None = Field(default=None, gt=0)
    body_fat_pct: float | None = Field(default=None, ge=0, le=100)


class ActivityRequest(BaseModel):
    """Activity payload."""

    day: date
    category: str = Field(min_length=1)
    duration_minutes: int
    calories_burned: int
    notes: str | None = None
