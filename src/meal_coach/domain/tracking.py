"""Domain models for daily tracking records."""

from dataclasses import dataclass
from datetime import date
from typing import Literal

AlertSeverity = Literal["warning", "info", "success"]


@dataclass(frozen=True)
class TrackingEntry:
    """Weight recorded on a date."""

    date: date
    weight_kg: float


@dataclass(frozen=True)
class WaterIntake:
    """Water consumed on a date against that day's goal."""

    date: date
    amount_ml: int
    goal_ml: int = 2000


@dataclass(frozen=True)
class BodyMeasurement:
    """Optional body measurements taken on a date."""

    date: date
    weight_kg: float | None = None
    waist_cm: float | None = None
    hips_cm: float | None = None
    chest_cm: float | None = None
    arms_cm: float | None = None
    thighs_cm: float | None = None
    body_fat_pct: float | None = None


@dataclass(frozen=True)
class NutritionalAlert:
    """Alert raised by a nutrition rule for a given day."""

    id: str
    severity: AlertSeverity
    title: str
    message: str
    date: date
    is_read: bool = False


@dataclass(frozen=True)
class Activity:
    """Physical activity logged by the user."""

    id: str
    date: date
    category: str
    duration_minutes: int
    calories_burned: int
    notes: str | None = None
