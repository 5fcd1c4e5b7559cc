"""Domain models for progress statistics."""

from dataclasses import dataclass
from datetime import date
from typing import Literal

WeightTrend = Literal["increasing", "decreasing", "stable"]


@dataclass(frozen=True)
class WeightProgress:
    """Distance travelled from the start weight toward the goal weight."""

    current_weight_kg: float
    start_weight_kg: float
    goal_weight_kg: float
    weight_change_kg: float
    remaining_kg: float
    progress_percent: float
    trend: WeightTrend


@dataclass(frozen=True)
class DailyConsumption:
    """Macros of the planned meals marked consumed on one day."""

    day: date
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    meals_completed: int


@dataclass(frozen=True)
class ProgressHistory:
    """Recent consumption with streak and macro averages."""

    daily: list[DailyConsumption]
    streak_days: int
    avg_protein_g: int
    avg_carbs_g: int
    avg_fat_g: int
