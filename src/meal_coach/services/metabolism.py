"""Metabolic calculations for energy and macro targets."""

from meal_coach.domain.profile import (
    ActivityLevel,
    Goal,
    MacroTargets,
    MetabolicProfile,
    Sex,
)

ACTIVITY_MULTIPLIERS: dict[str, float] = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very_active": 1.9,
}

GOAL_OFFSETS: dict[str, float] = {
    "lose": -500.0,
    "maintain": 0.0,
    "gain": 300.0,
}

PROTEIN_SHARE = 0.30
CARBS_SHARE = 0.40
FAT_SHARE = 0.30
KCAL_PER_G_PROTEIN = 4
KCAL_PER_G_CARBS = 4
KCAL_PER_G_FAT = 9


def compute_bmr(sex: Sex, age: int, height_cm: float, weight_kg: float) -> float:
    """Return basal metabolic rate using Mifflin-St Jeor."""
    bmr = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return bmr + (5 if sex == "male" else -161)


def compute_tdee(bmr: float, activity_level: ActivityLevel) -> float:
    """Scale BMR by the activity multiplier."""
    return bmr * ACTIVITY_MULTIPLIERS[activity_level]


def compute_target_calories(tdee: float, goal: Goal) -> float:
    """Apply the fixed goal offset to TDEE."""
    return tdee + GOAL_OFFSETS[goal]


def compute_macro_targets(target_calories: float) -> MacroTargets:
    """Split target calories 30/40/30 into protein, carbs and fat grams."""
    return MacroTargets(
        calories=target_calories,
        protein_g=round(PROTEIN_SHARE * target_calories / KCAL_PER_G_PROTEIN),
        carbs_g=round(CARBS_SHARE * target_calories / KCAL_PER_G_CARBS),
        fat_g=round(FAT_SHARE * target_calories / KCAL_PER_G_FAT),
    )


def calculate_metabolism(  # noqa: PLR0913
    *,
    sex: Sex,
    age: int,
    height_cm: float,
    weight_kg: float,
    activity_level: ActivityLevel,
    goal: Goal,
) -> MetabolicProfile:
    """Return BMR, TDEE and target calories for the given inputs."""
    bmr = compute_bmr(sex, age, height_cm, weight_kg)
    tdee = compute_tdee(bmr, activity_level)
    return MetabolicProfile(
        bmr=bmr,
        tdee=tdee,
        target_calories=compute_target_calories(tdee, goal),
    )


def compute_bmi(height_cm: float, weight_kg: float) -> float:
    """Return body mass index."""
    height_m = height_cm / 100
    return weight_kg / (height_m * height_m)
