"""Tests for metabolic calculations."""

import pytest

from meal_coach.services.metabolism import (
    calculate_metabolism,
    compute_bmi,
    compute_bmr,
    compute_macro_targets,
    compute_target_calories,
    compute_tdee,
)


def test_bmr_uses_sex_constant() -> None:
    assert compute_bmr("male", 30, 180, 80) == pytest.approx(1780.0)
    assert compute_bmr("female", 30, 180, 80) == pytest.approx(1614.0)


def test_tdee_applies_activity_multiplier() -> None:
    assert compute_tdee(1000, "sedentary") == pytest.approx(1200)
    assert compute_tdee(1000, "very_active") == pytest.approx(1900)


def test_target_calories_goal_offsets() -> None:
    assert compute_target_calories(2000, "lose") == pytest.approx(1500)
    assert compute_target_calories(2000, "maintain") == pytest.approx(2000)
    assert compute_target_calories(2000, "gain") == pytest.approx(2300)


def test_calculate_metabolism_for_moderately_active_woman() -> None:
    result = calculate_metabolism(
        sex="female",
        age=30,
        height_cm=165,
        weight_kg=60,
        activity_level="moderate",
        goal="lose",
    )

    assert result.bmr == pytest.approx(1320.25)
    assert result.tdee == pytest.approx(2046.3875)
    assert result.target_calories == pytest.approx(1546.3875)


def test_macro_targets_split_and_round() -> None:
    macros = compute_macro_targets(1546.3875)

    assert macros.protein_g == 116
    assert macros.carbs_g == 155
    assert macros.fat_g == 52


def test_macro_targets_for_zero_calories() -> None:
    macros = compute_macro_targets(0)

    assert (macros.protein_g, macros.carbs_g, macros.fat_g) == (0, 0, 0)


def test_bmi() -> None:
    assert compute_bmi(180, 81) == pytest.approx(25.0)
