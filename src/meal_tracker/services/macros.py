"""TDEE and macro target calculations.

BMR uses the Mifflin-St Jeor equation. Only ``male`` gets the male constant;
``female`` and ``other`` both use the female constant and fat ratio. Inputs
are expected to be validated by the caller, so nothing here clamps values:
very low calorie targets can yield negative carbohydrate grams.
"""

import math

from meal_tracker.domain.profiles import (
    ActivityLevel,
    Gender,
    Goal,
    MacroTargets,
)

ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHTLY_ACTIVE: 1.375,
    ActivityLevel.MODERATELY_ACTIVE: 1.55,
    ActivityLevel.VERY_ACTIVE: 1.725,
    ActivityLevel.EXTREMELY_ACTIVE: 1.9,
}

GOAL_ADJUSTMENTS: dict[Goal, int] = {
    Goal.LOSE_WEIGHT: -500,
    Goal.MAINTAIN_WEIGHT: 0,
    Goal.GAIN_WEIGHT: 500,
}

MALE_BMR_OFFSET = 5
NON_MALE_BMR_OFFSET = -161
MALE_FAT_RATIO = 0.30
NON_MALE_FAT_RATIO = 0.35
PROTEIN_G_PER_KG = 2
CALORIES_PER_G_PROTEIN = 4
CALORIES_PER_G_CARBS = 4
CALORIES_PER_G_FAT = 9


def calculate_bmr(
    weight_kg: float, height_cm: float, age: int, gender: Gender
) -> float:
    """Return the basal metabolic rate in kcal/day."""
    offset = MALE_BMR_OFFSET if gender == Gender.MALE else NON_MALE_BMR_OFFSET
    return 10 * weight_kg + 6.25 * height_cm - 5 * age + offset


def calculate_tdee(  # noqa: PLR0913
    weight_kg: float,
    height_cm: float,
    age: int,
    gender: Gender,
    activity_level: ActivityLevel,
    goal: Goal,
) -> int:
    """Return the goal-adjusted total daily energy expenditure."""
    bmr = calculate_bmr(weight_kg, height_cm, age, gender)
    multiplier = ACTIVITY_MULTIPLIERS[activity_level]
    return round_half_up(bmr * multiplier + GOAL_ADJUSTMENTS[goal])


def calculate_macro_targets(
    weight_kg: float, target_calories: float, gender: Gender
) -> MacroTargets:
    """Split a calorie target into protein, fat and carbohydrate grams."""
    protein_g = round_half_up(weight_kg * PROTEIN_G_PER_KG)
    fat_ratio = MALE_FAT_RATIO if gender == Gender.MALE else NON_MALE_FAT_RATIO
    fat_calories = round_half_up(target_calories * fat_ratio)
    fat_g = round_half_up(fat_calories / CALORIES_PER_G_FAT)
    protein_calories = protein_g * CALORIES_PER_G_PROTEIN
    remaining = target_calories - protein_calories - fat_calories
    carbs_g = round_half_up(remaining / CALORIES_PER_G_CARBS)
    return MacroTargets(protein_g=protein_g, carbs_g=carbs_g, fat_g=fat_g)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going towards +infinity."""
    return math.floor(value + 0.5)
