"""Nutrition domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MacroProfile:
    """Calories and macronutrients of a meal, a day or a signed delta."""

    calories: float
    protein_g: float
    fat_g: float
    carbs_g: float


ZERO_MACROS = MacroProfile(calories=0.0, protein_g=0.0, fat_g=0.0, carbs_g=0.0)


def add_macros(left: MacroProfile, right: MacroProfile) -> MacroProfile:
    """Return the field-wise sum of two macro profiles."""
    return MacroProfile(
        calories=left.calories + right.calories,
        protein_g=left.protein_g + right.protein_g,
        fat_g=left.fat_g + right.fat_g,
        carbs_g=left.carbs_g + right.carbs_g,
    )


def subtract_macros(left: MacroProfile, right: MacroProfile) -> MacroProfile:
    """Return the field-wise difference ``left - right``."""
    return add_macros(left, negate_macros(right))


def negate_macros(macros: MacroProfile) -> MacroProfile:
    """Return the macro profile with every field negated."""
    return MacroProfile(
        calories=-macros.calories,
        protein_g=-macros.protein_g,
        fat_g=-macros.fat_g,
        carbs_g=-macros.carbs_g,
    )
