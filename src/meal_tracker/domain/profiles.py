"""Domain models for user profiles and targets."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class Gender(StrEnum):
    """Gender used by the BMR formula."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(StrEnum):
    """Self-reported activity level."""

    SEDENTARY = "sedentary"
    LIGHTLY_ACTIVE = "lightly_active"
    MODERATELY_ACTIVE = "moderately_active"
    VERY_ACTIVE = "very_active"
    EXTREMELY_ACTIVE = "extremely_active"


class Goal(StrEnum):
    """Weight goal applied on top of TDEE."""

    LOSE_WEIGHT = "lose_weight"
    MAINTAIN_WEIGHT = "maintain_weight"
    GAIN_WEIGHT = "gain_weight"


@dataclass(frozen=True)
class Biometrics:
    """Inputs to the TDEE and macro calculation."""

    age: int
    weight_kg: float
    height_cm: float
    gender: Gender
    activity_level: ActivityLevel
    goal: Goal


@dataclass(frozen=True)
class MacroTargets:
    """Daily macro gram targets."""

    protein_g: int
    carbs_g: int
    fat_g: int


@dataclass(frozen=True)
class UserProfile:
    """Stored profile with targets derived from the biometrics."""

    user_id: UUID
    age: int
    weight_kg: float
    height_cm: float
    gender: Gender
    activity_level: ActivityLevel
    goal: Goal
    tdee: float
    target_calories: float
    target_protein_g: float
    target_carbs_g: float
    target_fat_g: float
    updated_at: datetime | None = None

    @property
    def biometrics(self) -> Biometrics:
        """Return the biometric inputs of this profile."""
        return Biometrics(
            age=self.age,
            weight_kg=self.weight_kg,
            height_cm=self.height_cm,
            gender=self.gender,
            activity_level=self.activity_level,
            goal=self.goal,
        )
