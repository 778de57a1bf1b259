"""Profile service that keeps targets in sync with biometrics."""

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from meal_tracker.domain.errors import NotFoundError
from meal_tracker.domain.profiles import Biometrics, UserProfile
from meal_tracker.services.macros import calculate_macro_targets, calculate_tdee

_BIOMETRIC_FIELDS = (
    "age",
    "weight_kg",
    "height_cm",
    "gender",
    "activity_level",
    "goal",
)


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the stored profile for a user, if present."""

    def upsert_profile(self, profile: UserProfile) -> UserProfile:
        """Create or replace a user's profile and return it."""


@dataclass
class ProfileService:
    """Application service for profile writes."""

    repository: ProfileRepository

    def get_profile(self, user_id: UUID) -> UserProfile:
        """Return the user's profile or raise NotFoundError."""
        profile = self.repository.get_profile(user_id)
        if profile is None:
            raise NotFoundError("profile", user_id)
        return profile

    def compute_profile(self, user_id: UUID, biometrics: Biometrics) -> UserProfile:
        """Recompute every derived target and persist the full profile."""
        profile = build_profile(user_id, biometrics)
        return self.repository.upsert_profile(profile)

    def update_profile(self, user_id: UUID, changes: dict[str, object]) -> UserProfile:
        """Merge partial biometric changes over the stored profile."""
        existing = self.get_profile(user_id)
        unknown = set(changes) - set(_BIOMETRIC_FIELDS)
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")
        merged = replace(existing.biometrics, **changes)
        return self.compute_profile(user_id, merged)


def build_profile(user_id: UUID, biometrics: Biometrics) -> UserProfile:
    """Return a profile whose targets are derived from ``biometrics``."""
    tdee = calculate_tdee(
        biometrics.weight_kg,
        biometrics.height_cm,
        biometrics.age,
        biometrics.gender,
        biometrics.activity_level,
        biometrics.goal,
    )
    targets = calculate_macro_targets(biometrics.weight_kg, tdee, biometrics.gender)
    return UserProfile(
        user_id=user_id,
        age=biometrics.age,
        weight_kg=biometrics.weight_kg,
        height_cm=biometrics.height_cm,
        gender=biometrics.gender,
        activity_level=biometrics.activity_level,
        goal=biometrics.goal,
        tdee=tdee,
        target_calories=tdee,
        target_protein_g=targets.protein_g,
        target_carbs_g=targets.carbs_g,
        target_fat_g=targets.fat_g,
        updated_at=datetime.now(tz=UTC),
    )
