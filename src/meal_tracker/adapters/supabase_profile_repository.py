"""Supabase repository for user profiles."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from meal_tracker.domain.profiles import ActivityLevel, Gender, Goal, UserProfile
from meal_tracker.services.profiles import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for user profiles."""

    client: Client

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the stored profile for a user."""
        response = (
            self.client.table("user_profiles")
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    def upsert_profile(self, profile: UserProfile) -> UserProfile:
        """Create or replace the profile row keyed by user id."""
        updated_at = profile.updated_at or datetime.now(tz=UTC)
        response = (
            self.client.table("user_profiles")
            .upsert(
                {
                    "user_id": str(profile.user_id),
                    "age": profile.age,
                    "weight_kg": profile.weight_kg,
                    "height_cm": profile.height_cm,
                    "gender": profile.gender.value,
                    "activity_level": profile.activity_level.value,
                    "goal": profile.goal.value,
                    "tdee": profile.tdee,
                    "target_calories": profile.target_calories,
                    "target_protein_g": profile.target_protein_g,
                    "target_carbs_g": profile.target_carbs_g,
                    "target_fat_g": profile.target_fat_g,
                    "updated_at": updated_at.isoformat(),
                },
                on_conflict="user_id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save user profile")
        return _parse_profile(response.data[0])


def _parse_profile(row: dict[str, object]) -> UserProfile:
    updated_raw = row.get("updated_at")
    return UserProfile(
        user_id=UUID(str(row["user_id"])),
        age=int(row["age"]),
        weight_kg=float(row["weight_kg"]),
        height_cm=float(row["height_cm"]),
        gender=Gender(row["gender"]),
        activity_level=ActivityLevel(row["activity_level"]),
        goal=Goal(row["goal"]),
        tdee=float(row.get("tdee") or 0.0),
        target_calories=float(row.get("target_calories") or 0.0),
        target_protein_g=float(row.get("target_protein_g") or 0.0),
        target_carbs_g=float(row.get("target_carbs_g") or 0.0),
        target_fat_g=float(row.get("target_fat_g") or 0.0),
        updated_at=(
            datetime.fromisoformat(updated_raw)
            if isinstance(updated_raw, str) and updated_raw
            else None
        ),
    )
