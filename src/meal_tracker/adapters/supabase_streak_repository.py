"""Supabase repository for logging streaks."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client, PostgrestAPIError

from meal_tracker.domain.errors import StaleWriteError
from meal_tracker.domain.streaks import DEFAULT_FREEZE_CREDITS, Streak
from meal_tracker.services.streaks import StreakRepository

UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseStreakRepository(StreakRepository):
    """Supabase implementation for streak rows with version checks."""

    client: Client

    def get_streak(self, user_id: UUID) -> Streak | None:
        """Return the streak row for a user."""
        response = (
            self.client.table("meal_streaks")
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_streak(response.data[0])

    def insert_streak(self, streak: Streak) -> None:
        """Insert a streak row; an existing row surfaces as a stale write."""
        try:
            response = (
                self.client.table("meal_streaks")
                .insert(_streak_payload(streak))
                .execute()
            )
        except PostgrestAPIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise StaleWriteError(f"Streak for {streak.user_id} exists") from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create streak")

    def update_streak(self, streak: Streak, expected_version: int) -> None:
        """Replace the streak row when its version still matches."""
        response = (
            self.client.table("meal_streaks")
            .update(_streak_payload(streak))
            .eq("user_id", str(streak.user_id))
            .eq("version", expected_version)
            .execute()
        )
        if not response.data:
            raise StaleWriteError(
                f"Streak for {streak.user_id} is no longer at version {expected_version}"
            )


def _streak_payload(streak: Streak) -> dict[str, object]:
    return {
        "user_id": str(streak.user_id),
        "current_streak": streak.current_streak,
        "longest_streak": streak.longest_streak,
        "last_logged_date": (
            streak.last_logged_date.isoformat() if streak.last_logged_date else None
        ),
        "freeze_credits": streak.freeze_credits,
        "total_logged_days": streak.total_logged_days,
        "version": streak.version,
    }


def _parse_streak(row: dict[str, object]) -> Streak:
    last_logged = row.get("last_logged_date")
    freeze_credits = row.get("freeze_credits")
    return Streak(
        user_id=UUID(str(row["user_id"])),
        current_streak=int(row.get("current_streak") or 0),
        longest_streak=int(row.get("longest_streak") or 0),
        last_logged_date=(
            date.fromisoformat(last_logged)
            if isinstance(last_logged, str) and last_logged
            else None
        ),
        freeze_credits=(
            int(freeze_credits) if freeze_credits is not None else DEFAULT_FREEZE_CREDITS
        ),
        total_logged_days=int(row.get("total_logged_days") or 0),
        version=int(row.get("version") or 1),
    )
