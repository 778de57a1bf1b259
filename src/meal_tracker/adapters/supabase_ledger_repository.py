"""Supabase repository for daily nutrition summaries."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client, PostgrestAPIError

from meal_tracker.domain.errors import StaleWriteError
from meal_tracker.domain.ledger import DailySummary
from meal_tracker.services.ledger import LedgerRepository

UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseLedgerRepository(LedgerRepository):
    """Supabase implementation for daily summaries with version checks."""

    client: Client

    def get_summary(self, user_id: UUID, day: date) -> DailySummary | None:
        """Return the summary row for a day."""
        response = (
            self.client.table("daily_summaries")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("day", day.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_summary(response.data[0])

    def insert_summary(self, summary: DailySummary) -> None:
        """Insert a summary row; a concurrent insert surfaces as a stale write."""
        try:
            response = (
                self.client.table("daily_summaries")
                .insert(_summary_payload(summary))
                .execute()
            )
        except PostgrestAPIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise StaleWriteError(
                    f"Daily summary for {summary.user_id} on {summary.day} exists"
                ) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create daily summary")

    def update_summary(self, summary: DailySummary, expected_version: int) -> None:
        """Replace the summary row when its version still matches."""
        response = (
            self.client.table("daily_summaries")
            .update(_summary_payload(summary))
            .eq("user_id", str(summary.user_id))
            .eq("day", summary.day.isoformat())
            .eq("version", expected_version)
            .execute()
        )
        if not response.data:
            raise StaleWriteError(
                f"Daily summary for {summary.user_id} on {summary.day} "
                f"is no longer at version {expected_version}"
            )

    def delete_summary(self, user_id: UUID, day: date, expected_version: int) -> None:
        """Delete the summary row when its version still matches."""
        response = (
            self.client.table("daily_summaries")
            .delete()
            .eq("user_id", str(user_id))
            .eq("day", day.isoformat())
            .eq("version", expected_version)
            .execute()
        )
        if not response.data:
            raise StaleWriteError(
                f"Daily summary for {user_id} on {day} "
                f"is no longer at version {expected_version}"
            )

    def list_summaries(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailySummary]:
        """Return summaries between two days, inclusive."""
        response = (
            self.client.table("daily_summaries")
            .select("*")
            .eq("user_id", str(user_id))
            .gte("day", start.isoformat())
            .lte("day", end.isoformat())
            .order("day", desc=False)
            .execute()
        )
        return [_parse_summary(row) for row in response.data or []]


def _summary_payload(summary: DailySummary) -> dict[str, object]:
    return {
        "user_id": str(summary.user_id),
        "day": summary.day.isoformat(),
        "total_calories": summary.total_calories,
        "total_protein_g": summary.total_protein_g,
        "total_carbs_g": summary.total_carbs_g,
        "total_fat_g": summary.total_fat_g,
        "meal_count": summary.meal_count,
        "target_calories": summary.target_calories,
        "version": summary.version,
        "applied_mutations": list(summary.applied_mutations),
    }


def _parse_summary(row: dict[str, object]) -> DailySummary:
    applied = row.get("applied_mutations") or []
    return DailySummary(
        user_id=UUID(str(row["user_id"])),
        day=date.fromisoformat(str(row["day"])),
        total_calories=float(row.get("total_calories") or 0.0),
        total_protein_g=float(row.get("total_protein_g") or 0.0),
        total_carbs_g=float(row.get("total_carbs_g") or 0.0),
        total_fat_g=float(row.get("total_fat_g") or 0.0),
        meal_count=int(row.get("meal_count") or 0),
        target_calories=float(row.get("target_calories") or 0.0),
        version=int(row.get("version") or 1),
        applied_mutations=tuple(str(item) for item in applied),
    )
