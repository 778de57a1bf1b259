"""Supabase repository for deferred ledger and streak repairs."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from supabase import Client

from meal_tracker.domain.repairs import Repair
from meal_tracker.services.nutrition import RepairRepository


@dataclass
class SupabaseRepairRepository(RepairRepository):
    """Supabase implementation for the repair queue."""

    client: Client

    def record_repair(self, user_id: UUID, day: date, kind: str, reason: str) -> Repair:
        """Store a repair and return it."""
        response = (
            self.client.table("ledger_repairs")
            .insert(
                {
                    "user_id": str(user_id),
                    "day": day.isoformat(),
                    "kind": kind,
                    "reason": reason,
                    "created_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to record repair")
        return _parse_repair(response.data[0])

    def list_repairs(self, limit: int) -> list[Repair]:
        """Return the oldest open repairs."""
        response = (
            self.client.table("ledger_repairs")
            .select("*")
            .order("created_at", desc=False)
            .limit(limit)
            .execute()
        )
        return [_parse_repair(row) for row in response.data or []]

    def resolve_repair(self, repair_id: UUID) -> None:
        """Remove a reconciled repair."""
        self.client.table("ledger_repairs").delete().eq("id", str(repair_id)).execute()


def _parse_repair(row: dict[str, object]) -> Repair:
    created_raw = row.get("created_at")
    return Repair(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        day=date.fromisoformat(str(row["day"])),
        kind=str(row.get("kind", "")),
        reason=str(row.get("reason", "")),
        created_at=(
            datetime.fromisoformat(created_raw)
            if isinstance(created_raw, str) and created_raw
            else None
        ),
    )
