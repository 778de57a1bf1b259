"""Domain models for deferred consistency repairs."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

LEDGER_REPAIR = "ledger"
STREAK_REPAIR = "streak"


@dataclass(frozen=True)
class Repair:
    """A follow-up adjustment that failed and must be reconciled."""

    id: UUID
    user_id: UUID
    day: date
    kind: str
    reason: str
    created_at: datetime | None = None
