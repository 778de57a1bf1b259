"""Domain models for logging streaks."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

DEFAULT_FREEZE_CREDITS = 2


@dataclass(frozen=True)
class Streak:
    """Consecutive-day logging streak for a user."""

    user_id: UUID
    current_streak: int = 0
    longest_streak: int = 0
    last_logged_date: date | None = None
    freeze_credits: int = DEFAULT_FREEZE_CREDITS
    total_logged_days: int = 0
    version: int = 1


@dataclass(frozen=True)
class StreakCalendar:
    """Logged days of one month alongside the streak counters."""

    year: int
    month: int
    logged_days: list[date]
    current_streak: int
    longest_streak: int
    freeze_credits: int
