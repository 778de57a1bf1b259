"""Streak state machine for daily meal logging.

A user moves from having no streak row, to an active streak, to a broken
one and back. Each distinct logged day is folded in once by
``advance_streak``; logging again on the same day, or logging a day earlier
than the last recorded one, leaves the streak untouched.

Freeze credits are a counter only: spending one does not move
``last_logged_date``, so it does not bridge a gap by itself.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date
from typing import Protocol
from uuid import UUID

from meal_tracker.domain.errors import (
    InsufficientCreditError,
    NotFoundError,
    StaleWriteError,
)
from meal_tracker.domain.streaks import DEFAULT_FREEZE_CREDITS, Streak

_logger = logging.getLogger(__name__)


class StreakRepository(Protocol):
    """Persistence interface for streak rows.

    ``update_streak`` must only write when the stored version equals
    ``expected_version`` and ``insert_streak`` must fail when the user already
    has a row; both raise StaleWriteError.
    """

    def get_streak(self, user_id: UUID) -> Streak | None:
        """Return the streak row for a user, if present."""

    def insert_streak(self, streak: Streak) -> None:
        """Insert a new streak row."""

    def update_streak(self, streak: Streak, expected_version: int) -> None:
        """Replace a streak row if its version matches."""


@dataclass
class StreakTracker:
    """Application service for streak transitions."""

    repository: StreakRepository
    write_conflict_retries: int = 3

    def get_streak(self, user_id: UUID) -> Streak:
        """Return the user's streak or raise NotFoundError."""
        streak = self.repository.get_streak(user_id)
        if streak is None:
            raise NotFoundError("streak", user_id)
        return streak

    def initialize(self, user_id: UUID) -> Streak:
        """Create an empty streak row unless one already exists."""
        existing = self.repository.get_streak(user_id)
        if existing is not None:
            return existing
        streak = Streak(user_id=user_id)
        try:
            self.repository.insert_streak(streak)
        except StaleWriteError:
            return self.get_streak(user_id)
        return streak

    def get_or_create(self, user_id: UUID) -> Streak:
        """Return the user's streak, creating an empty one when missing."""
        return self.initialize(user_id)

    def on_day_logged(self, user_id: UUID, day: date) -> Streak:
        """Advance the streak for a day that received a meal."""
        return self._transition(
            user_id, lambda current: advance_streak(current, user_id, day)
        )

    def use_freeze_credit(self, user_id: UUID) -> Streak:
        """Spend one freeze credit."""
        return self._transition(
            user_id, lambda current: spend_freeze_credit(current, user_id)
        )

    def reset_current_streak(self, user_id: UUID) -> Streak:
        """Zero the current streak while keeping the longest one."""
        return self._transition(
            user_id, lambda current: reset_streak(current, user_id)
        )

    def _transition(
        self, user_id: UUID, step: Callable[[Streak | None], Streak]
    ) -> Streak:
        for attempt in range(self.write_conflict_retries + 1):
            current = self.repository.get_streak(user_id)
            updated = step(current)
            try:
                if current is None:
                    self.repository.insert_streak(updated)
                elif updated is not current:
                    self.repository.update_streak(updated, current.version)
            except StaleWriteError:
                _logger.info(
                    "Streak write conflict for %s (attempt %s)", user_id, attempt + 1
                )
                continue
            return updated
        raise StaleWriteError(f"Streak for {user_id} kept changing")


def advance_streak(streak: Streak | None, user_id: UUID, day: date) -> Streak:
    """Return the streak after ``day`` was logged.

    The same object is returned when the day does not change anything.
    """
    if streak is None:
        return Streak(
            user_id=user_id,
            current_streak=1,
            longest_streak=1,
            last_logged_date=day,
            freeze_credits=DEFAULT_FREEZE_CREDITS,
            total_logged_days=1,
        )

    if streak.last_logged_date is None:
        current = 1
        longest = streak.longest_streak
    else:
        gap = (day - streak.last_logged_date).days
        if gap <= 0:
            return streak
        if gap == 1:
            current = streak.current_streak + 1
            longest = streak.longest_streak
        else:
            longest = max(streak.longest_streak, streak.current_streak)
            current = 1

    return replace(
        streak,
        current_streak=current,
        longest_streak=max(longest, current),
        last_logged_date=day,
        total_logged_days=streak.total_logged_days + 1,
        version=streak.version + 1,
    )


def spend_freeze_credit(streak: Streak | None, user_id: UUID) -> Streak:
    """Return the streak with one fewer freeze credit."""
    if streak is None:
        raise NotFoundError("streak", user_id)
    if streak.freeze_credits <= 0:
        raise InsufficientCreditError(user_id)
    return replace(
        streak,
        freeze_credits=streak.freeze_credits - 1,
        version=streak.version + 1,
    )


def reset_streak(streak: Streak | None, user_id: UUID) -> Streak:
    """Return the streak with the current run cleared."""
    if streak is None:
        raise NotFoundError("streak", user_id)
    return replace(
        streak,
        current_streak=0,
        last_logged_date=None,
        version=streak.version + 1,
    )
