"""Per-day nutrition ledger maintained with signed deltas."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date
from typing import Protocol
from uuid import UUID

from meal_tracker.domain.errors import StaleWriteError
from meal_tracker.domain.ledger import DailySummary, LedgerChange
from meal_tracker.domain.meals import Meal
from meal_tracker.domain.nutrition import ZERO_MACROS, MacroProfile, add_macros
from meal_tracker.services.profiles import ProfileRepository

MAX_TRACKED_MUTATIONS = 32

CREATE = "create"
UPDATE = "update"
DELETE = "delete"
NOOP = "noop"

_logger = logging.getLogger(__name__)


class LedgerRepository(Protocol):
    """Persistence interface for daily summaries.

    ``update_summary`` and ``delete_summary`` must only touch the row when its
    stored version equals ``expected_version``; ``insert_summary`` must fail
    when a row for the same (user, day) exists. Both cases raise
    StaleWriteError.
    """

    def get_summary(self, user_id: UUID, day: date) -> DailySummary | None:
        """Return the summary for a user and day, if present."""

    def insert_summary(self, summary: DailySummary) -> None:
        """Insert a new summary row."""

    def update_summary(self, summary: DailySummary, expected_version: int) -> None:
        """Replace a summary row if its version matches."""

    def delete_summary(self, user_id: UUID, day: date, expected_version: int) -> None:
        """Delete a summary row if its version matches."""

    def list_summaries(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailySummary]:
        """Return summaries between two days, inclusive, ordered by day."""


@dataclass
class NutritionLedger:
    """Keeps one summary per (user, day) consistent with the day's meals."""

    repository: LedgerRepository
    profile_repository: ProfileRepository
    write_conflict_retries: int = 3

    def get_summary(self, user_id: UUID, day: date) -> DailySummary | None:
        """Return the summary for a day, or None when nothing was logged."""
        return self.repository.get_summary(user_id, day)

    def list_summaries(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailySummary]:
        """Return summaries for a date range."""
        return self.repository.list_summaries(user_id, start, end)

    def apply_delta(
        self,
        user_id: UUID,
        day: date,
        delta: MacroProfile,
        count_delta: int,
        mutation_id: str | None = None,
    ) -> DailySummary | None:
        """Fold a signed delta into the day's summary and persist the result."""
        for attempt in range(self.write_conflict_retries + 1):
            current = self.repository.get_summary(user_id, day)
            target_calories = 0.0
            if current is None and count_delta > 0:
                target_calories = self._target_calories(user_id)
            change = reduce_summary(
                current,
                user_id=user_id,
                day=day,
                delta=delta,
                count_delta=count_delta,
                target_calories=target_calories,
                mutation_id=mutation_id,
            )
            try:
                self._persist(change, current)
            except StaleWriteError:
                _logger.info(
                    "Ledger write conflict for %s on %s (attempt %s)",
                    user_id,
                    day,
                    attempt + 1,
                )
                continue
            return change.summary
        raise StaleWriteError(f"Daily summary for {user_id} on {day} kept changing")

    def rebuild_day(
        self, user_id: UUID, day: date, meals: Iterable[Meal]
    ) -> DailySummary | None:
        """Recompute a day's summary from its full list of meals."""
        day_meals = [meal for meal in meals if meal.day == day]
        for attempt in range(self.write_conflict_retries + 1):
            current = self.repository.get_summary(user_id, day)
            if current is not None:
                target_calories = current.target_calories
            elif day_meals:
                target_calories = self._target_calories(user_id)
            else:
                target_calories = 0.0
            rebuilt = summarize_meals(user_id, day, day_meals, target_calories)
            change = _replace_summary(current, rebuilt)
            try:
                self._persist(change, current)
            except StaleWriteError:
                _logger.info(
                    "Ledger rebuild conflict for %s on %s (attempt %s)",
                    user_id,
                    day,
                    attempt + 1,
                )
                continue
            return change.summary
        raise StaleWriteError(f"Daily summary for {user_id} on {day} kept changing")

    def _target_calories(self, user_id: UUID) -> float:
        profile = self.profile_repository.get_profile(user_id)
        if profile is None:
            return 0.0
        return profile.target_calories

    def _persist(self, change: LedgerChange, current: DailySummary | None) -> None:
        if change.action == CREATE and change.summary is not None:
            self.repository.insert_summary(change.summary)
        elif change.action == UPDATE and change.summary is not None and current:
            self.repository.update_summary(change.summary, current.version)
        elif change.action == DELETE and current is not None:
            self.repository.delete_summary(current.user_id, current.day, current.version)


def reduce_summary(  # noqa: PLR0913
    current: DailySummary | None,
    *,
    user_id: UUID,
    day: date,
    delta: MacroProfile,
    count_delta: int,
    target_calories: float,
    mutation_id: str | None = None,
) -> LedgerChange:
    """Fold one delta into a summary without touching storage."""
    if current is None:
        if count_delta <= 0:
            return LedgerChange(action=NOOP, summary=None)
        created = _with_totals(
            DailySummary(
                user_id=user_id,
                day=day,
                total_calories=0.0,
                total_protein_g=0.0,
                total_carbs_g=0.0,
                total_fat_g=0.0,
                meal_count=1,
                target_calories=target_calories,
                version=1,
                applied_mutations=_track(mutation_id, ()),
            ),
            delta,
        )
        return LedgerChange(action=CREATE, summary=created)

    if mutation_id is not None and mutation_id in current.applied_mutations:
        return LedgerChange(action=NOOP, summary=current)

    meal_count = current.meal_count + count_delta
    if meal_count <= 0:
        return LedgerChange(action=DELETE, summary=None)
    updated = replace(
        _with_totals(current, add_macros(current.totals, delta)),
        meal_count=meal_count,
        version=current.version + 1,
        applied_mutations=_track(mutation_id, current.applied_mutations),
    )
    return LedgerChange(action=UPDATE, summary=updated)


def summarize_meals(
    user_id: UUID, day: date, meals: Iterable[Meal], target_calories: float
) -> DailySummary | None:
    """Return the summary a day should have for the given meals."""
    totals = ZERO_MACROS
    count = 0
    for meal in meals:
        totals = add_macros(totals, meal.macros)
        count += 1
    if count == 0:
        return None
    return _with_totals(
        DailySummary(
            user_id=user_id,
            day=day,
            total_calories=0.0,
            total_protein_g=0.0,
            total_carbs_g=0.0,
            total_fat_g=0.0,
            meal_count=count,
            target_calories=target_calories,
        ),
        totals,
    )


def _replace_summary(
    current: DailySummary | None, rebuilt: DailySummary | None
) -> LedgerChange:
    if rebuilt is None:
        if current is None:
            return LedgerChange(action=NOOP, summary=None)
        return LedgerChange(action=DELETE, summary=None)
    if current is None:
        return LedgerChange(action=CREATE, summary=rebuilt)
    updated = replace(
        rebuilt,
        version=current.version + 1,
        applied_mutations=current.applied_mutations,
    )
    return LedgerChange(action=UPDATE, summary=updated)


def _with_totals(summary: DailySummary, totals: MacroProfile) -> DailySummary:
    return replace(
        summary,
        total_calories=totals.calories,
        total_protein_g=totals.protein_g,
        total_carbs_g=totals.carbs_g,
        total_fat_g=totals.fat_g,
    )


def _track(mutation_id: str | None, applied: tuple[str, ...]) -> tuple[str, ...]:
    if mutation_id is None:
        return applied
    return (*applied, mutation_id)[-MAX_TRACKED_MUTATIONS:]
