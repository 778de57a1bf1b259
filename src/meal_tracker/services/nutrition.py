"""Nutrition service orchestrating meals, the daily ledger and streaks."""

import calendar
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from typing import Protocol, TypeVar
from uuid import UUID, uuid4

from meal_tracker.domain.errors import ConsistencyError, NotFoundError
from meal_tracker.domain.ledger import DailySummary
from meal_tracker.domain.meals import (
    BulkDeleteResult,
    Meal,
    MealPage,
    MealQuery,
    NewMeal,
    day_range_query,
)
from meal_tracker.domain.nutrition import negate_macros, subtract_macros
from meal_tracker.domain.profiles import Biometrics, UserProfile
from meal_tracker.domain.repairs import LEDGER_REPAIR, STREAK_REPAIR, Repair
from meal_tracker.domain.streaks import Streak, StreakCalendar
from meal_tracker.services.ledger import NutritionLedger
from meal_tracker.services.profiles import ProfileService
from meal_tracker.services.streaks import StreakTracker

_T = TypeVar("_T")

_logger = logging.getLogger(__name__)


class MealRepository(Protocol):
    """Persistence interface for meals. Every call is scoped to a user."""

    def insert_meal(self, user_id: UUID, meal: NewMeal) -> Meal:
        """Create a meal row and return it."""

    def get_meal(self, meal_id: UUID, user_id: UUID) -> Meal | None:
        """Return a meal by id, if it exists and belongs to the user."""

    def update_meal(
        self, meal_id: UUID, user_id: UUID, changes: dict[str, object]
    ) -> Meal | None:
        """Apply changes to a meal, refresh updated_at and return the new row."""

    def delete_meal(self, meal_id: UUID, user_id: UUID) -> bool:
        """Delete a meal and return True when a row was removed."""

    def list_meals(self, user_id: UUID, query: MealQuery) -> list[Meal]:
        """Return meals matching the query."""

    def count_meals(self, user_id: UUID, query: MealQuery) -> int:
        """Return how many meals match the query, ignoring paging."""


class RepairRepository(Protocol):
    """Persistence interface for deferred ledger and streak repairs."""

    def record_repair(self, user_id: UUID, day: date, kind: str, reason: str) -> Repair:
        """Store a repair and return it."""

    def list_repairs(self, limit: int) -> list[Repair]:
        """Return the oldest open repairs."""

    def resolve_repair(self, repair_id: UUID) -> None:
        """Remove a repair once it has been reconciled."""


@dataclass(frozen=True)
class MealMutationResult:
    """A persisted meal and whether its follow-ups were applied."""

    meal: Meal
    consistent: bool = True


@dataclass
class NutritionService:
    """Entry point for meal mutations and the state derived from them."""

    meal_repository: MealRepository
    profile_service: ProfileService
    ledger: NutritionLedger
    streak_tracker: StreakTracker
    repair_repository: RepairRepository
    retry_attempts: int = 2
    retry_delay_seconds: float = 0.2

    def compute_profile(self, user_id: UUID, biometrics: Biometrics) -> UserProfile:
        """Persist a profile with freshly derived targets."""
        return self.profile_service.compute_profile(user_id, biometrics)

    def update_profile(self, user_id: UUID, changes: dict[str, object]) -> UserProfile:
        """Merge biometric changes into the profile and recompute targets."""
        return self.profile_service.update_profile(user_id, changes)

    def get_profile(self, user_id: UUID) -> UserProfile:
        """Return the user's profile."""
        return self.profile_service.get_profile(user_id)

    def create_meal(self, user_id: UUID, new_meal: NewMeal) -> MealMutationResult:
        """Log a meal, then update the day's summary and the streak."""
        if new_meal.logged_at is None:
            new_meal = replace(new_meal, logged_at=datetime.now(tz=UTC))
        meal = self.meal_repository.insert_meal(user_id, new_meal)
        _logger.info("Meal %s logged for %s on %s", meal.id, user_id, meal.day)

        ledger_ok = self._follow_up(
            LEDGER_REPAIR,
            user_id,
            meal.day,
            lambda: self.ledger.apply_delta(
                user_id, meal.day, meal.macros, 1, mutation_id=f"create:{meal.id}"
            ),
        )
        streak_ok = self._follow_up(
            STREAK_REPAIR,
            user_id,
            meal.day,
            lambda: self.streak_tracker.on_day_logged(user_id, meal.day),
        )
        return MealMutationResult(meal=meal, consistent=ledger_ok and streak_ok)

    def update_meal(
        self, user_id: UUID, meal_id: UUID, changes: dict[str, object]
    ) -> MealMutationResult:
        """Edit a meal and move or adjust its contribution to the ledger."""
        existing = self.get_meal(user_id, meal_id)
        updated = self.meal_repository.update_meal(meal_id, user_id, changes)
        if updated is None:
            raise NotFoundError("meal", meal_id)

        stamp = _mutation_stamp(updated)
        consistent = True
        if updated.day != existing.day:
            consistent = self._follow_up(
                LEDGER_REPAIR,
                user_id,
                existing.day,
                lambda: self.ledger.apply_delta(
                    user_id,
                    existing.day,
                    negate_macros(existing.macros),
                    -1,
                    mutation_id=f"move-out:{meal_id}:{stamp}",
                ),
            )
            consistent = (
                self._follow_up(
                    LEDGER_REPAIR,
                    user_id,
                    updated.day,
                    lambda: self.ledger.apply_delta(
                        user_id,
                        updated.day,
                        updated.macros,
                        1,
                        mutation_id=f"move-in:{meal_id}:{stamp}",
                    ),
                )
                and consistent
            )
        elif updated.macros != existing.macros:
            consistent = self._follow_up(
                LEDGER_REPAIR,
                user_id,
                updated.day,
                lambda: self.ledger.apply_delta(
                    user_id,
                    updated.day,
                    subtract_macros(updated.macros, existing.macros),
                    0,
                    mutation_id=f"adjust:{meal_id}:{stamp}",
                ),
            )
        return MealMutationResult(meal=updated, consistent=consistent)

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> MealMutationResult:
        """Delete a meal and remove it from the day's summary."""
        existing = self.get_meal(user_id, meal_id)
        if not self.meal_repository.delete_meal(meal_id, user_id):
            raise NotFoundError("meal", meal_id)
        consistent = self._follow_up(
            LEDGER_REPAIR,
            user_id,
            existing.day,
            lambda: self.ledger.apply_delta(
                user_id,
                existing.day,
                negate_macros(existing.macros),
                -1,
                mutation_id=f"delete:{meal_id}",
            ),
        )
        return MealMutationResult(meal=existing, consistent=consistent)

    def bulk_delete_meals(
        self, user_id: UUID, meal_ids: list[UUID]
    ) -> BulkDeleteResult:
        """Delete several meals, skipping ids that do not exist."""
        deleted = 0
        missing: list[UUID] = []
        for meal_id in meal_ids:
            try:
                self.delete_meal(user_id, meal_id)
            except NotFoundError:
                missing.append(meal_id)
                continue
            deleted += 1
        return BulkDeleteResult(
            deleted_count=deleted,
            requested_count=len(meal_ids),
            missing_ids=missing,
        )

    def get_meal(self, user_id: UUID, meal_id: UUID) -> Meal:
        """Return one of the user's meals or raise NotFoundError."""
        meal = self.meal_repository.get_meal(meal_id, user_id)
        if meal is None:
            raise NotFoundError("meal", meal_id)
        return meal

    def list_meals(self, user_id: UUID, query: MealQuery) -> MealPage:
        """Return a page of meals and the total number of matches."""
        meals = self.meal_repository.list_meals(user_id, query)
        total = self.meal_repository.count_meals(user_id, query)
        return MealPage(meals=meals, total=total)

    def get_daily_summary(self, user_id: UUID, day: date) -> DailySummary | None:
        """Return the ledger entry for a day, or None when nothing was logged."""
        return self.ledger.get_summary(user_id, day)

    def get_streak(self, user_id: UUID) -> Streak:
        """Return the user's streak."""
        return self.streak_tracker.get_streak(user_id)

    def ensure_streak(self, user_id: UUID) -> Streak:
        """Return the user's streak, creating an empty one on first access."""
        return self.streak_tracker.get_or_create(user_id)

    def use_freeze_credit(self, user_id: UUID) -> Streak:
        """Spend one of the user's freeze credits."""
        streak = self.streak_tracker.use_freeze_credit(user_id)
        _logger.info(
            "Freeze credit used by %s, %s left", user_id, streak.freeze_credits
        )
        return streak

    def reset_streak(self, user_id: UUID) -> Streak:
        """Clear the user's current streak."""
        return self.streak_tracker.reset_current_streak(user_id)

    def get_streak_calendar(
        self, user_id: UUID, year: int, month: int
    ) -> StreakCalendar:
        """Return the days of a month that have meals, with streak counters."""
        streak = self.streak_tracker.repository.get_streak(user_id)
        if streak is None:
            return StreakCalendar(
                year=year,
                month=month,
                logged_days=[],
                current_streak=0,
                longest_streak=0,
                freeze_credits=0,
            )
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        meals = self.meal_repository.list_meals(
            user_id, day_range_query(first, last)
        )
        logged_days = sorted({meal.day for meal in meals})
        return StreakCalendar(
            year=year,
            month=month,
            logged_days=logged_days,
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
            freeze_credits=streak.freeze_credits,
        )

    def reconcile_day(self, user_id: UUID, day: date) -> DailySummary | None:
        """Rebuild a day's summary from the meals currently stored."""
        meals = self.meal_repository.list_meals(user_id, day_range_query(day, day))
        summary = self.ledger.rebuild_day(user_id, day, meals)
        _logger.info("Reconciled ledger for %s on %s", user_id, day)
        return summary

    def list_repairs(self, limit: int = 50) -> list[Repair]:
        """Return the oldest repairs still waiting to be reconciled."""
        return self.repair_repository.list_repairs(limit)

    def process_repairs(self, limit: int = 50) -> int:
        """Reconcile stored repairs and return how many were resolved."""
        resolved = 0
        for repair in self.repair_repository.list_repairs(limit):
            try:
                if repair.kind == STREAK_REPAIR:
                    self.streak_tracker.on_day_logged(repair.user_id, repair.day)
                else:
                    self.reconcile_day(repair.user_id, repair.day)
            except Exception:
                _logger.exception("Repair %s failed, keeping it open", repair.id)
                continue
            self.repair_repository.resolve_repair(repair.id)
            resolved += 1
        return resolved

    def _follow_up(
        self, kind: str, user_id: UUID, day: date, func: Callable[[], object]
    ) -> bool:
        """Run a ledger or streak step; record a repair when it keeps failing."""
        try:
            self._call_with_retry(func, action=kind, user_id=user_id, day=day)
        except ConsistencyError as exc:
            _logger.exception(
                "Deferring %s adjustment for %s on %s", kind, user_id, day
            )
            self.repair_repository.record_repair(
                user_id, day, kind, str(exc.__cause__ or exc)
            )
            return False
        return True

    def _call_with_retry(
        self, func: Callable[[], _T], *, action: str, user_id: UUID, day: date
    ) -> _T:
        """Call a function with a short bounded retry."""
        attempt = 0
        while True:
            try:
                return func()
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "%s adjustment failed (attempt %s/%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise ConsistencyError(action, user_id, day) from exc
                time.sleep(self.retry_delay_seconds)


def _mutation_stamp(meal: Meal) -> str:
    if meal.updated_at is not None:
        return meal.updated_at.isoformat()
    return uuid4().hex
