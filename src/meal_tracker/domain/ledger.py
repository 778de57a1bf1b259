"""Domain models for the daily nutrition ledger."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from meal_tracker.domain.nutrition import MacroProfile


@dataclass(frozen=True)
class DailySummary:
    """Aggregate of the meals logged by one user on one day.

    ``target_calories`` is a snapshot of the profile target taken when the
    row was created; later profile edits do not rewrite it. ``version`` is
    bumped on every write and checked by the repository.
    """

    user_id: UUID
    day: date
    total_calories: float
    total_protein_g: float
    total_carbs_g: float
    total_fat_g: float
    meal_count: int
    target_calories: float
    version: int = 1
    applied_mutations: tuple[str, ...] = ()

    @property
    def totals(self) -> MacroProfile:
        """Return the aggregate totals as a macro profile."""
        return MacroProfile(
            calories=self.total_calories,
            protein_g=self.total_protein_g,
            fat_g=self.total_fat_g,
            carbs_g=self.total_carbs_g,
        )


@dataclass(frozen=True)
class LedgerChange:
    """Result of folding one delta into a day's summary."""

    action: str
    summary: DailySummary | None
