"""Domain models for meal logging."""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from enum import StrEnum
from uuid import UUID

from meal_tracker.domain.nutrition import MacroProfile


class MealType(StrEnum):
    """Slot of the day a meal belongs to."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


@dataclass(frozen=True)
class NewMeal:
    """Meal fields supplied when logging a meal."""

    meal_type: MealType
    food_name: str
    calories: float
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    logged_at: datetime | None = None
    serving_size: str | None = None
    serving_unit: str | None = None
    image_url: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class Meal:
    """A logged meal row."""

    id: UUID
    user_id: UUID
    meal_type: MealType
    food_name: str
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    logged_at: datetime
    serving_size: str | None = None
    serving_unit: str | None = None
    image_url: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def macros(self) -> MacroProfile:
        """Return the nutrition fields that feed the daily ledger."""
        return MacroProfile(
            calories=self.calories,
            protein_g=self.protein_g,
            fat_g=self.fat_g,
            carbs_g=self.carbs_g,
        )

    @property
    def day(self) -> date:
        """Return the ledger day this meal belongs to."""
        return meal_day(self.logged_at)


@dataclass(frozen=True)
class MealQuery:
    """Filters and paging for meal listings.

    ``start`` is inclusive and ``end`` exclusive; ``limit=None`` disables
    paging.
    """

    start: datetime | None = None
    end: datetime | None = None
    meal_type: MealType | None = None
    limit: int | None = 50
    offset: int = 0
    sort_by: str = "logged_at"
    descending: bool = True


@dataclass(frozen=True)
class MealPage:
    """A page of meals with the total matching count."""

    meals: list[Meal]
    total: int


@dataclass(frozen=True)
class BulkDeleteResult:
    """Outcome of deleting several meals or favorites at once."""

    deleted_count: int
    requested_count: int
    missing_ids: list[UUID]


def meal_day(logged_at: datetime) -> date:
    """Return the UTC calendar day of a timestamp; naive values are UTC."""
    if logged_at.tzinfo is None:
        return logged_at.date()
    return logged_at.astimezone(UTC).date()


def day_range_query(first: date, last: date) -> MealQuery:
    """Return an unpaged query for every meal from ``first`` to ``last``."""
    return MealQuery(
        start=datetime.combine(first, time.min, tzinfo=UTC),
        end=datetime.combine(last + timedelta(days=1), time.min, tzinfo=UTC),
        limit=None,
        descending=False,
    )
