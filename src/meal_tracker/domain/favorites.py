"""Domain models for favorite foods used to quick-add meals."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class NewFavoriteFood:
    """Fields supplied when saving a favorite food."""

    food_name: str
    calories: float
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    serving_size: str | None = None
    serving_unit: str | None = None
    category: str | None = None


@dataclass(frozen=True)
class FavoriteFood:
    """A saved food a user can log again with one call."""

    id: UUID
    user_id: UUID
    food_name: str
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    serving_size: str | None = None
    serving_unit: str | None = None
    category: str | None = None
    use_count: int = 0
    last_used_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
