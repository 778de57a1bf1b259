"""Favorite foods and quick-add logging."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from meal_tracker.domain.errors import NotFoundError, StaleWriteError
from meal_tracker.domain.favorites import FavoriteFood, NewFavoriteFood
from meal_tracker.domain.meals import BulkDeleteResult, Meal, MealType, NewMeal
from meal_tracker.services.nutrition import NutritionService

_logger = logging.getLogger(__name__)


class FavoriteRepository(Protocol):
    """Persistence interface for favorite foods. Every call is scoped to a user.

    Listings are ordered by ``use_count``, then ``last_used_at``, then
    ``created_at``, all descending.
    """

    def insert_favorite(self, user_id: UUID, favorite: NewFavoriteFood) -> FavoriteFood:
        """Create a favorite food row and return it."""

    def get_favorite(self, favorite_id: UUID, user_id: UUID) -> FavoriteFood | None:
        """Return a favorite by id, if it exists and belongs to the user."""

    def list_favorites(
        self, user_id: UUID, limit: int, name_query: str | None = None
    ) -> list[FavoriteFood]:
        """Return favorites, optionally filtered by a case-insensitive name match."""

    def update_favorite(
        self, favorite_id: UUID, user_id: UUID, changes: dict[str, object]
    ) -> FavoriteFood | None:
        """Apply changes to a favorite and return the new row."""

    def delete_favorite(self, favorite_id: UUID, user_id: UUID) -> bool:
        """Delete a favorite and return True when a row was removed."""

    def record_use(self, favorite: FavoriteFood, used_at: datetime) -> FavoriteFood:
        """Increment ``use_count`` if it still equals ``favorite.use_count``.

        Raises StaleWriteError when the stored count moved on.
        """


@dataclass(frozen=True)
class FavoriteLogResult:
    """A meal logged from a favorite and the favorite's new usage."""

    meal: Meal
    favorite: FavoriteFood
    consistent: bool = True


@dataclass
class FavoriteService:
    """Manage favorite foods and log them as meals."""

    repository: FavoriteRepository
    nutrition_service: NutritionService
    write_conflict_retries: int = 3

    def create_favorite(self, user_id: UUID, favorite: NewFavoriteFood) -> FavoriteFood:
        """Save a favorite food."""
        created = self.repository.insert_favorite(user_id, favorite)
        _logger.info("Favorite %s saved for %s", created.id, user_id)
        return created

    def list_favorites(self, user_id: UUID, limit: int = 20) -> list[FavoriteFood]:
        """Return the user's favorites, most used first."""
        return self.repository.list_favorites(user_id, limit)

    def search_favorites(
        self, user_id: UUID, query: str, limit: int = 10
    ) -> list[FavoriteFood]:
        """Return favorites whose name contains ``query``."""
        return self.repository.list_favorites(user_id, limit, name_query=query.strip())

    def get_favorite(self, user_id: UUID, favorite_id: UUID) -> FavoriteFood:
        """Return one of the user's favorites or raise NotFoundError."""
        favorite = self.repository.get_favorite(favorite_id, user_id)
        if favorite is None:
            raise NotFoundError("favorite", favorite_id)
        return favorite

    def update_favorite(
        self, user_id: UUID, favorite_id: UUID, changes: dict[str, object]
    ) -> FavoriteFood:
        """Edit a favorite. Meals already logged from it keep their values."""
        updated = self.repository.update_favorite(favorite_id, user_id, changes)
        if updated is None:
            raise NotFoundError("favorite", favorite_id)
        return updated

    def delete_favorite(self, user_id: UUID, favorite_id: UUID) -> None:
        """Delete a favorite."""
        if not self.repository.delete_favorite(favorite_id, user_id):
            raise NotFoundError("favorite", favorite_id)

    def bulk_delete_favorites(
        self, user_id: UUID, favorite_ids: list[UUID]
    ) -> BulkDeleteResult:
        """Delete several favorites, skipping ids that do not exist."""
        missing = [
            favorite_id
            for favorite_id in favorite_ids
            if not self.repository.delete_favorite(favorite_id, user_id)
        ]
        return BulkDeleteResult(
            deleted_count=len(favorite_ids) - len(missing),
            requested_count=len(favorite_ids),
            missing_ids=missing,
        )

    def log_favorite(
        self,
        user_id: UUID,
        favorite_id: UUID,
        meal_type: MealType,
        logged_at: datetime | None = None,
    ) -> FavoriteLogResult:
        """Log a favorite as a meal and count the use.

        The meal goes through ``NutritionService.create_meal`` so the daily
        summary and the streak follow it like any other meal.
        """
        favorite = self._record_use(user_id, favorite_id)
        result = self.nutrition_service.create_meal(
            user_id,
            NewMeal(
                meal_type=meal_type,
                food_name=favorite.food_name,
                calories=favorite.calories,
                protein_g=favorite.protein_g,
                carbs_g=favorite.carbs_g,
                fat_g=favorite.fat_g,
                serving_size=favorite.serving_size,
                serving_unit=favorite.serving_unit,
                logged_at=logged_at,
            ),
        )
        return FavoriteLogResult(
            meal=result.meal, favorite=favorite, consistent=result.consistent
        )

    def _record_use(self, user_id: UUID, favorite_id: UUID) -> FavoriteFood:
        for attempt in range(self.write_conflict_retries + 1):
            favorite = self.get_favorite(user_id, favorite_id)
            try:
                return self.repository.record_use(favorite, datetime.now(tz=UTC))
            except StaleWriteError:
                _logger.info(
                    "Favorite use count conflict for %s (attempt %s)",
                    favorite_id,
                    attempt + 1,
                )
        raise StaleWriteError(f"Favorite {favorite_id} kept changing")
