"""Supabase repository for favorite foods."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from meal_tracker.domain.errors import StaleWriteError
from meal_tracker.domain.favorites import FavoriteFood, NewFavoriteFood
from meal_tracker.services.favorites import FavoriteRepository


@dataclass
class SupabaseFavoriteRepository(FavoriteRepository):
    """Supabase implementation for favorite foods."""

    client: Client

    def insert_favorite(self, user_id: UUID, favorite: NewFavoriteFood) -> FavoriteFood:
        """Create a favorite row and return it."""
        now = datetime.now(tz=UTC).isoformat()
        response = (
            self.client.table("favorite_foods")
            .insert(
                {
                    "user_id": str(user_id),
                    "food_name": favorite.food_name,
                    "calories": favorite.calories,
                    "protein_g": favorite.protein_g,
                    "carbs_g": favorite.carbs_g,
                    "fat_g": favorite.fat_g,
                    "serving_size": favorite.serving_size,
                    "serving_unit": favorite.serving_unit,
                    "category": favorite.category,
                    "use_count": 0,
                    "created_at": now,
                    "updated_at": now,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create favorite food")
        return _parse_favorite(response.data[0])

    def get_favorite(self, favorite_id: UUID, user_id: UUID) -> FavoriteFood | None:
        """Return a favorite owned by the user."""
        response = (
            self.client.table("favorite_foods")
            .select("*")
            .eq("id", str(favorite_id))
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_favorite(response.data[0])

    def list_favorites(
        self, user_id: UUID, limit: int, name_query: str | None = None
    ) -> list[FavoriteFood]:
        """Return favorites ordered by usage, optionally matching a name."""
        builder = (
            self.client.table("favorite_foods")
            .select("*")
            .eq("user_id", str(user_id))
        )
        if name_query:
            builder = builder.ilike("food_name", f"%{name_query}%")
        response = (
            builder.order("use_count", desc=True)
            .order("last_used_at", desc=True, nullsfirst=False)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_favorite(row) for row in response.data or []]

    def update_favorite(
        self, favorite_id: UUID, user_id: UUID, changes: dict[str, object]
    ) -> FavoriteFood | None:
        """Update a favorite row and return it."""
        payload = {**changes, "updated_at": datetime.now(tz=UTC).isoformat()}
        response = (
            self.client.table("favorite_foods")
            .update(payload)
            .eq("id", str(favorite_id))
            .eq("user_id", str(user_id))
            .execute()
        )
        if not response.data:
            return None
        return _parse_favorite(response.data[0])

    def delete_favorite(self, favorite_id: UUID, user_id: UUID) -> bool:
        """Delete a favorite row."""
        response = (
            self.client.table("favorite_foods")
            .delete()
            .eq("id", str(favorite_id))
            .eq("user_id", str(user_id))
            .execute()
        )
        return bool(response.data)

    def record_use(self, favorite: FavoriteFood, used_at: datetime) -> FavoriteFood:
        """Bump the use counter when nobody else bumped it first."""
        response = (
            self.client.table("favorite_foods")
            .update(
                {
                    "use_count": favorite.use_count + 1,
                    "last_used_at": used_at.isoformat(),
                    "updated_at": used_at.isoformat(),
                }
            )
            .eq("id", str(favorite.id))
            .eq("user_id", str(favorite.user_id))
            .eq("use_count", favorite.use_count)
            .execute()
        )
        if not response.data:
            raise StaleWriteError(
                f"Favorite {favorite.id} is no longer at use count {favorite.use_count}"
            )
        return _parse_favorite(response.data[0])


def _parse_datetime(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None


def _parse_favorite(row: dict[str, object]) -> FavoriteFood:
    return FavoriteFood(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        food_name=str(row.get("food_name", "")),
        calories=float(row.get("calories") or 0.0),
        protein_g=float(row.get("protein_g") or 0.0),
        carbs_g=float(row.get("carbs_g") or 0.0),
        fat_g=float(row.get("fat_g") or 0.0),
        serving_size=row.get("serving_size"),
        serving_unit=row.get("serving_unit"),
        category=row.get("category"),
        use_count=int(row.get("use_count") or 0),
        last_used_at=_parse_datetime(row.get("last_used_at")),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )
