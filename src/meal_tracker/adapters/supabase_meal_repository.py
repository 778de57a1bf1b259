"""Supabase repository for meals."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from supabase import Client

from meal_tracker.domain.meals import Meal, MealQuery, MealType, NewMeal
from meal_tracker.services.nutrition import MealRepository

_SORT_COLUMNS = {"logged_at": "logged_at", "created_at": "created_at"}


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for meals."""

    client: Client

    def insert_meal(self, user_id: UUID, meal: NewMeal) -> Meal:
        """Create a meal row and return it."""
        now = datetime.now(tz=UTC).isoformat()
        logged_at = meal.logged_at or datetime.now(tz=UTC)
        response = (
            self.client.table("meals")
            .insert(
                {
                    "user_id": str(user_id),
                    "meal_type": meal.meal_type.value,
                    "food_name": meal.food_name,
                    "calories": meal.calories,
                    "protein_g": meal.protein_g,
                    "carbs_g": meal.carbs_g,
                    "fat_g": meal.fat_g,
                    "serving_size": meal.serving_size,
                    "serving_unit": meal.serving_unit,
                    "image_url": meal.image_url,
                    "notes": meal.notes,
                    "logged_at": logged_at.isoformat(),
                    "created_at": now,
                    "updated_at": now,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal")
        return _parse_meal(response.data[0])

    def get_meal(self, meal_id: UUID, user_id: UUID) -> Meal | None:
        """Return a meal owned by the user."""
        response = (
            self.client.table("meals")
            .select("*")
            .eq("id", str(meal_id))
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def update_meal(
        self, meal_id: UUID, user_id: UUID, changes: dict[str, object]
    ) -> Meal | None:
        """Update a meal row and return it."""
        payload = {key: _to_column(value) for key, value in changes.items()}
        payload["updated_at"] = datetime.now(tz=UTC).isoformat()
        response = (
            self.client.table("meals")
            .update(payload)
            .eq("id", str(meal_id))
            .eq("user_id", str(user_id))
            .execute()
        )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def delete_meal(self, meal_id: UUID, user_id: UUID) -> bool:
        """Delete a meal row."""
        response = (
            self.client.table("meals")
            .delete()
            .eq("id", str(meal_id))
            .eq("user_id", str(user_id))
            .execute()
        )
        return bool(response.data)

    def list_meals(self, user_id: UUID, query: MealQuery) -> list[Meal]:
        """Return meals matching the query."""
        builder = self._filtered(self.client.table("meals").select("*"), user_id, query)
        builder = builder.order(
            _SORT_COLUMNS.get(query.sort_by, "logged_at"), desc=query.descending
        )
        if query.limit is not None:
            builder = builder.range(query.offset, query.offset + query.limit - 1)
        response = builder.execute()
        return [_parse_meal(row) for row in response.data or []]

    def count_meals(self, user_id: UUID, query: MealQuery) -> int:
        """Return the number of meals matching the query filters."""
        builder = self._filtered(
            self.client.table("meals").select("id", count="exact"), user_id, query
        )
        response = builder.limit(1).execute()
        return response.count or 0

    @staticmethod
    def _filtered(builder, user_id: UUID, query: MealQuery):  # type: ignore[no-untyped-def]
        builder = builder.eq("user_id", str(user_id))
        if query.start is not None:
            builder = builder.gte("logged_at", query.start.isoformat())
        if query.end is not None:
            builder = builder.lt("logged_at", query.end.isoformat())
        if query.meal_type is not None:
            builder = builder.eq("meal_type", query.meal_type.value)
        return builder


def _to_column(value: object) -> object:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def _parse_datetime(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None


def _parse_meal(row: dict[str, object]) -> Meal:
    logged_at = _parse_datetime(row.get("logged_at"))
    return Meal(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        meal_type=MealType(row["meal_type"]),
        food_name=str(row.get("food_name", "")),
        calories=float(row.get("calories") or 0.0),
        protein_g=float(row.get("protein_g") or 0.0),
        carbs_g=float(row.get("carbs_g") or 0.0),
        fat_g=float(row.get("fat_g") or 0.0),
        logged_at=logged_at or datetime.min.replace(tzinfo=UTC),
        serving_size=row.get("serving_size"),
        serving_unit=row.get("serving_unit"),
        image_url=row.get("image_url"),
        notes=row.get("notes"),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )
