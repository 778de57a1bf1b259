"""Pydantic request models for the meal tracker API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from meal_tracker.domain.favorites import NewFavoriteFood
from meal_tracker.domain.meals import MealType, NewMeal
from meal_tracker.domain.profiles import ActivityLevel, Biometrics, Gender, Goal

MAX_BULK_DELETE = 100

# Meal fields that cannot be cleared once set.
_REQUIRED_MEAL_FIELDS = frozenset(
    {"meal_type", "food_name", "calories", "protein_g", "carbs_g", "fat_g", "logged_at"}
)


class ProfileRequest(BaseModel):
    """Biometrics submitted when creating a profile."""

    age: int = Field(ge=1, le=120)
    weight_kg: float = Field(ge=1, le=300)
    height_cm: float = Field(ge=50, le=250)
    gender: Gender
    activity_level: ActivityLevel
    goal: Goal

    def to_biometrics(self) -> Biometrics:
        """Return the domain biometrics for this request."""
        return Biometrics(
            age=self.age,
            weight_kg=self.weight_kg,
            height_cm=self.height_cm,
            gender=self.gender,
            activity_level=self.activity_level,
            goal=self.goal,
        )


class ProfileUpdateRequest(BaseModel):
    """Partial biometrics merged over the stored profile."""

    age: int | None = Field(default=None, ge=1, le=120)
    weight_kg: float | None = Field(default=None, ge=1, le=300)
    height_cm: float | None = Field(default=None, ge=50, le=250)
    gender: Gender | None = None
    activity_level: ActivityLevel | None = None
    goal: Goal | None = None

    def to_changes(self) -> dict[str, object]:
        """Return only the fields the client sent with a value."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class MealRequest(BaseModel):
    """Meal submitted when logging food."""

    meal_type: MealType
    food_name: str = Field(min_length=1, max_length=200)
    calories: float = Field(ge=0, le=5000)
    protein_g: float = Field(default=0.0, ge=0, le=1000)
    carbs_g: float = Field(default=0.0, ge=0, le=1000)
    fat_g: float = Field(default=0.0, ge=0, le=300)
    serving_size: str | None = Field(default=None, max_length=50)
    serving_unit: str | None = Field(default=None, max_length=20)
    image_url: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, max_length=500)
    logged_at: datetime | None = None

    def to_new_meal(self) -> NewMeal:
        """Return the domain meal for this request."""
        return NewMeal(**self.model_dump())


class MealUpdateRequest(BaseModel):
    """Partial meal edit."""

    meal_type: MealType | None = None
    food_name: str | None = Field(default=None, min_length=1, max_length=200)
    calories: float | None = Field(default=None, ge=0, le=5000)
    protein_g: float | None = Field(default=None, ge=0, le=1000)
    carbs_g: float | None = Field(default=None, ge=0, le=1000)
    fat_g: float | None = Field(default=None, ge=0, le=300)
    serving_size: str | None = Field(default=None, max_length=50)
    serving_unit: str | None = Field(default=None, max_length=20)
    image_url: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, max_length=500)
    logged_at: datetime | None = None

    def to_changes(self) -> dict[str, object]:
        """Return the sent fields; optional text fields may be cleared with null."""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key not in _REQUIRED_MEAL_FIELDS
        }


class BulkDeleteRequest(BaseModel):
    """Meal ids to delete in one call."""

    meal_ids: list[UUID] = Field(min_length=1, max_length=MAX_BULK_DELETE)


class FavoriteRequest(BaseModel):
    """Food saved for quick logging."""

    food_name: str = Field(min_length=1, max_length=200)
    calories: float = Field(gt=0, le=5000)
    protein_g: float = Field(default=0.0, ge=0, le=1000)
    carbs_g: float = Field(default=0.0, ge=0, le=1000)
    fat_g: float = Field(default=0.0, ge=0, le=300)
    serving_size: str | None = Field(default=None, max_length=50)
    serving_unit: str | None = Field(default=None, max_length=20)
    category: str | None = Field(default=None, max_length=50)

    def to_new_favorite(self) -> NewFavoriteFood:
        """Return the domain favorite for this request."""
        return NewFavoriteFood(**self.model_dump())


class FavoriteUpdateRequest(BaseModel):
    """Partial favorite edit."""

    food_name: str | None = Field(default=None, min_length=1, max_length=200)
    calories: float | None = Field(default=None, gt=0, le=5000)
    protein_g: float | None = Field(default=None, ge=0, le=1000)
    carbs_g: float | None = Field(default=None, ge=0, le=1000)
    fat_g: float | None = Field(default=None, ge=0, le=300)
    serving_size: str | None = Field(default=None, max_length=50)
    serving_unit: str | None = Field(default=None, max_length=20)
    category: str | None = Field(default=None, max_length=50)

    def to_changes(self) -> dict[str, object]:
        """Return the fields the client sent with a value."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class FavoriteLogRequest(BaseModel):
    """Meal slot and time for logging a favorite."""

    meal_type: MealType
    logged_at: datetime | None = None


class FavoriteBulkDeleteRequest(BaseModel):
    """Favorite ids to delete in one call."""

    favorite_ids: list[UUID] = Field(min_length=1, max_length=MAX_BULK_DELETE)
