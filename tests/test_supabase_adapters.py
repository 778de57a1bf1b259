"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import uuid4

import pytest
from supabase import PostgrestAPIError

from meal_tracker.adapters.supabase_favorite_repository import (
    SupabaseFavoriteRepository,
)
from meal_tracker.adapters.supabase_ledger_repository import SupabaseLedgerRepository
from meal_tracker.adapters.supabase_meal_repository import SupabaseMealRepository
from meal_tracker.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from meal_tracker.adapters.supabase_repair_repository import SupabaseRepairRepository
from meal_tracker.adapters.supabase_streak_repository import SupabaseStreakRepository
from meal_tracker.domain.errors import StaleWriteError
from meal_tracker.domain.favorites import FavoriteFood, NewFavoriteFood
from meal_tracker.domain.ledger import DailySummary
from meal_tracker.domain.meals import MealQuery, MealType, NewMeal
from meal_tracker.domain.profiles import Gender, Goal
from meal_tracker.domain.streaks import Streak
from meal_tracker.services.profiles import build_profile


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None
    count: int | None = None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[object]] = field(
        default_factory=lambda: {
            "select": [],
            "insert": [],
            "update": [],
            "upsert": [],
            "delete": [],
        }
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_range: tuple[int, int] | None = None
    last_order: tuple[str, bool] | None = None
    orders: list[tuple[str, bool]] = field(default_factory=list)
    upsert_conflict: str | None = None
    counts: list[int] = field(default_factory=list)
    last_count_method: str | None = None

    def queue(self, action: str, data: object) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args, count: str | None = None) -> "FakeTable":
        self._action = "select"
        self.last_count_method = count
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def upsert(self, payload, on_conflict: str = "") -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        self.upsert_conflict = on_conflict
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"{column}>=", value))
        return self

    def lte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"{column}<=", value))
        return self

    def ilike(self, column: str, pattern: str) -> "FakeTable":
        self.last_filters.append((f"{column}~", pattern))
        return self

    def lt(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"{column}<", value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def range(self, start: int, end: int) -> "FakeTable":
        self.last_range = (start, end)
        return self

    def order(
        self, column: str, desc: bool = False, nullsfirst: bool | None = None
    ) -> "FakeTable":
        self.last_order = (column, desc)
        self.orders.append((column, desc))
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        if isinstance(data, Exception):
            raise data
        count = None
        if action == "select" and self.last_count_method and self.counts:
            count = self.counts.pop(0)
        return FakeResponse(data=data, count=count)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _meal_row(meal_id: str, user_id: str, **overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": meal_id,
        "user_id": user_id,
        "meal_type": "lunch",
        "food_name": "Salmon",
        "calories": 520,
        "protein_g": 40,
        "carbs_g": 10,
        "fat_g": 30,
        "logged_at": "2024-05-01T12:30:00+00:00",
        "serving_size": "1",
        "serving_unit": "fillet",
        "image_url": None,
        "notes": None,
        "created_at": "2024-05-01T12:31:00+00:00",
        "updated_at": "2024-05-01T12:31:00+00:00",
    }
    row.update(overrides)
    return row


def test_supabase_meal_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    table = client.table("meals")
    meal_id = str(uuid4())
    user_id = uuid4()
    table.queue("insert", [_meal_row(meal_id, str(user_id))])
    table.queue("select", [_meal_row(meal_id, str(user_id))])

    repository = SupabaseMealRepository(client)
    created = repository.insert_meal(
        user_id,
        NewMeal(
            meal_type=MealType.LUNCH,
            food_name="Salmon",
            calories=520,
            logged_at=datetime(2024, 5, 1, 12, 30, tzinfo=UTC),
        ),
    )
    fetched = repository.get_meal(created.id, user_id)

    assert isinstance(table.last_payload, dict)
    assert table.last_payload["meal_type"] == "lunch"
    assert table.last_payload["logged_at"] == "2024-05-01T12:30:00+00:00"
    assert str(created.id) == meal_id
    assert created.day == date(2024, 5, 1)
    assert fetched == created


def test_supabase_meal_repository_update_serializes_changes() -> None:
    client = FakeSupabaseClient()
    table = client.table("meals")
    meal_id = str(uuid4())
    user_id = uuid4()
    table.queue("update", [_meal_row(meal_id, str(user_id), meal_type="dinner")])

    repository = SupabaseMealRepository(client)
    updated = repository.update_meal(
        uuid4(),
        user_id,
        {
            "meal_type": MealType.DINNER,
            "logged_at": datetime(2024, 5, 2, 19, tzinfo=UTC),
        },
    )

    assert updated is not None
    assert updated.meal_type == MealType.DINNER
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["meal_type"] == "dinner"
    assert table.last_payload["logged_at"] == "2024-05-02T19:00:00+00:00"
    assert "updated_at" in table.last_payload
    assert repository.update_meal(uuid4(), user_id, {"notes": "x"}) is None


def test_supabase_meal_repository_list_applies_query() -> None:
    client = FakeSupabaseClient()
    table = client.table("meals")
    user_id = uuid4()
    table.queue("select", [_meal_row(str(uuid4()), str(user_id))])
    table.queue("select", [{"id": "a"}])
    table.counts.append(240)

    repository = SupabaseMealRepository(client)
    query = MealQuery(
        start=datetime(2024, 5, 1, tzinfo=UTC),
        meal_type=MealType.LUNCH,
        limit=10,
        offset=20,
        descending=False,
    )
    meals = repository.list_meals(user_id, query)
    total = repository.count_meals(user_id, query)

    assert len(meals) == 1
    assert total == 240
    assert table.last_count_method == "exact"
    assert table.last_range == (20, 29)
    assert table.last_order == ("logged_at", False)
    assert ("meal_type", "lunch") in table.last_filters
    assert ("logged_at>=", "2024-05-01T00:00:00+00:00") in table.last_filters


def test_supabase_meal_repository_delete() -> None:
    client = FakeSupabaseClient()
    table = client.table("meals")
    table.queue("delete", [{"id": "gone"}])

    repository = SupabaseMealRepository(client)

    assert repository.delete_meal(uuid4(), uuid4()) is True
    assert repository.delete_meal(uuid4(), uuid4()) is False


def test_supabase_profile_repository_upsert(biometrics) -> None:
    client = FakeSupabaseClient()
    table = client.table("user_profiles")
    user_id = uuid4()
    profile = build_profile(user_id, biometrics)
    table.queue(
        "upsert",
        [
            {
                "user_id": str(user_id),
                "age": 30,
                "weight_kg": 70,
                "height_cm": 175,
                "gender": "male",
                "activity_level": "moderately_active",
                "goal": "maintain_weight",
                "tdee": 2556,
                "target_calories": 2556,
                "target_protein_g": 140,
                "target_carbs_g": 307,
                "target_fat_g": 85,
                "updated_at": "2024-05-01T08:00:00+00:00",
            }
        ],
    )

    repository = SupabaseProfileRepository(client)
    stored = repository.upsert_profile(profile)

    assert table.upsert_conflict == "user_id"
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["goal"] == "maintain_weight"
    assert stored.gender == Gender.MALE
    assert stored.goal == Goal.MAINTAIN_WEIGHT
    assert stored.target_calories == 2556
    assert repository.get_profile(user_id) is None


def test_supabase_ledger_repository_version_checks() -> None:
    client = FakeSupabaseClient()
    table = client.table("daily_summaries")
    user_id = uuid4()
    summary = DailySummary(
        user_id=user_id,
        day=date(2024, 5, 1),
        total_calories=500,
        total_protein_g=30,
        total_carbs_g=50,
        total_fat_g=20,
        meal_count=1,
        target_calories=2000,
        version=2,
        applied_mutations=("create:a",),
    )
    table.queue("update", [{"user_id": str(user_id)}])

    repository = SupabaseLedgerRepository(client)
    repository.update_summary(summary, expected_version=1)

    assert ("version", 1) in table.last_filters
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["version"] == 2
    assert table.last_payload["applied_mutations"] == ["create:a"]
    with pytest.raises(StaleWriteError):
        repository.update_summary(summary, expected_version=1)
    with pytest.raises(StaleWriteError):
        repository.delete_summary(user_id, summary.day, expected_version=2)


def test_supabase_ledger_repository_insert_conflict() -> None:
    client = FakeSupabaseClient()
    table = client.table("daily_summaries")
    table.queue(
        "insert",
        PostgrestAPIError({"code": "23505", "message": "duplicate key"}),
    )
    table.queue("insert", PostgrestAPIError({"code": "42P01", "message": "missing"}))
    summary = DailySummary(
        user_id=uuid4(),
        day=date(2024, 5, 1),
        total_calories=500,
        total_protein_g=30,
        total_carbs_g=50,
        total_fat_g=20,
        meal_count=1,
        target_calories=0,
    )

    repository = SupabaseLedgerRepository(client)

    with pytest.raises(StaleWriteError):
        repository.insert_summary(summary)
    with pytest.raises(PostgrestAPIError):
        repository.insert_summary(summary)


def test_supabase_ledger_repository_parses_rows() -> None:
    client = FakeSupabaseClient()
    table = client.table("daily_summaries")
    user_id = uuid4()
    table.queue(
        "select",
        [
            {
                "user_id": str(user_id),
                "day": "2024-05-01",
                "total_calories": 1200,
                "total_protein_g": 70,
                "total_carbs_g": 130,
                "total_fat_g": 45,
                "meal_count": 2,
                "target_calories": 2100,
                "version": 3,
                "applied_mutations": ["create:a", "create:b"],
            }
        ],
    )

    repository = SupabaseLedgerRepository(client)
    summaries = repository.list_summaries(user_id, date(2024, 5, 1), date(2024, 5, 7))

    assert summaries[0].day == date(2024, 5, 1)
    assert summaries[0].version == 3
    assert summaries[0].applied_mutations == ("create:a", "create:b")
    assert ("day<=", "2024-05-07") in table.last_filters


def test_supabase_streak_repository() -> None:
    client = FakeSupabaseClient()
    table = client.table("meal_streaks")
    user_id = uuid4()
    table.queue(
        "select",
        [
            {
                "user_id": str(user_id),
                "current_streak": 4,
                "longest_streak": 9,
                "last_logged_date": "2024-05-01",
                "freeze_credits": 0,
                "total_logged_days": 20,
                "version": 5,
            }
        ],
    )
    table.queue("insert", PostgrestAPIError({"code": "23505", "message": "dup"}))

    repository = SupabaseStreakRepository(client)
    streak = repository.get_streak(user_id)

    assert streak is not None
    assert streak.last_logged_date == date(2024, 5, 1)
    assert streak.freeze_credits == 0
    assert streak.version == 5
    with pytest.raises(StaleWriteError):
        repository.insert_streak(Streak(user_id=user_id))
    with pytest.raises(StaleWriteError):
        repository.update_streak(streak, expected_version=5)


def test_supabase_repair_repository() -> None:
    client = FakeSupabaseClient()
    table = client.table("ledger_repairs")
    repair_id = str(uuid4())
    user_id = uuid4()
    row = {
        "id": repair_id,
        "user_id": str(user_id),
        "day": "2024-05-01",
        "kind": "ledger",
        "reason": "timeout",
        "created_at": "2024-05-01T12:00:00+00:00",
    }
    table.queue("insert", [row])
    table.queue("select", [row])

    repository = SupabaseRepairRepository(client)
    created = repository.record_repair(user_id, date(2024, 5, 1), "ledger", "timeout")
    listed = repository.list_repairs(10)
    repository.resolve_repair(created.id)

    assert str(created.id) == repair_id
    assert listed == [created]
    assert ("id", repair_id) in table.last_filters


def _favorite_row(
    favorite_id: str, user_id: str, **overrides: object
) -> dict[str, object]:
    row: dict[str, object] = {
        "id": favorite_id,
        "user_id": user_id,
        "food_name": "Greek yogurt",
        "calories": 150,
        "protein_g": 15,
        "carbs_g": 8,
        "fat_g": 4,
        "serving_size": None,
        "serving_unit": "cup",
        "category": None,
        "use_count": 0,
        "last_used_at": None,
        "created_at": "2024-05-01T08:00:00+00:00",
        "updated_at": "2024-05-01T08:00:00+00:00",
    }
    row.update(overrides)
    return row


def test_supabase_favorite_repository_insert_and_search() -> None:
    client = FakeSupabaseClient()
    table = client.table("favorite_foods")
    favorite_id = str(uuid4())
    user_id = uuid4()
    table.queue("insert", [_favorite_row(favorite_id, str(user_id))])
    table.queue("select", [_favorite_row(favorite_id, str(user_id))])

    repository = SupabaseFavoriteRepository(client)
    created = repository.insert_favorite(
        user_id, NewFavoriteFood(food_name="Greek yogurt", calories=150)
    )
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["use_count"] == 0

    found = repository.list_favorites(user_id, 10, name_query="yog")

    assert str(created.id) == favorite_id
    assert created.last_used_at is None
    assert found == [created]
    assert ("food_name~", "%yog%") in table.last_filters
    assert table.orders == [
        ("use_count", True),
        ("last_used_at", True),
        ("created_at", True),
    ]


def test_supabase_favorite_repository_record_use_checks_count() -> None:
    client = FakeSupabaseClient()
    table = client.table("favorite_foods")
    favorite_id = uuid4()
    user_id = uuid4()
    table.queue(
        "update",
        [
            _favorite_row(
                str(favorite_id),
                str(user_id),
                use_count=4,
                last_used_at="2024-05-02T09:00:00+00:00",
            )
        ],
    )
    favorite = FavoriteFood(
        id=favorite_id,
        user_id=user_id,
        food_name="Greek yogurt",
        calories=150,
        protein_g=15,
        carbs_g=8,
        fat_g=4,
        use_count=3,
    )
    used_at = datetime(2024, 5, 2, 9, tzinfo=UTC)

    repository = SupabaseFavoriteRepository(client)
    updated = repository.record_use(favorite, used_at)

    assert updated.use_count == 4
    assert updated.last_used_at == used_at
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["use_count"] == 4
    assert ("use_count", 3) in table.last_filters
    with pytest.raises(StaleWriteError):
        repository.record_use(favorite, used_at)


def test_supabase_favorite_repository_update_and_delete() -> None:
    client = FakeSupabaseClient()
    table = client.table("favorite_foods")
    user_id = uuid4()
    table.queue("update", [_favorite_row(str(uuid4()), str(user_id), calories=180)])
    table.queue("delete", [{"id": "gone"}])

    repository = SupabaseFavoriteRepository(client)
    updated = repository.update_favorite(uuid4(), user_id, {"calories": 180.0})

    assert updated is not None
    assert updated.calories == 180
    assert isinstance(table.last_payload, dict)
    assert "updated_at" in table.last_payload
    assert repository.update_favorite(uuid4(), user_id, {"calories": 1.0}) is None
    assert repository.delete_favorite(uuid4(), user_id) is True
    assert repository.delete_favorite(uuid4(), user_id) is False
