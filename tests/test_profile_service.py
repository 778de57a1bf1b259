"""Tests for the profile service."""

from uuid import uuid4

import pytest

from meal_tracker.domain.errors import NotFoundError
from meal_tracker.domain.profiles import Goal
from meal_tracker.services.profiles import ProfileService
from tests.conftest import InMemoryProfileRepository


def test_compute_profile_derives_targets(biometrics) -> None:
    repository = InMemoryProfileRepository()
    service = ProfileService(repository)
    user_id = uuid4()

    profile = service.compute_profile(user_id, biometrics)

    assert profile.tdee == 2556
    assert profile.target_calories == profile.tdee
    assert profile.target_protein_g == 140
    assert profile.target_carbs_g == 307
    assert profile.target_fat_g == 85
    assert profile.updated_at is not None
    assert repository.profiles[user_id] == profile


def test_update_profile_recomputes_everything(biometrics) -> None:
    service = ProfileService(InMemoryProfileRepository())
    user_id = uuid4()
    service.compute_profile(user_id, biometrics)

    profile = service.update_profile(user_id, {"weight_kg": 80})

    assert profile.weight_kg == 80
    assert profile.age == biometrics.age
    assert profile.tdee == 2711
    assert profile.target_protein_g == 160
    assert profile.target_fat_g == 90
    assert profile.target_carbs_g == 315


def test_update_profile_goal_change(biometrics) -> None:
    service = ProfileService(InMemoryProfileRepository())
    user_id = uuid4()
    service.compute_profile(user_id, biometrics)

    profile = service.update_profile(user_id, {"goal": Goal.LOSE_WEIGHT})

    assert profile.tdee == 2056
    assert profile.target_calories == 2056


def test_update_profile_rejects_unknown_fields(biometrics) -> None:
    service = ProfileService(InMemoryProfileRepository())
    user_id = uuid4()
    service.compute_profile(user_id, biometrics)

    with pytest.raises(ValueError, match="tdee"):
        service.update_profile(user_id, {"tdee": 5000})


def test_get_profile_missing_raises() -> None:
    service = ProfileService(InMemoryProfileRepository())

    with pytest.raises(NotFoundError):
        service.get_profile(uuid4())

    with pytest.raises(NotFoundError):
        service.update_profile(uuid4(), {"age": 40})
