"""Domain exceptions for the meal tracker."""

from datetime import date
from uuid import UUID


class MealTrackerError(Exception):
    """Base class for meal tracker errors."""


class NotFoundError(MealTrackerError):
    """Raised when a meal, profile or streak does not exist."""

    def __init__(self, resource: str, key: object | None = None) -> None:
        self.resource = resource
        self.key = key
        message = f"{resource} not found"
        if key is not None:
            message = f"{resource} {key} not found"
        super().__init__(message)


class InsufficientCreditError(MealTrackerError):
    """Raised when a freeze credit is requested with a zero balance."""

    def __init__(self, user_id: UUID) -> None:
        self.user_id = user_id
        super().__init__("No freeze credits available")


class StaleWriteError(MealTrackerError):
    """Raised when a version-checked write loses a race."""


class ConsistencyError(MealTrackerError):
    """Raised when a ledger or streak follow-up fails after a meal write."""

    def __init__(self, action: str, user_id: UUID, day: date) -> None:
        self.action = action
        self.user_id = user_id
        self.day = day
        super().__init__(f"Failed to apply {action} for user {user_id} on {day}")
