"""FastAPI application factory."""

import logging
from datetime import UTC, date, datetime, time, timedelta
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from meal_tracker.api.admin import router as admin_router
from meal_tracker.api.schemas import (
    BulkDeleteRequest,
    FavoriteBulkDeleteRequest,
    FavoriteLogRequest,
    FavoriteRequest,
    FavoriteUpdateRequest,
    MealRequest,
    MealUpdateRequest,
    ProfileRequest,
    ProfileUpdateRequest,
)
from meal_tracker.app_logging import configure_logging
from meal_tracker.containers import AppContainer
from meal_tracker.domain.errors import (
    InsufficientCreditError,
    NotFoundError,
    StaleWriteError,
)
from meal_tracker.domain.ledger import DailySummary
from meal_tracker.domain.meals import MealQuery, MealType, day_range_query
from meal_tracker.services.nutrition import MealMutationResult

MAX_PAGE_SIZE = 100

router = APIRouter(prefix="/meal-tracker", tags=["meal-tracker"])


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    app = FastAPI()
    app.state.container = container

    app.include_router(router)
    app.include_router(admin_router)

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(InsufficientCreditError)
    async def insufficient_credit(
        request: Request, exc: InsufficientCreditError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc), "freeze_credits_available": False},
        )

    @app.exception_handler(StaleWriteError)
    async def stale_write(request: Request, exc: StaleWriteError) -> JSONResponse:
        logger.warning("Write conflict on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _current_user(x_user_id: str | None) -> UUID:
    """Return the authenticated user id forwarded by the gateway."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    try:
        return UUID(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc


@router.get("/profile")
def get_profile(
    request: Request, x_user_id: str | None = Header(default=None)
) -> dict[str, object]:
    """Return the caller's profile and targets."""
    user_id = _current_user(x_user_id)
    return {"profile": _container(request).nutrition_service.get_profile(user_id)}


@router.post("/profile", status_code=status.HTTP_201_CREATED)
def create_profile(
    payload: ProfileRequest,
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> dict[str, object]:
    """Store biometrics and derive calorie and macro targets."""
    user_id = _current_user(x_user_id)
    profile = _container(request).nutrition_service.compute_profile(
        user_id, payload.to_biometrics()
    )
    return {"profile": profile}


@router.put("/profile")
def update_profile(
    payload: ProfileUpdateRequest,
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> dict[str, object]:
    """Merge biometric changes and recompute targets."""
    user_id = _current_user(x_user_id)
    profile = _container(request).nutrition_service.update_profile(
        user_id, payload.to_changes()
    )
    return {"profile": profile}


@router.get("/meals")
def list_meals(  # noqa: PLR0913
    request: Request,
    x_user_id: str | None = Header(default=None),
    day: date | None = Query(default=None, alias="date"),
    start_date: date | None = None,
    end_date: date | None = None,
    meal_type: MealType | None = None,
    limit: int = Query(default=50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    sort_by: Literal["logged_at", "created_at"] = "logged_at",
    sort_order: Literal["asc", "desc"] = "desc",
) -> dict[str, object]:
    """Return a page of the caller's meals."""
    user_id = _current_user(x_user_id)
    start, end = _range_bounds(day, start_date, end_date)
    query = MealQuery(
        start=start,
        end=end,
        meal_type=meal_type,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        descending=sort_order == "desc",
    )
    page = _container(request).nutrition_service.list_meals(user_id, query)
    return {
        "meals": page.meals,
        "total": page.total,
        "limit": limit,
        "offset": offset,
        "has_more": offset + len(page.meals) < page.total,
    }


@router.post("/meals", status_code=status.HTTP_201_CREATED)
def create_meal(
    payload: MealRequest,
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> dict[str, object]:
    """Log a meal."""
    user_id = _current_user(x_user_id)
    result = _container(request).nutrition_service.create_meal(
        user_id, payload.to_new_meal()
    )
    return _serialize_mutation(result)


@router.get("/meals/daily")
def daily_meals(
    request: Request,
    x_user_id: str | None = Header(default=None),
    day: date | None = Query(default=None, alias="date"),
) -> dict[str, object]:
    """Return a day's meals with its ledger summary."""
    user_id = _current_user(x_user_id)
    resolved_day = day or datetime.now(tz=UTC).date()
    service = _container(request).nutrition_service
    page = service.list_meals(user_id, day_range_query(resolved_day, resolved_day))
    summary = service.get_daily_summary(user_id, resolved_day)
    return {
        "date": resolved_day,
        "meals": page.meals,
        "summary": _serialize_summary(summary),
    }


@router.post("/meals/bulk-delete")
def bulk_delete_meals(
    payload: BulkDeleteRequest,
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> dict[str, object]:
    """Delete several meals at once."""
    user_id = _current_user(x_user_id)
    result = _container(request).nutrition_service.bulk_delete_meals(
        user_id, payload.meal_ids
    )
    return {"result": result}


@router.get("/meals/{meal_id}")
def get_meal(
    meal_id: UUID, request: Request, x_user_id: str | None = Header(default=None)
) -> dict[str, object]:
    """Return one meal."""
    user_id = _current_user(x_user_id)
    return {"meal": _container(request).nutrition_service.get_meal(user_id, meal_id)}


@router.put("/meals/{meal_id}")
def update_meal(
    meal_id: UUID,
    payload: MealUpdateRequest,
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> dict[str, object]:
    """Edit a meal."""
    user_id = _current_user(x_user_id)
    result = _container(request).nutrition_service.update_meal(
        user_id, meal_id, payload.to_changes()
    )
    return _serialize_mutation(result)


@router.delete("/meals/{meal_id}")
def delete_meal(
    meal_id: UUID, request: Request, x_user_id: str | None = Header(default=None)
) -> dict[str, object]:
    """Delete a meal."""
    user_id = _current_user(x_user_id)
    result = _container(request).nutrition_service.delete_meal(user_id, meal_id)
    return {"deleted": True, "meal_id": meal_id, "consistent": result.consistent}


@router.get("/favorites")
def list_favorites(
    request: Request,
    x_user_id: str | None = Header(default=None),
    q: str | None = Query(default=None, max_length=200),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
) -> dict[str, object]:
    """Return the caller's favorites, most used first, optionally by name."""
    user_id = _current_user(x_user_id)
    service = _container(request).favorite_service
    if q and q.strip():
        return {"favorites": service.search_favorites(user_id, q, limit)}
    return {"favorites": service.list_favorites(user_id, limit)}


@router.post("/favorites", status_code=status.HTTP_201_CREATED)
def create_favorite(
    payload: FavoriteRequest,
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> dict[str, object]:
    """Save a favorite food."""
    user_id = _current_user(x_user_id)
    favorite = _container(request).favorite_service.create_favorite(
        user_id, payload.to_new_favorite()
    )
    return {"favorite": favorite}


@router.post("/favorites/bulk-delete")
def bulk_delete_favorites(
    payload: FavoriteBulkDeleteRequest,
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> dict[str, object]:
    """Delete several favorites at once."""
    user_id = _current_user(x_user_id)
    result = _container(request).favorite_service.bulk_delete_favorites(
        user_id, payload.favorite_ids
    )
    return {"result": result}


@router.get("/favorites/{favorite_id}")
def get_favorite(
    favorite_id: UUID, request: Request, x_user_id: str | None = Header(default=None)
) -> dict[str, object]:
    """Return one favorite."""
    user_id = _current_user(x_user_id)
    favorite = _container(request).favorite_service.get_favorite(user_id, favorite_id)
    return {"favorite": favorite}


@router.put("/favorites/{favorite_id}")
def update_favorite(
    favorite_id: UUID,
    payload: FavoriteUpdateRequest,
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> dict[str, object]:
    """Edit a favorite."""
    user_id = _current_user(x_user_id)
    favorite = _container(request).favorite_service.update_favorite(
        user_id, favorite_id, payload.to_changes()
    )
    return {"favorite": favorite}


@router.delete("/favorites/{favorite_id}")
def delete_favorite(
    favorite_id: UUID, request: Request, x_user_id: str | None = Header(default=None)
) -> dict[str, object]:
    """Delete a favorite."""
    user_id = _current_user(x_user_id)
    _container(request).favorite_service.delete_favorite(user_id, favorite_id)
    return {"deleted": True, "favorite_id": favorite_id}


@router.post("/favorites/{favorite_id}/log", status_code=status.HTTP_201_CREATED)
def log_favorite(
    favorite_id: UUID,
    payload: FavoriteLogRequest,
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> dict[str, object]:
    """Log a favorite as a meal."""
    user_id = _current_user(x_user_id)
    result = _container(request).favorite_service.log_favorite(
        user_id, favorite_id, payload.meal_type, payload.logged_at
    )
    return {
        "meal": result.meal,
        "favorite": {"id": result.favorite.id, "use_count": result.favorite.use_count},
        "consistent": result.consistent,
    }


@router.get("/streak")
def get_streak(
    request: Request, x_user_id: str | None = Header(default=None)
) -> dict[str, object]:
    """Return the caller's streak, starting an empty one on first access."""
    user_id = _current_user(x_user_id)
    return {"streak": _container(request).nutrition_service.ensure_streak(user_id)}


@router.get("/streak/calendar")
def streak_calendar(
    request: Request,
    x_user_id: str | None = Header(default=None),
    year: int | None = Query(default=None, ge=1970, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
) -> dict[str, object]:
    """Return the logged days of a month."""
    user_id = _current_user(x_user_id)
    today = datetime.now(tz=UTC).date()
    calendar = _container(request).nutrition_service.get_streak_calendar(
        user_id, year or today.year, month or today.month
    )
    return {"calendar": calendar}


@router.post("/streak/freeze")
def use_freeze_credit(
    request: Request, x_user_id: str | None = Header(default=None)
) -> dict[str, object]:
    """Spend a freeze credit."""
    user_id = _current_user(x_user_id)
    streak = _container(request).nutrition_service.use_freeze_credit(user_id)
    return {"streak": streak, "freeze_credits_available": streak.freeze_credits > 0}


@router.get("/analytics/daily")
def daily_analytics(
    request: Request,
    x_user_id: str | None = Header(default=None),
    day: date | None = Query(default=None, alias="date"),
) -> dict[str, object]:
    """Return analytics for a single day."""
    user_id = _current_user(x_user_id)
    resolved_day = day or datetime.now(tz=UTC).date()
    analytics = _container(request).stats_service.summarize_range(
        user_id, resolved_day, resolved_day
    )
    return {"analytics": analytics}


@router.get("/analytics/monthly")
def monthly_analytics(
    request: Request,
    x_user_id: str | None = Header(default=None),
    year: int | None = Query(default=None, ge=1970, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
) -> dict[str, object]:
    """Return analytics for a calendar month."""
    user_id = _current_user(x_user_id)
    today = datetime.now(tz=UTC).date()
    analytics = _container(request).stats_service.summarize_month(
        user_id, year or today.year, month or today.month
    )
    return {"analytics": analytics}


@router.get("/analytics/weekly")
def weekly_analytics(
    request: Request,
    x_user_id: str | None = Header(default=None),
    day: date | None = Query(default=None, alias="date"),
    weeks: int = Query(default=4, ge=1, le=52),
) -> dict[str, object]:
    """Return the week containing a day and the trend over recent weeks."""
    user_id = _current_user(x_user_id)
    resolved_day = day or datetime.now(tz=UTC).date()
    stats_service = _container(request).stats_service
    return {
        "week": stats_service.summarize_week(user_id, resolved_day),
        "trends": stats_service.weekly_trends(user_id, weeks=weeks, today=resolved_day),
    }


def _range_bounds(
    day: date | None, start_date: date | None, end_date: date | None
) -> tuple[datetime | None, datetime | None]:
    """Return UTC bounds for a single day or an inclusive day range."""
    if day is not None:
        start_date = end_date = day
    start = (
        datetime.combine(start_date, time.min, tzinfo=UTC) if start_date else None
    )
    end = (
        datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=UTC)
        if end_date
        else None
    )
    return start, end


def _serialize_mutation(result: MealMutationResult) -> dict[str, object]:
    return {"meal": result.meal, "consistent": result.consistent}


def _serialize_summary(summary: DailySummary | None) -> dict[str, object] | None:
    if summary is None:
        return None
    return {
        "date": summary.day,
        "total_calories": summary.total_calories,
        "total_protein_g": summary.total_protein_g,
        "total_carbs_g": summary.total_carbs_g,
        "total_fat_g": summary.total_fat_g,
        "meal_count": summary.meal_count,
        "target_calories": summary.target_calories,
    }
