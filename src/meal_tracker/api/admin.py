"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from meal_tracker.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/repairs", dependencies=[Depends(require_admin)])
def list_repairs(request: Request, limit: int = 50) -> dict[str, object]:
    """Return deferred ledger and streak repairs."""
    container: AppContainer = request.app.state.container
    return {"repairs": container.nutrition_service.list_repairs(limit)}


@router.post("/repairs/run", dependencies=[Depends(require_admin)])
def run_repairs(request: Request, limit: int = 50) -> dict[str, object]:
    """Reconcile queued repairs."""
    container: AppContainer = request.app.state.container
    return {"resolved": container.nutrition_service.process_repairs(limit)}


@router.post("/users/{user_id}/streak/reset", dependencies=[Depends(require_admin)])
def reset_streak(user_id: UUID, request: Request) -> dict[str, object]:
    """Clear a user's current streak."""
    container: AppContainer = request.app.state.container
    return {"streak": container.nutrition_service.reset_streak(user_id)}


@router.post(
    "/users/{user_id}/days/{day}/reconcile", dependencies=[Depends(require_admin)]
)
def reconcile_day(user_id: UUID, day: date, request: Request) -> dict[str, object]:
    """Rebuild a day's summary from the stored meals."""
    container: AppContainer = request.app.state.container
    return {"summary": container.nutrition_service.reconcile_day(user_id, day)}
