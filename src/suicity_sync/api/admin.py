"""Admin API endpoints with simple token auth."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from suicity_sync.errors import StoreUnavailable

if TYPE_CHECKING:
    from suicity_sync.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])

_logger = logging.getLogger(__name__)
_run_lock = asyncio.Lock()


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


@router.post("/reconcile", dependencies=[Depends(require_admin)])
async def reconcile(request: Request) -> dict[str, object]:
    """Run a reconciliation and return its summary."""
    container: AppContainer = request.app.state.container
    if _run_lock.locked():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A reconciliation run is already in progress",
        )
    async with _run_lock:
        try:
            report = await container.reconciliation_service.run_reconciliation()
        except StoreUnavailable as exc:
            _logger.exception("Reconciliation aborted")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
            ) from exc
    return {"report": report.to_dict()}


@router.get("/reports/{name}", dependencies=[Depends(require_admin)])
async def report_artifact(name: str, request: Request) -> dict[str, object]:
    """Return a persisted report document."""
    container: AppContainer = request.app.state.container
    document = container.report_emitter.read_artifact(name)
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return document
