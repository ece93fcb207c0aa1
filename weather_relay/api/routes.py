"""
FastAPI routes for the weather relay.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from weather_relay.core.config import AppSettings
from weather_relay.dependencies import (
    get_app_settings,
    get_fetch_scheduler,
    get_snapshot_cache,
)
from weather_relay.services import FetchScheduler, SnapshotCache

router = APIRouter()


@router.get("/", status_code=HTTPStatus.OK)
async def read_latest_weather(
    snapshots: Annotated[SnapshotCache, Depends(get_snapshot_cache)],
) -> JSONResponse:
    """Serve the last cached reading verbatim, or ``null`` before the first fetch."""
    return JSONResponse(content=snapshots.latest())


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    scheduler: Annotated[FetchScheduler, Depends(get_fetch_scheduler)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> dict:
    """Simple health endpoint for monitoring."""
    last_result = scheduler.last_result
    return {
        "status": "ok",
        "environment": settings.environment,
        "fetch_loop_running": scheduler.running,
        "last_tick": scheduler.state.value,
        "last_tick_finished_at": last_result.finished_at if last_result else None,
    }


__all__ = ["router"]
