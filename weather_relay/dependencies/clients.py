"""
Accessors exposing the startup-built ``RelayContext`` components to routes.
"""

from fastapi import HTTPException, Request, status

from weather_relay.core.context import RelayContext
from weather_relay.services import FetchScheduler, SnapshotCache


def get_relay_context(request: Request) -> RelayContext:
    """Return the context attached to the app during lifespan startup."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Relay is still starting up.",
        )
    return context


def get_snapshot_cache(request: Request) -> SnapshotCache:
    """Provide the snapshot cache read by the weather endpoint."""
    return get_relay_context(request).snapshots


def get_fetch_scheduler(request: Request) -> FetchScheduler:
    """Provide the background fetch scheduler."""
    return get_relay_context(request).scheduler


__all__ = [
    "get_fetch_scheduler",
    "get_relay_context",
    "get_snapshot_cache",
]
