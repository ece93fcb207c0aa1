"""Expose dependency helpers for FastAPI routers."""

from .clients import get_fetch_scheduler, get_relay_context, get_snapshot_cache
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_fetch_scheduler",
    "get_relay_context",
    "get_snapshot_cache",
]
