"""
FastAPI dependency utilities for injecting configuration.
"""

from fastapi import Depends, Request

from weather_relay.core.config import AppSettings, get_settings


def get_app_settings(request: Request) -> AppSettings:
    """FastAPI dependency returning the settings the app was created with."""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        return get_settings()
    return settings


SettingsDependency = Depends(get_app_settings)

__all__ = ["SettingsDependency", "get_app_settings"]
