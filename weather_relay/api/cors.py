"""CORS handling for the snapshot endpoint."""

from __future__ import annotations

from fastapi import Response
from fastapi.datastructures import Headers
from fastapi.middleware.cors import CORSMiddleware

from weather_relay.core.config import AppSettings

_LOCALHOST_ORIGIN_REGEX = r"https?://(localhost|127\.0\.0\.1)(:\d+)?"


class PreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware that answers accepted pre-flight requests with ``204``."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)


def cors_options(settings: AppSettings) -> dict:
    """Keyword arguments for ``PreflightCORSMiddleware`` derived from settings."""
    return {
        "allow_origins": list(settings.cors.allowed_origins),
        "allow_origin_regex": _LOCALHOST_ORIGIN_REGEX if settings.is_development else None,
        "allow_methods": ["GET", "OPTIONS"],
        "allow_headers": ["*"],
    }


__all__ = ["PreflightCORSMiddleware", "cors_options"]
