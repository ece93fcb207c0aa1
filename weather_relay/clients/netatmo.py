"""
Netatmo API client.

Exchanges single-use refresh tokens and reads the current station data. The
client is stateless and performs no retries; callers decide what a failure
means.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from weather_relay.core.config import NetatmoSettings
from weather_relay.models.tokens import TokenPair
from weather_relay.schemas.weather import WeatherSnapshot


class NetatmoAPIError(Exception):
    """Base class for failures talking to the Netatmo API."""


class UpstreamAuthError(NetatmoAPIError):
    """Raised when the token endpoint rejects a refresh token exchange."""

    def __init__(self, status: Optional[int], body: str) -> None:
        super().__init__(f"Token refresh failed (status={status}): {body}")
        self.status = status
        self.body = body


class UpstreamFetchError(NetatmoAPIError):
    """Raised when the station data endpoint does not answer with 2xx."""

    def __init__(self, status: Optional[int], detail: str = "") -> None:
        message = f"Failed to fetch station data (status={status})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status = status


class MalformedResponseError(NetatmoAPIError):
    """Raised when a Netatmo payload is missing required fields."""


def _dashboard_value(section: Optional[Dict[str, Any]], field: str) -> float:
    """Read a numeric dashboard field, defaulting to ``0`` when absent."""
    if not isinstance(section, dict):
        return 0
    dashboard = section.get("dashboard_data")
    if not isinstance(dashboard, dict):
        return 0
    value = dashboard.get(field)
    if value is None:
        return 0
    return value


def _find_by_id(items: Any, item_id: str) -> Optional[Dict[str, Any]]:
    if not isinstance(items, list):
        return None
    for item in items:
        if isinstance(item, dict) and item.get("_id") == item_id:
            return item
    return None


class NetatmoClient:
    """Thin async wrapper around the two Netatmo endpoints the relay needs."""

    TOKEN_PATH = "/oauth2/token"
    STATION_DATA_PATH = "/api/getstationsdata"

    def __init__(
        self,
        settings: NetatmoSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._base_url = str(settings.api_base_url).rstrip("/")

    @property
    def token_url(self) -> str:
        return f"{self._base_url}{self.TOKEN_PATH}"

    @property
    def station_data_url(self) -> str:
        return f"{self._base_url}{self.STATION_DATA_PATH}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.request_timeout, transport=self._transport
        )

    async def exchange_refresh_token(self, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new token pair.

        The submitted refresh token is invalidated by Netatmo as soon as the
        exchange succeeds; only the returned pair is usable afterwards.
        """
        payload = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
        }

        try:
            async with self._client() as client:
                response = await client.post(self.token_url, data=payload)
        except httpx.HTTPError as exc:
            raise UpstreamAuthError(None, str(exc)) from exc

        if not response.is_success:
            raise UpstreamAuthError(response.status_code, response.text)

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError("Token endpoint returned non-JSON body.") from exc

        if not isinstance(token_payload, dict):
            raise MalformedResponseError("Token endpoint returned unexpected payload.")
        access_token = token_payload.get("access_token")
        new_refresh_token = token_payload.get("refresh_token")
        if not access_token or not new_refresh_token:
            raise MalformedResponseError("Incomplete token payload returned from Netatmo.")

        try:
            return TokenPair(access_token=access_token, refresh_token=new_refresh_token)
        except ValidationError as exc:
            raise MalformedResponseError(
                "Token payload from Netatmo has invalid field types."
            ) from exc

    async def fetch_snapshot(
        self, access_token: str, *, device_id: str, module_id: str
    ) -> WeatherSnapshot:
        """
        Read the current outdoor temperature and station pressure.

        Missing devices, modules or dashboard fields yield ``0`` for the
        affected value instead of an error.
        """
        params = {
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "device_id": device_id,
            "get_favorites": "false",
        }
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            async with self._client() as client:
                response = await client.get(
                    self.station_data_url, params=params, headers=headers
                )
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(None, str(exc)) from exc

        if not response.is_success:
            raise UpstreamFetchError(response.status_code, response.reason_phrase)

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError("Station endpoint returned non-JSON body.") from exc

        body = data.get("body") if isinstance(data, dict) else None
        devices = body.get("devices") if isinstance(body, dict) else None
        station = _find_by_id(devices, device_id)
        outdoor_module = _find_by_id(station.get("modules") if station else None, module_id)

        return WeatherSnapshot(
            temperature=_dashboard_value(outdoor_module, "Temperature"),
            pressure=_dashboard_value(station, "Pressure"),
            timestamp=int(time.time() * 1000),
        )


__all__ = [
    "MalformedResponseError",
    "NetatmoAPIError",
    "NetatmoClient",
    "UpstreamAuthError",
    "UpstreamFetchError",
]
