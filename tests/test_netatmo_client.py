try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import time
from urllib.parse import parse_qs

import httpx
import pytest

from weather_relay.clients.netatmo import (
    MalformedResponseError,
    NetatmoClient,
    UpstreamAuthError,
    UpstreamFetchError,
)
from weather_relay.core.config import NetatmoSettings

pytestmark = pytest.mark.anyio

DEVICE_ID = "70:ee:50:00:00:01"
MODULE_ID = "02:00:00:00:00:01"


def _settings(**overrides) -> NetatmoSettings:
    values = {
        "NETATMO_APP_ID": "client",
        "NETATMO_CLIENT_SECRET": "secret",
        "NETATMO_DEVICE_ID": DEVICE_ID,
        "NETATMO_OUTDOOR_MODULE_ID": MODULE_ID,
    }
    values.update(overrides)
    return NetatmoSettings(**values)


def _station_payload(*, modules=None, device_dashboard=None, device_id=DEVICE_ID) -> dict:
    if modules is None:
        modules = [{"_id": MODULE_ID, "dashboard_data": {"Temperature": 21.5}}]
    if device_dashboard is None:
        device_dashboard = {"Temperature": 23.1, "Pressure": 1013}
    return {
        "body": {
            "devices": [
                {
                    "_id": device_id,
                    "dashboard_data": device_dashboard,
                    "modules": modules,
                }
            ]
        },
        "status": "ok",
    }


class RecordingHandler:
    def __init__(self, response: httpx.Response | Exception) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _client(handler: RecordingHandler, **overrides) -> NetatmoClient:
    return NetatmoClient(_settings(**overrides), transport=httpx.MockTransport(handler))


async def test_exchange_posts_refresh_grant_and_returns_new_pair() -> None:
    handler = RecordingHandler(
        httpx.Response(
            200,
            json={"access_token": "A1", "refresh_token": "R1", "expires_in": 10800},
        )
    )

    pair = await _client(handler).exchange_refresh_token("R0")

    assert pair.access_token == "A1"
    assert pair.refresh_token == "R1"
    request = handler.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.netatmo.com/oauth2/token"
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    form = parse_qs(request.content.decode())
    assert form == {
        "grant_type": ["refresh_token"],
        "refresh_token": ["R0"],
        "client_id": ["client"],
        "client_secret": ["secret"],
    }


async def test_exchange_surfaces_status_and_body_on_rejection() -> None:
    handler = RecordingHandler(httpx.Response(400, text='{"error":"invalid_grant"}'))

    with pytest.raises(UpstreamAuthError) as excinfo:
        await _client(handler).exchange_refresh_token("R0")

    assert excinfo.value.status == 400
    assert "invalid_grant" in excinfo.value.body


async def test_exchange_requires_both_tokens_in_payload() -> None:
    handler = RecordingHandler(httpx.Response(200, json={"access_token": "A1"}))

    with pytest.raises(MalformedResponseError):
        await _client(handler).exchange_refresh_token("R0")


async def test_exchange_wraps_transport_errors() -> None:
    handler = RecordingHandler(httpx.ConnectError("connection refused"))

    with pytest.raises(UpstreamAuthError) as excinfo:
        await _client(handler).exchange_refresh_token("R0")

    assert excinfo.value.status is None


async def test_exchange_honours_configured_api_base() -> None:
    handler = RecordingHandler(
        httpx.Response(200, json={"access_token": "A1", "refresh_token": "R1"})
    )

    await _client(handler, NETATMO_API_BASE="https://netatmo.internal/").exchange_refresh_token("R0")

    assert str(handler.requests[0].url) == "https://netatmo.internal/oauth2/token"


async def test_fetch_snapshot_reads_module_temperature_and_station_pressure() -> None:
    handler = RecordingHandler(httpx.Response(200, json=_station_payload()))
    before = int(time.time() * 1000)

    snapshot = await _client(handler).fetch_snapshot(
        "A1", device_id=DEVICE_ID, module_id=MODULE_ID
    )

    after = int(time.time() * 1000)
    assert snapshot.temperature == 21.5
    assert snapshot.pressure == 1013
    assert before <= snapshot.timestamp <= after

    request = handler.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/api/getstationsdata"
    assert request.headers["authorization"] == "Bearer A1"
    assert dict(request.url.params) == {
        "client_id": "client",
        "client_secret": "secret",
        "device_id": DEVICE_ID,
        "get_favorites": "false",
    }


async def test_fetch_snapshot_defaults_temperature_when_module_missing() -> None:
    payload = _station_payload(modules=[{"_id": "other", "dashboard_data": {"Temperature": 5}}])
    handler = RecordingHandler(httpx.Response(200, json=payload))

    snapshot = await _client(handler).fetch_snapshot(
        "A1", device_id=DEVICE_ID, module_id=MODULE_ID
    )

    assert snapshot.temperature == 0
    assert snapshot.pressure == 1013


async def test_fetch_snapshot_defaults_pressure_when_field_missing() -> None:
    payload = _station_payload(device_dashboard={"Temperature": 23.1})
    handler = RecordingHandler(httpx.Response(200, json=payload))

    snapshot = await _client(handler).fetch_snapshot(
        "A1", device_id=DEVICE_ID, module_id=MODULE_ID
    )

    assert snapshot.pressure == 0
    assert snapshot.temperature == 21.5


async def test_fetch_snapshot_defaults_everything_when_device_missing() -> None:
    payload = _station_payload(device_id="some-other-station")
    handler = RecordingHandler(httpx.Response(200, json=payload))

    snapshot = await _client(handler).fetch_snapshot(
        "A1", device_id=DEVICE_ID, module_id=MODULE_ID
    )

    assert (snapshot.temperature, snapshot.pressure) == (0, 0)


async def test_fetch_snapshot_tolerates_module_without_dashboard() -> None:
    payload = _station_payload(modules=[{"_id": MODULE_ID}])
    handler = RecordingHandler(httpx.Response(200, json=payload))

    snapshot = await _client(handler).fetch_snapshot(
        "A1", device_id=DEVICE_ID, module_id=MODULE_ID
    )

    assert snapshot.temperature == 0


async def test_fetch_snapshot_raises_on_error_status() -> None:
    handler = RecordingHandler(httpx.Response(403, json={"error": {"code": 3}}))

    with pytest.raises(UpstreamFetchError) as excinfo:
        await _client(handler).fetch_snapshot(
            "expired", device_id=DEVICE_ID, module_id=MODULE_ID
        )

    assert excinfo.value.status == 403


async def test_fetch_snapshot_rejects_non_json_body() -> None:
    handler = RecordingHandler(httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(MalformedResponseError):
        await _client(handler).fetch_snapshot(
            "A1", device_id=DEVICE_ID, module_id=MODULE_ID
        )


async def test_exchange_rejects_tokens_of_the_wrong_type() -> None:
    handler = RecordingHandler(
        httpx.Response(200, json={"access_token": 123, "refresh_token": "R1"})
    )

    with pytest.raises(MalformedResponseError):
        await _client(handler).exchange_refresh_token("R0")
