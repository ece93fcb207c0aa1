"""
Process-wide wiring of the relay's components.

One ``RelayContext`` is built at startup and handed to the FastAPI app; every
component receives its collaborators from it instead of module globals.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from weather_relay.clients.kv_store import SQLiteKeyValueStore
from weather_relay.clients.netatmo import NetatmoClient
from weather_relay.core.config import AppSettings
from weather_relay.services.credentials import CredentialManager, KeyValueStore
from weather_relay.services.fetch_scheduler import FetchScheduler
from weather_relay.services.snapshot_cache import SnapshotCache
from weather_relay.services.token_cipher import TokenCipherService


@dataclass
class RelayContext:
    settings: AppSettings
    store: KeyValueStore
    netatmo: NetatmoClient
    credentials: CredentialManager
    snapshots: SnapshotCache
    scheduler: FetchScheduler


def build_context(
    settings: AppSettings,
    *,
    store: KeyValueStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RelayContext:
    """Construct every component from ``settings``."""
    store = store if store is not None else SQLiteKeyValueStore(settings.store_db_path)
    netatmo = NetatmoClient(settings.netatmo, transport=transport)
    credentials = CredentialManager(
        store=store,
        netatmo_client=netatmo,
        netatmo_settings=settings.netatmo,
        token_cipher=TokenCipherService.from_settings(settings),
    )
    snapshots = SnapshotCache(store)
    scheduler = FetchScheduler(
        credentials,
        netatmo,
        snapshots,
        device_id=settings.netatmo.device_id,
        module_id=settings.netatmo.outdoor_module_id,
        interval_seconds=settings.scheduler.fetch_interval_seconds,
    )
    return RelayContext(
        settings=settings,
        store=store,
        netatmo=netatmo,
        credentials=credentials,
        snapshots=snapshots,
        scheduler=scheduler,
    )


__all__ = ["RelayContext", "build_context"]
