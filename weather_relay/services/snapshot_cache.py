"""Latest-reading cache backed by the store's ``weatherData`` key."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from weather_relay.schemas.weather import WeatherSnapshot
from weather_relay.services.credentials import KeyValueStore

logger = logging.getLogger(__name__)

WEATHER_DATA_KEY = "weatherData"


class SnapshotCache:
    """
    Holds the most recent successful reading.

    There is no TTL: a value stays until the next successful fetch replaces
    it, however old that makes it.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def latest(self) -> Optional[Dict[str, Any]]:
        return self._store.get(WEATHER_DATA_KEY)

    def publish(self, snapshot: WeatherSnapshot) -> None:
        self._store.set(WEATHER_DATA_KEY, snapshot.model_dump())
        logger.info("Weather data updated: %s", snapshot.model_dump())


__all__ = ["SnapshotCache", "WEATHER_DATA_KEY"]
