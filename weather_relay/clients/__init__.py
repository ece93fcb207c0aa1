"""Expose constructed client wrappers."""

from .kv_store import SQLiteKeyValueStore
from .netatmo import (
    MalformedResponseError,
    NetatmoAPIError,
    NetatmoClient,
    UpstreamAuthError,
    UpstreamFetchError,
)

__all__ = [
    "MalformedResponseError",
    "NetatmoAPIError",
    "NetatmoClient",
    "SQLiteKeyValueStore",
    "UpstreamAuthError",
    "UpstreamFetchError",
]
