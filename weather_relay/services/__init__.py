"""Service layer exports."""

from .credentials import (
    CredentialError,
    CredentialManager,
    InvalidCredentialsError,
    NoCredentialsError,
)
from .fetch_scheduler import FetchScheduler, TickResult, TickState
from .single_flight import SingleFlight
from .snapshot_cache import SnapshotCache
from .token_cipher import TokenCipherService

__all__ = [
    "CredentialError",
    "CredentialManager",
    "FetchScheduler",
    "InvalidCredentialsError",
    "NoCredentialsError",
    "SingleFlight",
    "SnapshotCache",
    "TickResult",
    "TickState",
    "TokenCipherService",
]
