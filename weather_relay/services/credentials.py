"""
Lifecycle management for the Netatmo refresh/access token pair.

Netatmo refresh tokens are single-use: exchanging one invalidates it. Every
exchange therefore goes through one ``SingleFlight`` so two callers can never
spend the same refresh token, and every new pair is persisted before anyone
gets to use it.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from weather_relay.clients.netatmo import NetatmoAPIError
from weather_relay.core.config import NetatmoSettings
from weather_relay.models.tokens import TokenPair
from weather_relay.services.single_flight import SingleFlight
from weather_relay.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

REFRESH_TOKEN_KEY = "refreshToken"
ACCESS_TOKEN_KEY = "accessToken"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class TokenExchanger(Protocol):
    async def exchange_refresh_token(self, refresh_token: str) -> TokenPair: ...


class CredentialError(Exception):
    """Base class for credential lifecycle failures."""


class NoCredentialsError(CredentialError):
    """Raised when no refresh token exists in the store or the configuration."""


class InvalidCredentialsError(CredentialError):
    """Raised when Netatmo rejects the refresh token being exchanged."""


class CredentialManager:
    """Owns the ``refreshToken``/``accessToken`` keys of the store."""

    def __init__(
        self,
        store: KeyValueStore,
        netatmo_client: TokenExchanger,
        netatmo_settings: NetatmoSettings,
        token_cipher: TokenCipherService,
    ) -> None:
        self._store = store
        self._client = netatmo_client
        self._settings = netatmo_settings
        self._cipher = token_cipher
        self._rotation: SingleFlight[TokenPair] = SingleFlight("credential rotation")

    def _read_token(self, key: str) -> Optional[str]:
        stored = self._store.get(key)
        if not stored:
            return None
        try:
            return self._cipher.decrypt(stored)
        except ValueError:
            logger.warning("Stored %s could not be decrypted; treating it as absent.", key)
            return None

    def _persist(self, pair: TokenPair) -> None:
        # The previous refresh token is already dead upstream, so the new one
        # is written first.
        self._store.set(REFRESH_TOKEN_KEY, self._cipher.encrypt(pair.refresh_token))
        self._store.set(ACCESS_TOKEN_KEY, self._cipher.encrypt(pair.access_token))

    async def bootstrap(self) -> TokenPair:
        """
        Verify the credential chain at process start.

        Uses the stored refresh token, seeding it from configuration when the
        store has none. If the stored token is rejected and the configured one
        differs, the configured token is tried once. When nothing works both
        token keys are cleared and ``InvalidCredentialsError`` is raised.
        """
        return await self._rotation.run(self._bootstrap)

    async def _bootstrap(self) -> TokenPair:
        configured = self._settings.refresh_token
        stored = self._read_token(REFRESH_TOKEN_KEY)
        if stored is None:
            if not configured:
                raise NoCredentialsError(
                    "NETATMO_REFRESH_TOKEN not set and no refresh token stored."
                )
            logger.info("Seeding refresh token from configuration.")
            self._store.set(REFRESH_TOKEN_KEY, self._cipher.encrypt(configured))
            stored = configured

        candidates = [stored]
        if configured and configured != stored:
            candidates.append(configured)

        last_error: Optional[NetatmoAPIError] = None
        for attempt, candidate in enumerate(candidates, start=1):
            try:
                pair = await self._client.exchange_refresh_token(candidate)
            except NetatmoAPIError as exc:
                last_error = exc
                logger.warning(
                    "Refresh token rejected during bootstrap (attempt %d/%d): %s",
                    attempt,
                    len(candidates),
                    exc,
                )
                continue
            self._persist(pair)
            logger.info("Tokens initialized successfully.")
            return pair

        self._store.delete(REFRESH_TOKEN_KEY)
        self._store.delete(ACCESS_TOKEN_KEY)
        raise InvalidCredentialsError(
            "Invalid refresh token. Generate a new one in the Netatmo developer console."
        ) from last_error

    async def get_valid_access_token(self) -> str:
        """Return the stored access token, exchanging for a new pair when absent."""
        access_token = self._read_token(ACCESS_TOKEN_KEY)
        if access_token:
            return access_token
        pair = await self._rotation.run(self._rotate)
        return pair.access_token

    async def rotate(self) -> TokenPair:
        """Exchange the stored refresh token for a new pair unconditionally."""
        return await self._rotation.run(self._rotate)

    async def _rotate(self) -> TokenPair:
        refresh_token = self._read_token(REFRESH_TOKEN_KEY)
        if refresh_token is None:
            raise NoCredentialsError("No refresh token found. Bootstrap required.")

        try:
            pair = await self._client.exchange_refresh_token(refresh_token)
        except NetatmoAPIError as exc:
            raise InvalidCredentialsError(f"Token refresh failed: {exc}") from exc

        self._persist(pair)
        logger.debug("Credentials rotated.")
        return pair


__all__ = [
    "ACCESS_TOKEN_KEY",
    "CredentialError",
    "CredentialManager",
    "InvalidCredentialsError",
    "KeyValueStore",
    "NoCredentialsError",
    "REFRESH_TOKEN_KEY",
]
