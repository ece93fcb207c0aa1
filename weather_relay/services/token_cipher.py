"""Symmetric encryption utilities for protecting stored Netatmo tokens."""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

from weather_relay.core.config import AppSettings


class TokenCipherService:
    """Encrypt and decrypt token strings using a derived Fernet key."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        key = base64.urlsafe_b64encode(digest)
        self._fernet = Fernet(key)

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "TokenCipherService":
        """Derive the key from the dedicated secret, else the Netatmo client secret."""
        secret = (
            settings.security.token_encryption_secret
            or settings.netatmo.client_secret
        )
        return cls(secret=secret)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a plaintext token and return the ciphertext."""
        token = self._fernet.encrypt(plaintext.encode("utf-8"))
        return token.decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a stored token and return the plaintext."""
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; invalid ciphertext or rotated secret."
            ) from exc
        return plaintext.decode("utf-8")


__all__ = ["TokenCipherService"]
