"""
Domain models for Netatmo OAuth token persistence.
"""

from pydantic import BaseModel, ConfigDict, Field


class TokenPair(BaseModel):
    """An access token and the single-use refresh token issued alongside it."""

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., min_length=1)
    refresh_token: str = Field(..., min_length=1)

    def __repr__(self) -> str:  # keep bearer strings out of logs and tracebacks
        return "TokenPair(access_token='***', refresh_token='***')"

    __str__ = __repr__


__all__ = ["TokenPair"]
