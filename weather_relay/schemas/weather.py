"""Schemas describing the cached station reading."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class WeatherSnapshot(BaseModel):
    """One reading of the outdoor temperature and station pressure."""

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(..., description="Outdoor module temperature in °C.")
    pressure: float = Field(..., description="Base station pressure in mbar.")
    timestamp: int = Field(
        ..., description="Fetch time in milliseconds since the Unix epoch."
    )


__all__ = ["WeatherSnapshot"]
