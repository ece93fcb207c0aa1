"""Public schema exports."""

from .weather import WeatherSnapshot

__all__ = ["WeatherSnapshot"]
