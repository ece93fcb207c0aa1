"""
Logging utilities for the relay API and its background fetch loop.

Provides a consistent logging format and configuration.
"""

import logging
import sys

# httpx logs full request URLs at INFO; the station endpoint carries the
# client secret in its query string.
_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging"]
