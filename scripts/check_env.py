"""Pre-start check for the relay's configuration and stored credentials.

The relay refuses to start when its settings are incomplete or when it has no
usable refresh token to bootstrap from. This tool reports both conditions
without contacting Netatmo, so it can run before every deploy or restart:

1. It instantiates ``AppSettings`` from the provided ``.env`` file, surfacing
   missing or malformed Netatmo settings.
2. It confirms a refresh token is available, either in the configuration or
   already rotated into the store and decryptable with the configured secret.

Example usage::

    python -m scripts.check_env --env-file /opt/weather-relay/.env
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pydantic import ValidationError

from weather_relay.clients.kv_store import SQLiteKeyValueStore
from weather_relay.core.config import AppSettings, _load_env_file
from weather_relay.services.credentials import REFRESH_TOKEN_KEY
from weather_relay.services.token_cipher import TokenCipherService

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_NO_CREDENTIALS = 3
EXIT_RUNTIME_ERROR = 4


def _validate_settings(env_file: Path) -> AppSettings:
    """Ensure required settings can be loaded from the supplied env file."""
    _load_env_file(str(env_file))
    return AppSettings()  # type: ignore[call-arg]


def _stored_refresh_token_state(settings: AppSettings) -> str:
    """Describe the store's refresh token: ``missing``, ``unreadable`` or ``ok``."""
    # Do not create an empty database just to look inside it.
    if not Path(settings.store_db_path).exists():
        return "missing"
    stored = SQLiteKeyValueStore(settings.store_db_path).get(REFRESH_TOKEN_KEY)
    if not stored:
        return "missing"
    try:
        TokenCipherService.from_settings(settings).decrypt(stored)
    except ValueError:
        return "unreadable"
    return "ok"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate relay settings and confirm a refresh token is available."
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the repo root).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    try:
        settings = _validate_settings(env_file)
        stored_state = _stored_refresh_token_state(settings)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Unexpected error during validation: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if stored_state == "unreadable":
        print(
            "Stored refresh token cannot be decrypted with the configured "
            "secret; the relay will ignore it.",
            file=sys.stderr,
        )

    if stored_state != "ok" and not settings.netatmo.refresh_token:
        print(
            "No Netatmo refresh token available: set NETATMO_REFRESH_TOKEN "
            "or restore the relay's store before starting it.",
            file=sys.stderr,
        )
        return EXIT_NO_CREDENTIALS

    print("Relay configuration OK.")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
