"""Preflight check for an addon deployment.

Run before starting the server (or from cron/systemd) to catch the problems
that otherwise only show up as empty catalogs:

1. ``AppSettings`` must load from the environment and the optional ``.env``
   file, so a missing Trakt client id/secret or a bad tuning value is surfaced.
2. ``DATA_DIR`` must exist (or be creatable) and accept writes, since tokens
   and the list configuration are persisted there.
3. The stored token file, if any, must parse; its expiry is reported.
4. ``lists.json``, if present, must be a valid list configuration.

Example usages::

    python -m scripts.check_env --env-file /opt/trakt-addon/.env

    # Fail unless a usable Trakt token is already stored.
    python -m scripts.check_env --require-token
"""

from __future__ import annotations

import argparse
import json
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from trakt_addon.clients import CredentialStore, StoreCorrupt
from trakt_addon.core.config import AppSettings, _load_env_file
from trakt_addon.models.credentials import CredentialRecord, now_ms
from trakt_addon.schemas import ListConfig

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_STORAGE_ERROR = 3
EXIT_TOKEN_ERROR = 4
EXIT_RUNTIME_ERROR = 5


def _validate_settings(env_file: Optional[Path]) -> AppSettings:
    """Load settings, seeding the environment from ``env_file`` first."""
    _load_env_file(str(env_file) if env_file is not None else ".env")
    return AppSettings()  # type: ignore[call-arg]


def _report_settings(settings: AppSettings) -> None:
    storage = settings.storage
    print(f"Data directory: {storage.data_dir}")
    print(f"Tokens file:    {storage.token_path}")
    print(f"Lists file:     {storage.lists_path}")
    sources = []
    if settings.metadata.tmdb_api_key:
        sources.append("TMDB")
    if settings.metadata.omdb_api_key:
        sources.append("OMDB")
    print(f"Poster sources: {', '.join(sources) or 'placeholder only'}")


def _check_data_dir(data_dir: Path) -> bool:
    """Create ``data_dir`` if needed and prove a file can be written there."""
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=data_dir, prefix=".preflight-") as handle:
            handle.write(b"ok")
            handle.flush()
    except OSError as exc:
        print(f"Data directory {data_dir} is not writable: {exc}", file=sys.stderr)
        return False
    print("Data directory writable.")
    return True


def _check_lists(lists_path: Path) -> bool:
    if not lists_path.exists():
        print("No list configuration yet; an empty one is created on first use.")
        return True
    try:
        config = ListConfig.model_validate(json.loads(lists_path.read_text(encoding="utf-8")))
    except (OSError, ValueError, ValidationError) as exc:
        print(f"List configuration {lists_path} is unreadable: {exc}", file=sys.stderr)
        return False
    print(f"Configured lists: {len(config.lists)} (revision {config.revision})")
    return True


def _report_token(record: CredentialRecord, settings: AppSettings, now: int) -> None:
    expires_at = datetime.fromtimestamp((record.expires_at or 0) / 1000, tz=timezone.utc)
    remaining_ms = record.time_until_expiry(now)
    buffer_ms = settings.tokens.refresh_buffer_seconds * 1000
    print(f"Token expires:  {expires_at.isoformat()}")
    if record.is_expired(now):
        print("Token status:   expired")
    else:
        print(f"Token status:   valid for {remaining_ms // 3_600_000}h")
    print(f"Refresh token:  {'yes' if record.refresh_token else 'no'}")
    print(f"Needs refresh:  {'yes' if record.needs_refresh(now, buffer_ms) else 'no'}")


def _check_token(settings: AppSettings, *, require_token: bool) -> int:
    store = CredentialStore(settings.storage.token_path)
    try:
        record = store.read()
    except StoreCorrupt as exc:
        print(f"Token file is corrupt: {exc}", file=sys.stderr)
        return EXIT_TOKEN_ERROR

    if record is None or not record.is_authenticated:
        message = "No Trakt tokens stored; run trakt-addon-login to authorize."
        if require_token:
            print(message, file=sys.stderr)
            return EXIT_TOKEN_ERROR
        print(message)
        return EXIT_OK

    now = now_ms()
    _report_token(record, settings, now)
    if require_token and record.is_expired(now) and not record.refresh_token:
        print("Stored token has expired and cannot be refreshed.", file=sys.stderr)
        return EXIT_TOKEN_ERROR
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate settings, storage and stored Trakt tokens before serving."
    )
    parser.add_argument(
        "--env-file",
        default=None,
        type=Path,
        help="Path to an environment file (default: .env in the working directory, if any).",
    )
    parser.add_argument(
        "--require-token",
        action="store_true",
        help="Fail when no usable Trakt token is stored.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Optional[Path] = args.env_file

    if env_file is not None and not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _validate_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    _report_settings(settings)

    if not _check_data_dir(settings.storage.data_dir):
        return EXIT_STORAGE_ERROR
    if not _check_lists(settings.storage.lists_path):
        return EXIT_STORAGE_ERROR
    return _check_token(settings, require_token=args.require_token)


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
