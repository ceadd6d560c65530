"""Authorize the addon against Trakt from a terminal.

Runs the device-code flow end to end: prints the verification URL and user
code, polls until the code is approved, and writes the resulting credential
to the configured tokens file. Useful on headless hosts where the web UI is
not reachable.

Example::

    python -m scripts.device_login
    python -m scripts.device_login --status
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import timedelta

import httpx

from trakt_addon.clients import CredentialStore, OAuthRequestError, TraktOAuthClient
from trakt_addon.core.config import AppSettings, get_settings
from trakt_addon.core.logging import configure_logging
from trakt_addon.services import (
    DeviceAuthorizationHandshake,
    HandshakeFailed,
    HandshakeTimeout,
    TokenManager,
)

EXIT_OK = 0
EXIT_AUTH_FAILED = 2
EXIT_TIMEOUT = 3
EXIT_RUNTIME_ERROR = 5


def _build_token_manager(settings: AppSettings) -> tuple[TraktOAuthClient, TokenManager]:
    oauth_client = TraktOAuthClient(settings.trakt)
    token_manager = TokenManager(
        CredentialStore(settings.storage.token_path),
        oauth_client,
        refresh_buffer=timedelta(seconds=settings.tokens.refresh_buffer_seconds),
        refresh_timeout=settings.tokens.refresh_timeout_seconds,
    )
    return oauth_client, token_manager


def _print_status(token_manager: TokenManager) -> int:
    status = token_manager.token_status()
    if not status.get("has_token"):
        print(status.get("message", "No authentication tokens found"))
        return EXIT_AUTH_FAILED
    print(
        f"Token present, expires in {status['hours_until_expiry']}h "
        f"(refresh token: {'yes' if status['has_refresh_token'] else 'no'})"
    )
    return EXIT_OK


async def _login(settings: AppSettings) -> int:
    oauth_client, token_manager = _build_token_manager(settings)
    handshake = DeviceAuthorizationHandshake(
        oauth_client,
        token_manager,
        max_attempts=settings.tokens.device_poll_max_attempts,
    )
    device = await handshake.start()
    print(f"Visit {device.verification_url} and enter code: {device.user_code}")

    try:
        record = await handshake.wait_for_authorization()
    except HandshakeTimeout:
        print("Timed out waiting for authorization; run the command again.", file=sys.stderr)
        return EXIT_TIMEOUT
    except HandshakeFailed as exc:
        print(f"Authorization failed: {exc.reason}", file=sys.stderr)
        return EXIT_AUTH_FAILED

    print(f"Authorized. Tokens saved to {settings.storage.token_path}")
    print(f"Access token expires at {record.expires_at} (epoch ms)")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Authorize the addon with Trakt.")
    parser.add_argument(
        "--status",
        action="store_true",
        help="Only report the stored token status.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    if args.status:
        _, token_manager = _build_token_manager(settings)
        return _print_status(token_manager)

    try:
        return asyncio.run(_login(settings))
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return EXIT_AUTH_FAILED
    except OAuthRequestError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except httpx.HTTPError as exc:
        print(f"Could not reach Trakt: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
