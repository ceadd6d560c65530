"""
Trakt token lifecycle management.

The manager is the only component that mutates the stored credential after the
initial device authorization. It decides when the access token is stale,
collapses concurrent refresh attempts into one upstream exchange and degrades
to the previous token while that token is still technically valid.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

import httpx

from trakt_addon.clients.credential_store import CredentialStore, StoreCorrupt
from trakt_addon.clients.trakt_oauth import OAuthRequestError, TraktOAuthClient
from trakt_addon.core.logging import mask_token
from trakt_addon.models.credentials import CredentialRecord, now_ms
from trakt_addon.utils.http import UpstreamTimeout, call_with_timeout

logger = logging.getLogger(__name__)

REFRESH_BUFFER = timedelta(hours=2)


class Unauthenticated(Exception):
    """Raised when no usable access token is stored."""


class RefreshFailed(Exception):
    """Raised when the refresh exchange did not yield a new token."""

    def __init__(self, reason: str, *, status_code: int | None = None) -> None:
        detail = f"Token refresh failed: {reason}"
        if status_code is not None:
            detail = f"Token refresh failed: {status_code} - {reason}"
        super().__init__(detail)
        self.reason = reason
        self.status_code = status_code

    @property
    def requires_reauth(self) -> bool:
        """The refresh grant itself is dead; only a new handshake helps."""
        return "invalid_grant" in self.reason or self.reason == "no_refresh_token"


class TokenManager:
    """Own the refresh state machine around the credential store."""

    def __init__(
        self,
        store: CredentialStore,
        oauth_client: TraktOAuthClient,
        *,
        refresh_buffer: timedelta = REFRESH_BUFFER,
        refresh_timeout: float = 30.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._buffer_ms = int(refresh_buffer.total_seconds() * 1000)
        self._refresh_timeout = refresh_timeout
        self._clock = clock
        self._pending: Optional[asyncio.Task[CredentialRecord]] = None

    @property
    def refreshing(self) -> bool:
        return self._pending is not None

    @property
    def refresh_buffer_ms(self) -> int:
        return self._buffer_ms

    def now(self) -> int:
        return self._clock()

    def load_tokens(self) -> Optional[CredentialRecord]:
        return self._store.load()

    def save_tokens(self, record: CredentialRecord) -> CredentialRecord:
        return self._store.save(record)

    def clear_tokens(self):
        return self._store.clear()

    def needs_refresh(self, record: CredentialRecord) -> bool:
        return record.is_authenticated and record.needs_refresh(
            self._clock(), self._buffer_ms
        )

    async def get_access_token(self) -> str:
        """Return a bearer token, refreshing it first when it is about to lapse."""
        record = self._store.load()
        if record is None or not record.access_token:
            raise Unauthenticated("No Trakt tokens available; authorize the addon first.")

        now = self._clock()
        expires_at = record.expires_at or 0
        if not record.needs_refresh(now, self._buffer_ms):
            return record.access_token

        logger.info(
            "Access token expires in %d minutes; refreshing",
            max(0, (expires_at - now) // 60000),
        )
        try:
            refreshed = await self.refresh_tokens()
        except RefreshFailed as exc:
            if expires_at > self._clock():
                logger.warning(
                    "Refresh failed (%s); continuing with current token until it expires",
                    exc.reason,
                )
                return record.access_token
            raise
        return refreshed.access_token  # type: ignore[return-value]

    async def refresh_tokens(self) -> CredentialRecord:
        """Run one refresh exchange, sharing it with any concurrent callers."""
        task = self._pending
        if task is None:
            task = asyncio.ensure_future(self._refresh_once())
            self._pending = task
            # Covers a task cancelled before its body ever ran.
            task.add_done_callback(self._refresh_settled)
        else:
            logger.debug("Joining in-flight token refresh")
        return await asyncio.shield(task)

    def _refresh_settled(self, task: "asyncio.Task[CredentialRecord]") -> None:
        if self._pending is task:
            self._pending = None

    async def _refresh_once(self) -> CredentialRecord:
        try:
            return await self._perform_refresh()
        finally:
            # Release the slot before waiters resume so a retry starts fresh.
            if self._pending is asyncio.current_task():
                self._pending = None

    async def _perform_refresh(self) -> CredentialRecord:
        current = self._store.load()
        if current is None or not current.refresh_token:
            raise RefreshFailed("no_refresh_token")

        logger.info("Refreshing Trakt access token")
        try:
            payload = await call_with_timeout(
                self._oauth.refresh_token(current.refresh_token),
                seconds=self._refresh_timeout,
                operation="Trakt token refresh",
            )
        except OAuthRequestError as exc:
            logger.error("Trakt rejected token refresh: %s", exc)
            raise RefreshFailed(exc.error, status_code=exc.status_code) from exc
        except UpstreamTimeout as exc:
            logger.error("%s", exc)
            raise RefreshFailed("timeout") from exc
        except httpx.HTTPError as exc:
            logger.error("Trakt token refresh transport error: %s", exc)
            raise RefreshFailed("network_error") from exc

        try:
            record = CredentialRecord.from_grant(
                payload,
                issued_at=self._clock(),
                previous_refresh_token=current.refresh_token,
            )
        except (TypeError, ValueError) as exc:
            logger.error("Trakt returned an unusable token payload: %s", exc)
            raise RefreshFailed("invalid_token_payload") from exc

        try:
            stored = self._store.save(record)
        except OSError as exc:
            # The exchange succeeded, so Trakt may already have rotated the
            # refresh token; the stored one can stop working.
            logger.error(
                "Refreshed token (%s) could not be persisted: %s",
                mask_token(record.access_token),
                exc,
            )
            raise RefreshFailed("persist_failed") from exc

        logger.info(
            "Token refreshed (%s), expires in %s seconds",
            mask_token(stored.access_token),
            stored.expires_in,
        )
        return stored

    def token_status(self) -> Dict[str, Any]:
        """Summarize the stored credential for the configuration UI."""
        try:
            record = self._store.read()
        except StoreCorrupt:
            return {
                "has_token": False,
                "error": "Failed to load token file",
                "message": "Token file may be corrupted or missing",
            }
        if record is None or not record.access_token:
            return {"has_token": False, "message": "No authentication tokens found"}

        now = self._clock()
        remaining = record.time_until_expiry(now)
        return {
            "has_token": True,
            "has_refresh_token": bool(record.refresh_token),
            "is_expired": record.is_expired(now),
            "expires_at": record.expires_at,
            "hours_until_expiry": max(0, remaining // 3_600_000),
            "minutes_until_expiry": max(0, remaining // 60_000),
            "needs_refresh": record.needs_refresh(now, self._buffer_ms),
            "can_refresh": bool(record.refresh_token),
            "refreshing": self.refreshing,
            "token_preview": mask_token(record.access_token, visible=20),
        }


__all__ = ["REFRESH_BUFFER", "RefreshFailed", "TokenManager", "Unauthenticated"]
