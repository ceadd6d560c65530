"""
Background token refresher.

Trakt access tokens last 24 hours; without traffic nothing would call
``TokenManager.get_access_token`` and the token could lapse. The scheduler wakes
up periodically and refreshes once the token enters the refresh window.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from trakt_addon.services.token_manager import TokenManager

logger = logging.getLogger(__name__)

CHECK_INTERVAL_SECONDS = 30 * 60


class BackgroundRefreshScheduler:
    """Fire-and-forget periodic refresh check."""

    def __init__(
        self,
        token_manager: TokenManager,
        *,
        interval_seconds: float = CHECK_INTERVAL_SECONDS,
    ) -> None:
        self._tokens = token_manager
        self._interval = interval_seconds
        self._started = False
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def started(self) -> bool:
        return self._started

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Begin periodic checks. Later calls are no-ops."""
        if self._started:
            return
        self._started = True
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(
            "Background token refresh every %ss, refresh window %sh",
            int(self._interval),
            self._tokens.refresh_buffer_ms // 3_600_000,
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.check_once()

    async def check_once(self) -> bool:
        """Refresh when due. Returns whether a refresh was attempted."""
        try:
            record = self._tokens.load_tokens()
            if record is None or not record.access_token:
                return False
            if not self._tokens.needs_refresh(record) or self._tokens.refreshing:
                return False
            logger.info("Background token refresh triggered")
            await self._tokens.refresh_tokens()
            return True
        except Exception:  # pylint: disable=broad-except
            logger.exception("Background token refresh failed")
            return True


__all__ = ["BackgroundRefreshScheduler", "CHECK_INTERVAL_SECONDS"]
