"""
Device-authorization handshake against Trakt.

A handshake obtains the first token pair: the addon requests a device code,
shows the user code and verification URL, then polls the token endpoint until
the user approves, declines, or the attempt budget runs out.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable, Dict, Optional

import httpx

from trakt_addon.clients.trakt_oauth import DeviceCode, TraktOAuthClient
from trakt_addon.models.credentials import CredentialRecord
from trakt_addon.services.token_manager import TokenManager

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 60
SLOW_DOWN_INCREMENT = 5


class HandshakeState(str, enum.Enum):
    REQUESTED = "requested"
    PENDING = "pending"
    AUTHORIZED = "authorized"
    FAILED = "failed"


class HandshakeFailed(Exception):
    """Raised when the user declined or the device code became unusable."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Device authorization failed: {reason}")
        self.reason = reason


class HandshakeTimeout(HandshakeFailed):
    """Raised when polling exhausted its attempt budget."""

    def __init__(self, attempts: int) -> None:
        super().__init__("timeout")
        self.attempts = attempts


class DeviceAuthorizationHandshake:
    """Drive one device-code flow from request to a persisted credential."""

    def __init__(
        self,
        oauth_client: TraktOAuthClient,
        token_manager: TokenManager,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._oauth = oauth_client
        self._tokens = token_manager
        self._max_attempts = max_attempts
        self._sleep = sleep
        self.state = HandshakeState.REQUESTED
        self.device: Optional[DeviceCode] = None
        self.interval = 5
        self.attempts = 0
        self.failure_reason: Optional[str] = None
        self.last_error: Optional[str] = None
        self.record: Optional[CredentialRecord] = None

    @classmethod
    def resume(
        cls,
        oauth_client: TraktOAuthClient,
        token_manager: TokenManager,
        device: DeviceCode,
        **kwargs,
    ) -> "DeviceAuthorizationHandshake":
        """Rebuild a pending handshake for a device code issued earlier."""
        handshake = cls(oauth_client, token_manager, **kwargs)
        handshake.device = device
        handshake.interval = max(1, device.interval)
        handshake.state = HandshakeState.PENDING
        return handshake

    @property
    def finished(self) -> bool:
        return self.state in (HandshakeState.AUTHORIZED, HandshakeState.FAILED)

    async def start(self) -> DeviceCode:
        """Request a device code and enter the pending state."""
        self.state = HandshakeState.REQUESTED
        device = await self._oauth.request_device_code()
        self.device = device
        self.interval = max(1, device.interval)
        self.attempts = 0
        self.state = HandshakeState.PENDING
        logger.info(
            "Device code issued; user must visit %s and enter %s",
            device.verification_url,
            device.user_code,
        )
        return device

    async def poll_once(self) -> HandshakeState:
        """Submit the device code once and apply the resulting transition."""
        if self.state is not HandshakeState.PENDING or self.device is None:
            return self.state

        if self.attempts >= self._max_attempts:
            self._fail("timeout")
            return self.state

        self.attempts += 1
        try:
            payload = await self._oauth.poll_device_token(self.device.device_code)
        except httpx.HTTPError as exc:
            # Counts against the attempt budget; the next poll may get through.
            self.last_error = "network_error"
            logger.warning("Device token poll %d failed: %s", self.attempts, exc)
            return self.state
        self.last_error = None

        if payload.get("access_token"):
            record = CredentialRecord.from_grant(payload, issued_at=self._tokens.now())
            self.record = self._tokens.save_tokens(record)
            self.state = HandshakeState.AUTHORIZED
            logger.info("Device authorization completed after %d polls", self.attempts)
            return self.state

        error = str(payload.get("error") or "authorization_pending")
        if error == "authorization_pending":
            logger.debug("Authorization pending (attempt %d)", self.attempts)
        elif error == "slow_down":
            self.interval += SLOW_DOWN_INCREMENT
            logger.debug("Trakt asked to slow down; polling every %ss", self.interval)
        else:
            self._fail(error)
        return self.state

    async def wait_for_authorization(self) -> CredentialRecord:
        """Poll until authorized; raise on decline, expiry, timeout or cancel."""
        if self.device is None:
            await self.start()

        while self.state is HandshakeState.PENDING:
            await self.poll_once()
            if self.state is HandshakeState.PENDING:
                if self.attempts >= self._max_attempts:
                    self._fail("timeout")
                    break
                await self._sleep(self.interval)

        if self.state is HandshakeState.AUTHORIZED and self.record is not None:
            return self.record
        if self.failure_reason == "timeout":
            raise HandshakeTimeout(self.attempts)
        raise HandshakeFailed(self.failure_reason or "unknown")

    def cancel(self) -> None:
        """Stop polling. Trakt needs no notification; the code simply lapses."""
        if not self.finished:
            self._fail("cancelled")

    def _fail(self, reason: str) -> None:
        self.state = HandshakeState.FAILED
        self.failure_reason = reason
        logger.warning("Device authorization failed: %s", reason)


class DeviceAuthRegistry:
    """Track handshakes started through the HTTP API, keyed by device code."""

    def __init__(
        self,
        oauth_client: TraktOAuthClient,
        token_manager: TokenManager,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._oauth = oauth_client
        self._tokens = token_manager
        self._max_attempts = max_attempts
        self._handshakes: Dict[str, DeviceAuthorizationHandshake] = {}

    def __len__(self) -> int:
        return len(self._handshakes)

    def get(self, device_code: str) -> Optional[DeviceAuthorizationHandshake]:
        return self._handshakes.get(device_code)

    async def begin(self) -> DeviceAuthorizationHandshake:
        handshake = DeviceAuthorizationHandshake(
            self._oauth, self._tokens, max_attempts=self._max_attempts
        )
        device = await handshake.start()
        self._drop_finished()
        self._handshakes[device.device_code] = handshake
        return handshake

    async def poll(self, device_code: str) -> DeviceAuthorizationHandshake:
        handshake = self._handshakes.get(device_code)
        if handshake is None:
            # Issued before a restart; poll it without local attempt history.
            handshake = DeviceAuthorizationHandshake.resume(
                self._oauth,
                self._tokens,
                DeviceCode(device_code=device_code, user_code="", verification_url=""),
                max_attempts=self._max_attempts,
            )
            self._handshakes[device_code] = handshake
        await handshake.poll_once()
        if handshake.state is HandshakeState.FAILED:
            self._handshakes.pop(device_code, None)
        return handshake

    def cancel(self, device_code: str) -> bool:
        handshake = self._handshakes.pop(device_code, None)
        if handshake is None:
            return False
        handshake.cancel()
        return True

    def _drop_finished(self) -> None:
        for code in [c for c, h in self._handshakes.items() if h.finished]:
            del self._handshakes[code]


__all__ = [
    "DeviceAuthRegistry",
    "DeviceAuthorizationHandshake",
    "HandshakeFailed",
    "HandshakeState",
    "HandshakeTimeout",
]
