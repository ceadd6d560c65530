"""
Trakt OAuth utilities.

These helpers speak the device-code flow and the refresh-token exchange against
the Trakt authorization server. They only move bytes; token lifecycle decisions
live in ``trakt_addon.services.token_manager``.
"""

from __future__ import annotations

from typing import Any, Dict

import httpx
from pydantic import BaseModel, Field

from trakt_addon.core.config import TraktSettings
from trakt_addon.utils.http import build_async_client, json_or_empty

DEVICE_CODE_GRANT = "urn:ietf:params:oauth:grant-type:device_code"

# Trakt answers device-token polls with bare status codes and an empty body.
_DEVICE_POLL_STATUS_ERRORS = {
    400: "authorization_pending",
    404: "invalid_code",
    409: "already_used",
    410: "expired_token",
    418: "access_denied",
    429: "slow_down",
}


class DeviceCode(BaseModel):
    """Response of the device-code request."""

    device_code: str = Field(..., description="Opaque code used for polling.")
    user_code: str = Field(..., description="Short code the user types in.")
    verification_url: str = Field(..., description="Where the user authorizes.")
    expires_in: int = Field(600, description="Seconds until the device code lapses.")
    interval: int = Field(5, description="Recommended poll interval in seconds.")


class OAuthRequestError(Exception):
    """Raised when the authorization server rejects a request."""

    def __init__(self, status_code: int, error: str) -> None:
        super().__init__(f"Trakt OAuth request failed: {status_code} - {error}")
        self.status_code = status_code
        self.error = error


class TraktOAuthClient:
    """Issue device codes, poll for device tokens and refresh access tokens."""

    DEVICE_CODE_PATH = "/oauth/device/code"
    DEVICE_TOKEN_PATH = "/oauth/device/token"
    TOKEN_PATH = "/oauth/token"

    def __init__(
        self,
        trakt_settings: TraktSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._trakt = trakt_settings
        self._transport = transport

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "trakt-api-version": self._trakt.api_version,
            "trakt-api-key": self._trakt.client_id,
        }

    def _url(self, path: str) -> str:
        return f"{self._trakt.base_url}{path}"

    async def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        async with build_async_client(self._transport) as client:
            return await client.post(self._url(path), json=payload, headers=self.headers)

    async def request_device_code(self) -> DeviceCode:
        """Ask Trakt for a device code and the user-facing verification details."""
        response = await self._post(
            self.DEVICE_CODE_PATH, {"client_id": self._trakt.client_id}
        )
        if not response.is_success:
            body = json_or_empty(response)
            raise OAuthRequestError(
                response.status_code, str(body.get("error") or "device_code_failed")
            )
        return DeviceCode.model_validate(response.json())

    async def poll_device_token(self, device_code: str) -> Dict[str, Any]:
        """
        Submit ``device_code`` once.

        Returns the token payload on success, otherwise a mapping with an
        ``error`` key (``authorization_pending`` while the user has not acted).
        """
        payload = {
            "code": device_code,
            "client_id": self._trakt.client_id,
            "client_secret": self._trakt.client_secret,
            "grant_type": DEVICE_CODE_GRANT,
        }
        response = await self._post(self.DEVICE_TOKEN_PATH, payload)
        body = json_or_empty(response)
        if response.is_success:
            if body.get("access_token"):
                return body
            return {"error": body.get("error") or "authorization_pending", **body}

        error = body.get("error") or _DEVICE_POLL_STATUS_ERRORS.get(
            response.status_code, f"http_{response.status_code}"
        )
        return {**body, "error": error}

    async def refresh_token(self, refresh_token: str) -> Dict[str, Any]:
        """Exchange a refresh token for a fresh token payload."""
        payload = {
            "refresh_token": refresh_token,
            "client_id": self._trakt.client_id,
            "client_secret": self._trakt.client_secret,
            "grant_type": "refresh_token",
        }
        response = await self._post(self.TOKEN_PATH, payload)

        if not response.is_success:
            body = json_or_empty(response)
            raise OAuthRequestError(
                response.status_code, str(body.get("error") or "unknown_error")
            )

        token_payload = json_or_empty(response)
        if not token_payload.get("access_token") or not token_payload.get("expires_in"):
            raise OAuthRequestError(
                response.status_code, "incomplete_token_payload"
            )
        return token_payload


__all__ = [
    "DEVICE_CODE_GRANT",
    "DeviceCode",
    "OAuthRequestError",
    "TraktOAuthClient",
]
