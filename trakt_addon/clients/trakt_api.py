"""Read-only Trakt API client for user lists."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

import httpx

from trakt_addon.core.config import TraktSettings
from trakt_addon.utils.http import build_async_client, json_or_empty

_LIST_URL_PATTERN = re.compile(r"trakt\.tv/users/([^/]+)/lists/([^/?#]+)")


class InvalidListURL(ValueError):
    """Raised when a URL does not point at a Trakt user list."""


class TraktAPIError(Exception):
    """Raised when the Trakt API answers with a non-success status."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"Trakt API error: {status_code} {detail}")
        self.status_code = status_code
        self.detail = detail


def parse_list_url(url: str) -> Tuple[str, str]:
    """Return ``(username, list_slug)`` for a trakt.tv list URL."""
    match = _LIST_URL_PATTERN.search(url or "")
    if not match:
        raise InvalidListURL(f"Invalid Trakt list URL format: {url!r}")
    return match.group(1), match.group(2)


class TraktAPIClient:
    """Fetch list metadata and list items, optionally on behalf of the user."""

    def __init__(
        self,
        trakt_settings: TraktSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._trakt = trakt_settings
        self._transport = transport

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "trakt-api-version": self._trakt.api_version,
            "trakt-api-key": self._trakt.client_id,
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _get(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        access_token: Optional[str] = None,
    ) -> httpx.Response:
        async with build_async_client(self._transport) as client:
            response = await client.get(
                f"{self._trakt.base_url}{path}",
                params=params,
                headers=self._headers(access_token),
            )
        if not response.is_success:
            body = json_or_empty(response)
            raise TraktAPIError(
                response.status_code,
                str(body.get("error") or response.reason_phrase),
            )
        return response

    async def get_list(self, username: str, list_slug: str) -> Dict[str, Any]:
        response = await self._get(f"/users/{username}/lists/{list_slug}")
        return json_or_empty(response)

    async def get_list_item_count(self, username: str, list_slug: str) -> Optional[int]:
        """Read the total from the pagination header of a one-item page."""
        response = await self._get(
            f"/users/{username}/lists/{list_slug}/items", params={"limit": 1}
        )
        raw = response.headers.get("x-pagination-item-count")
        try:
            return int(raw) if raw is not None else None
        except ValueError:
            return None

    async def get_list_items(
        self,
        username: str,
        list_slug: str,
        *,
        access_token: str,
        page: int = 1,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Return movie and show entries of a list with extended metadata."""
        response = await self._get(
            f"/users/{username}/lists/{list_slug}/items/movie,show",
            params={"extended": "full", "limit": limit, "page": page},
            access_token=access_token,
        )
        items = response.json()
        return items if isinstance(items, list) else []

    async def get_profile(self, access_token: str) -> Dict[str, Any]:
        response = await self._get("/users/me", access_token=access_token)
        return json_or_empty(response)


__all__ = [
    "InvalidListURL",
    "TraktAPIClient",
    "TraktAPIError",
    "parse_list_url",
]
