"""Poster lookups against TMDB and OMDB."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from trakt_addon.utils.http import build_async_client, json_or_empty

logger = logging.getLogger(__name__)


class TMDBClient:
    """Search TMDB for a title and return its poster URL."""

    _BASE_URL = "https://api.themoviedb.org/3"
    _IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"

    def __init__(
        self,
        *,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._transport = transport

    async def find_poster(
        self, content: Mapping[str, Any], item_type: str
    ) -> Optional[str]:
        title = content.get("title")
        tmdb_id = (content.get("ids") or {}).get("tmdb")
        media = "movie" if item_type == "movie" else "tv"
        params: Dict[str, Any] = {"api_key": self._api_key}

        if tmdb_id:
            path = f"/{media}/{tmdb_id}"
        elif title:
            path = f"/search/{media}"
            params["query"] = title
            if content.get("year"):
                year_key = "year" if media == "movie" else "first_air_date_year"
                params[year_key] = content["year"]
        else:
            return None

        try:
            async with build_async_client(self._transport) as client:
                response = await client.get(f"{self._BASE_URL}{path}", params=params)
        except httpx.HTTPError as exc:
            logger.warning("TMDB lookup failed for %s: %s", title, exc)
            return None
        if not response.is_success:
            return None

        data = json_or_empty(response)
        if "results" in data:
            results = data.get("results") or []
            data = results[0] if results else {}
        poster_path = data.get("poster_path")
        if not poster_path:
            return None
        return f"{self._IMAGE_BASE_URL}{poster_path}"


class OMDBClient:
    """Look up posters on OMDB by IMDb id or title."""

    _BASE_URL = "https://www.omdbapi.com/"

    def __init__(
        self,
        *,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._transport = transport

    async def find_poster(self, content: Mapping[str, Any]) -> Optional[str]:
        imdb_id = (content.get("ids") or {}).get("imdb")
        params: Dict[str, Any] = {"apikey": self._api_key}
        if imdb_id:
            params["i"] = imdb_id
        elif content.get("title"):
            params["t"] = content["title"]
            if content.get("year"):
                params["y"] = content["year"]
        else:
            return None

        try:
            async with build_async_client(self._transport) as client:
                response = await client.get(self._BASE_URL, params=params)
        except httpx.HTTPError as exc:
            logger.warning("OMDB lookup failed for %s: %s", content.get("title"), exc)
            return None
        if not response.is_success:
            return None

        poster = json_or_empty(response).get("Poster")
        if poster and poster != "N/A":
            return poster
        return None


__all__ = ["OMDBClient", "TMDBClient"]
