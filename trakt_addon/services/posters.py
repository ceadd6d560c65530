"""
Poster resolution for catalog entries.

Trakt does not serve artwork, so posters come from TMDB, then OMDB, then a
placeholder. Results are cached on disk by the caller-provided ``PosterCache``.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from trakt_addon.clients import OMDBClient, PosterCache, TMDBClient

PLACEHOLDER_POSTER = "https://via.placeholder.com/300x450/333333/FFFFFF?text=No+Poster"


class PosterService:
    """Resolve a poster URL for a Trakt movie or show."""

    def __init__(
        self,
        cache: PosterCache,
        *,
        tmdb_client: Optional[TMDBClient] = None,
        omdb_client: Optional[OMDBClient] = None,
    ) -> None:
        self._cache = cache
        self._tmdb = tmdb_client
        self._omdb = omdb_client

    async def poster_for(self, content: Mapping[str, Any], item_type: str) -> str:
        key = PosterCache.cache_key(content, item_type)
        if key:
            cached = self._cache.get(key)
            if cached:
                return cached

        poster_url: Optional[str] = None
        if self._tmdb is not None:
            poster_url = await self._tmdb.find_poster(content, item_type)
        if not poster_url and self._omdb is not None:
            poster_url = await self._omdb.find_poster(content)
        if not poster_url:
            poster_url = PLACEHOLDER_POSTER

        if key:
            self._cache.set(key, poster_url)
        return poster_url

    def flush(self) -> None:
        self._cache.flush()


__all__ = ["PLACEHOLDER_POSTER", "PosterService"]
