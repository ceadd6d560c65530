"""
Business logic for serving Trakt lists as Stremio catalogs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from trakt_addon.clients import (
    InvalidListURL,
    ListConfigStore,
    TraktAPIClient,
    TraktAPIError,
    parse_list_url,
)
from trakt_addon.schemas import CatalogResponse, ListEntry, MetaPreview
from trakt_addon.services.manifest import catalog_id
from trakt_addon.services.posters import PosterService
from trakt_addon.services.token_manager import RefreshFailed, TokenManager, Unauthenticated

logger = logging.getLogger(__name__)

_SORTABLE_FIELDS = {"title": "name", "year": "year", "imdbRating": "imdbRating", "rating": "imdbRating"}


def item_type_of(item: Mapping[str, Any]) -> str:
    return "movie" if item.get("movie") else "series"


def build_meta(content: Mapping[str, Any], item_type: str, poster: Optional[str]) -> MetaPreview:
    ids = content.get("ids") or {}
    title = content.get("title") or "Unknown"
    year = content.get("year")
    return MetaPreview(
        id=ids.get("imdb") or f"trakt:{ids.get('trakt')}",
        type=item_type,
        name=title,
        poster=poster,
        year=str(year) if year is not None else None,
        imdbRating=content.get("rating"),
        description=content.get("overview")
        or content.get("tagline")
        or f"{title} from your Trakt list",
        genres=content.get("genres") or [],
        runtime=content.get("runtime"),
        country=content.get("country"),
        language=content.get("language"),
    )


def sort_metas(metas: List[MetaPreview], sort_by: Optional[str], sort_order: str) -> List[MetaPreview]:
    """Sort by a meta attribute; ``rank`` keeps Trakt's list order."""
    attribute = _SORTABLE_FIELDS.get(sort_by or "rank")
    if attribute is None:
        return metas

    def key(meta: MetaPreview):
        value = getattr(meta, attribute)
        return value.lower() if isinstance(value, str) else value

    present = [m for m in metas if getattr(m, attribute) is not None]
    missing = [m for m in metas if getattr(m, attribute) is None]
    present.sort(key=key, reverse=sort_order == "desc")
    return present + missing


class CatalogService:
    """Resolve a catalog request into Stremio metas."""

    PAGE_SIZE = 100
    POSTER_BATCH_SIZE = 5
    BATCH_PAUSE_SECONDS = 0.1

    def __init__(
        self,
        *,
        list_store: ListConfigStore,
        trakt_client: TraktAPIClient,
        token_manager: TokenManager,
        poster_service: PosterService,
    ) -> None:
        self._lists = list_store
        self._trakt = trakt_client
        self._tokens = token_manager
        self._posters = poster_service

    def find_list(self, requested_id: str) -> Optional[ListEntry]:
        for entry in self._lists.load().lists:
            if entry.enabled and catalog_id(entry) == requested_id:
                return entry
        return None

    async def get_catalog(
        self,
        *,
        item_type: str,
        requested_id: str,
        extra: Optional[Mapping[str, str]] = None,
    ) -> CatalogResponse:
        """Return metas for one page of a list. Never raises."""
        extra = extra or {}
        try:
            entry = self.find_list(requested_id)
            if entry is None:
                logger.info("No list configured for catalog id %s", requested_id)
                return CatalogResponse()

            skip = max(0, int(extra.get("skip") or 0))
            page = skip // self.PAGE_SIZE + 1
            items = await self._fetch_items(entry.url, page=page, limit=self.PAGE_SIZE)
            items = [item for item in items if item_type_of(item) == item_type]
            metas = await self._build_metas(items)

            genre = (extra.get("genre") or "").strip().lower()
            if genre:
                metas = [m for m in metas if genre in (g.lower() for g in m.genres)]
            metas = sort_metas(metas, entry.sort_by, entry.sort_order)
            logger.info(
                "Catalog %s page %d: %d %s items", requested_id, page, len(metas), item_type
            )
            return CatalogResponse(metas=metas)
        except (Unauthenticated, RefreshFailed) as exc:
            logger.error("Catalog %s unavailable, Trakt auth: %s", requested_id, exc)
        except (InvalidListURL, TraktAPIError, ValueError) as exc:
            logger.error("Catalog %s failed: %s", requested_id, exc)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Catalog handler error for %s", requested_id)
        return CatalogResponse()

    async def preview(
        self,
        *,
        list_url: str,
        limit: int = 8,
        item_type: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: str = "asc",
    ) -> List[MetaPreview]:
        """Compact preview for the configuration UI. Auth errors propagate."""
        items = await self._fetch_items(list_url, page=1, limit=limit)
        if item_type:
            items = [item for item in items if item_type_of(item) == item_type]
        metas = await self._build_metas(items)
        return sort_metas(metas, sort_by, sort_order)[:limit]

    async def _fetch_items(self, list_url: str, *, page: int, limit: int) -> List[Dict[str, Any]]:
        username, list_slug = parse_list_url(list_url)
        access_token = await self._tokens.get_access_token()
        return await self._trakt.get_list_items(
            username, list_slug, access_token=access_token, page=page, limit=limit
        )

    async def _build_metas(self, items: List[Dict[str, Any]]) -> List[MetaPreview]:
        metas: List[MetaPreview] = []
        for start in range(0, len(items), self.POSTER_BATCH_SIZE):
            batch = items[start : start + self.POSTER_BATCH_SIZE]
            metas.extend(await asyncio.gather(*(self._to_meta(item) for item in batch)))
            if start + self.POSTER_BATCH_SIZE < len(items):
                await asyncio.sleep(self.BATCH_PAUSE_SECONDS)
        self._posters.flush()
        return metas

    async def _to_meta(self, item: Mapping[str, Any]) -> MetaPreview:
        item_type = item_type_of(item)
        content = item.get("movie") or item.get("show") or {}
        poster = await self._posters.poster_for(content, item_type)
        return build_meta(content, item_type, poster)


__all__ = ["CatalogService", "build_meta", "item_type_of", "sort_metas"]
