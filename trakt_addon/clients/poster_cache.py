"""Disk-backed cache of resolved poster URLs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from trakt_addon.models.credentials import now_ms

logger = logging.getLogger(__name__)


class PosterCache:
    """Map ``<id>-<type>`` keys to poster URLs with a time-to-live."""

    def __init__(
        self,
        cache_path: str | Path,
        *,
        ttl_seconds: int = 7 * 24 * 60 * 60,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._path = Path(cache_path)
        self._ttl_ms = ttl_seconds * 1000
        self._clock = clock
        self._dirty = False
        self._entries: Dict[str, Dict[str, Any]] = self._load()

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def cache_key(content: Mapping[str, Any], item_type: str) -> Optional[str]:
        ids = content.get("ids") or {}
        identifier = ids.get("imdb") or ids.get("trakt") or ids.get("tmdb")
        if not identifier:
            return None
        return f"{identifier}-{item_type}"

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if not entry or self._expired(entry, self._clock()):
            return None
        return entry.get("url")

    def set(self, key: str, url: str) -> None:
        self._entries[key] = {"url": url, "timestamp": self._clock()}
        self._dirty = True

    def flush(self) -> None:
        """Write pending entries, dropping expired ones; failures only cost a re-lookup later."""
        self.prune()
        if not self._dirty:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._entries, indent=2), encoding="utf-8")
            self._dirty = False
        except OSError as exc:
            logger.warning("Poster cache save failed: %s", exc)

    def prune(self) -> int:
        """Evict expired entries and return how many were removed."""
        now = self._clock()
        stale = [key for key, entry in self._entries.items() if self._expired(entry, now)]
        for key in stale:
            del self._entries[key]
        if stale:
            self._dirty = True
            logger.debug("Evicted %d expired posters", len(stale))
        return len(stale)

    def _expired(self, entry: Mapping[str, Any], now: int) -> bool:
        return now - int(entry.get("timestamp", 0)) >= self._ttl_ms

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Poster cache load failed: %s", exc)
            return {}
        if not isinstance(data, dict):
            return {}
        entries = {
            k: v
            for k, v in data.items()
            if isinstance(v, dict) and "url" in v and isinstance(v.get("timestamp", 0), int)
        }
        logger.info("Loaded %d cached posters", len(entries))
        return entries


__all__ = ["PosterCache"]
