"""Build the Stremio manifest from the list configuration."""

from __future__ import annotations

import logging
import math
import re
from typing import List

from trakt_addon.schemas import (
    CatalogDescriptor,
    CatalogExtra,
    ListConfig,
    ListEntry,
    Manifest,
)

logger = logging.getLogger(__name__)

ADDON_ID = "org.stremio.trakt.addon"
ADDON_NAME = "Stremio Trakt Lists"
ADDON_LOGO = (
    "https://walter.trakt.tv/hotlink-ok/public/logos/trakt-icon-red-white_200x200.png"
)
CATALOG_PREFIX = "trakt-list-"


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", (name or "").lower()).strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def catalog_id(entry: ListEntry) -> str:
    return f"{CATALOG_PREFIX}{slugify(entry.name)}"


def enabled_lists(config: ListConfig) -> List[ListEntry]:
    """Enabled lists ordered by explicit ``order`` first, then by name."""
    entries = [entry for entry in config.lists if entry.enabled]
    entries.sort(
        key=lambda e: (
            e.order if isinstance(e.order, int) else math.inf,
            (e.name or "").lower(),
        )
    )
    return entries


def manifest_version(base_version: str, revision: int) -> str:
    """Bump the patch component so Stremio notices catalog changes."""
    parts = (base_version or "1.0.0").split(".")
    while len(parts) < 3:
        parts.append("0")
    try:
        patch = int(parts[2])
    except ValueError:
        patch = 0
    parts[2] = str(patch + revision)
    return ".".join(parts[:3])


def build_manifest(config: ListConfig, *, base_version: str = "1.0.0") -> Manifest:
    catalogs = [
        CatalogDescriptor(
            type=entry.type,
            id=catalog_id(entry),
            name=entry.name,
            extra=[CatalogExtra(name="skip"), CatalogExtra(name="genre")],
        )
        for entry in enabled_lists(config)
    ]
    logger.debug("Generated catalogs: %s", [c.id for c in catalogs])

    return Manifest(
        id=ADDON_ID,
        version=manifest_version(base_version, config.revision),
        name=ADDON_NAME,
        description="Access your Trakt.tv lists in Stremio",
        logo=ADDON_LOGO,
        resources=["catalog"],
        types=["movie", "series"],
        catalogs=catalogs,
        idPrefixes=["tt", "trakt:"],
        behaviorHints={"configurable": True, "configurationRequired": False},
    )


__all__ = [
    "ADDON_ID",
    "CATALOG_PREFIX",
    "build_manifest",
    "catalog_id",
    "enabled_lists",
    "manifest_version",
    "slugify",
]
