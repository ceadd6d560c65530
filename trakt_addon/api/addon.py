"""
Stremio addon protocol routes: manifest and catalogs.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends

from trakt_addon.core.config import AppSettings
from trakt_addon.dependencies import get_app_settings, get_catalog_service, get_list_store
from trakt_addon.schemas import CatalogResponse, Manifest
from trakt_addon.services import CatalogService
from trakt_addon.services.manifest import build_manifest

router = APIRouter()


def parse_extra(extra: str | None) -> Dict[str, str]:
    """Decode Stremio's ``skip=100&genre=Drama`` path segment."""
    if not extra:
        return {}
    if extra.endswith(".json"):
        extra = extra[: -len(".json")]
    return dict(parse_qsl(extra, keep_blank_values=False))


@router.get("/manifest.json", response_model=Manifest, response_model_exclude_none=True)
async def get_manifest(
    list_store: Annotated[Any, Depends(get_list_store)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> Manifest:
    """Manifest built from the list configuration as it is on disk right now."""
    return build_manifest(list_store.load(), base_version=settings.addon_version)


@router.get("/catalog/{item_type}/{catalog_id}.json", response_model=CatalogResponse)
async def get_catalog(
    item_type: str,
    catalog_id: str,
    catalog: Annotated[CatalogService, Depends(get_catalog_service)],
) -> CatalogResponse:
    return await catalog.get_catalog(item_type=item_type, requested_id=catalog_id)


@router.get("/catalog/{item_type}/{catalog_id}/{extra}", response_model=CatalogResponse)
async def get_catalog_with_extra(
    item_type: str,
    catalog_id: str,
    extra: str,
    catalog: Annotated[CatalogService, Depends(get_catalog_service)],
) -> CatalogResponse:
    return await catalog.get_catalog(
        item_type=item_type, requested_id=catalog_id, extra=parse_extra(extra)
    )


__all__ = ["parse_extra", "router"]
