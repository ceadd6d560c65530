"""
Construction of the addon's shared clients and services, and the FastAPI
dependency functions that hand them to routes.

Everything is built once per application by ``build_services`` and kept on
``app.state.services``; nothing lives in module globals, so tests can build
an application around temporary directories and fake transports.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import httpx
from fastapi import Request

from trakt_addon.clients import (
    CredentialStore,
    ListConfigStore,
    OMDBClient,
    PosterCache,
    TMDBClient,
    TraktAPIClient,
    TraktOAuthClient,
)
from trakt_addon.core.config import AppSettings
from trakt_addon.services import (
    BackgroundRefreshScheduler,
    CatalogService,
    DeviceAuthRegistry,
    PosterService,
    TokenManager,
)


@dataclass
class AddonServices:
    """Owned collaborators of one running addon."""

    settings: AppSettings
    credential_store: CredentialStore
    oauth_client: TraktOAuthClient
    token_manager: TokenManager
    refresh_scheduler: BackgroundRefreshScheduler
    device_auth: DeviceAuthRegistry
    list_store: ListConfigStore
    trakt_client: TraktAPIClient
    poster_service: PosterService
    catalog_service: CatalogService


def build_services(
    settings: AppSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AddonServices:
    """Wire every collaborator from settings; ``transport`` is for tests."""
    storage = settings.storage
    credential_store = CredentialStore(storage.token_path)
    oauth_client = TraktOAuthClient(settings.trakt, transport=transport)
    token_manager = TokenManager(
        credential_store,
        oauth_client,
        refresh_buffer=timedelta(seconds=settings.tokens.refresh_buffer_seconds),
        refresh_timeout=settings.tokens.refresh_timeout_seconds,
    )
    refresh_scheduler = BackgroundRefreshScheduler(
        token_manager, interval_seconds=settings.tokens.refresh_interval_seconds
    )
    device_auth = DeviceAuthRegistry(
        oauth_client,
        token_manager,
        max_attempts=settings.tokens.device_poll_max_attempts,
    )

    metadata = settings.metadata
    poster_service = PosterService(
        PosterCache(storage.poster_cache_path, ttl_seconds=metadata.poster_cache_ttl_seconds),
        tmdb_client=TMDBClient(api_key=metadata.tmdb_api_key, transport=transport)
        if metadata.tmdb_api_key
        else None,
        omdb_client=OMDBClient(api_key=metadata.omdb_api_key, transport=transport)
        if metadata.omdb_api_key
        else None,
    )
    list_store = ListConfigStore(storage.lists_path)
    trakt_client = TraktAPIClient(settings.trakt, transport=transport)
    catalog_service = CatalogService(
        list_store=list_store,
        trakt_client=trakt_client,
        token_manager=token_manager,
        poster_service=poster_service,
    )

    return AddonServices(
        settings=settings,
        credential_store=credential_store,
        oauth_client=oauth_client,
        token_manager=token_manager,
        refresh_scheduler=refresh_scheduler,
        device_auth=device_auth,
        list_store=list_store,
        trakt_client=trakt_client,
        poster_service=poster_service,
        catalog_service=catalog_service,
    )


def get_services(request: Request) -> AddonServices:
    return request.app.state.services


def get_token_manager(request: Request) -> TokenManager:
    """Provide the application's token manager."""
    return get_services(request).token_manager


def get_device_auth_registry(request: Request) -> DeviceAuthRegistry:
    """Provide the registry of in-progress device authorizations."""
    return get_services(request).device_auth


def get_list_store(request: Request) -> ListConfigStore:
    """Provide the list configuration store."""
    return get_services(request).list_store


def get_trakt_client(request: Request) -> TraktAPIClient:
    """Provide the Trakt API client."""
    return get_services(request).trakt_client


def get_catalog_service(request: Request) -> CatalogService:
    """Provide the catalog service."""
    return get_services(request).catalog_service


__all__ = [
    "AddonServices",
    "build_services",
    "get_catalog_service",
    "get_device_auth_registry",
    "get_list_store",
    "get_services",
    "get_token_manager",
    "get_trakt_client",
]
