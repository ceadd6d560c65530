"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    AddonServices,
    build_services,
    get_catalog_service,
    get_device_auth_registry,
    get_list_store,
    get_services,
    get_token_manager,
    get_trakt_client,
)
from .config import get_app_settings

__all__ = [
    "AddonServices",
    "build_services",
    "get_app_settings",
    "get_catalog_service",
    "get_device_auth_registry",
    "get_list_store",
    "get_services",
    "get_token_manager",
    "get_trakt_client",
]
