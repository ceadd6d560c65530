"""Service layer exports."""

from .catalog import CatalogService
from .device_auth import (
    DeviceAuthorizationHandshake,
    DeviceAuthRegistry,
    HandshakeFailed,
    HandshakeState,
    HandshakeTimeout,
)
from .posters import PosterService
from .refresh_scheduler import BackgroundRefreshScheduler
from .token_manager import RefreshFailed, TokenManager, Unauthenticated

__all__ = [
    "BackgroundRefreshScheduler",
    "CatalogService",
    "DeviceAuthRegistry",
    "DeviceAuthorizationHandshake",
    "HandshakeFailed",
    "HandshakeState",
    "HandshakeTimeout",
    "PosterService",
    "RefreshFailed",
    "TokenManager",
    "Unauthenticated",
]
