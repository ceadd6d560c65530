"""Public schema exports."""

from .auth import DevicePollPayload, DevicePollResult, SaveTokenPayload
from .catalog import (
    CatalogDescriptor,
    CatalogExtra,
    CatalogResponse,
    ListConfig,
    ListEntry,
    Manifest,
    MetaPreview,
    PreviewListRequest,
    ValidateListRequest,
    ValidateListResponse,
)

__all__ = [
    "CatalogDescriptor",
    "CatalogExtra",
    "CatalogResponse",
    "DevicePollPayload",
    "DevicePollResult",
    "ListConfig",
    "ListEntry",
    "Manifest",
    "MetaPreview",
    "PreviewListRequest",
    "SaveTokenPayload",
    "ValidateListRequest",
    "ValidateListResponse",
]
