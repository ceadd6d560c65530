"""
Pydantic models for list configuration, the Stremio manifest and catalogs.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ListEntry(BaseModel):
    """A Trakt list the user exposed as a Stremio catalog."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = Field(None, description="Identifier assigned by the UI.")
    name: str = Field(..., min_length=1, description="Catalog name shown in Stremio.")
    url: str = Field(..., description="https://trakt.tv/users/<user>/lists/<slug>")
    type: Literal["movie", "series"] = Field("movie")
    sort_by: str = Field("rank", alias="sortBy")
    sort_order: Literal["asc", "desc"] = Field("asc", alias="sortOrder")
    enabled: bool = Field(True)
    order: Optional[int] = Field(None, description="Position in the manifest.")


class ListConfig(BaseModel):
    """The ``lists.json`` document."""

    model_config = ConfigDict(extra="allow")

    lists: List[ListEntry] = Field(default_factory=list)
    revision: int = Field(0, description="Incremented on every save.")


class CatalogExtra(BaseModel):
    name: str
    isRequired: bool = False


class CatalogDescriptor(BaseModel):
    type: str
    id: str
    name: str
    extra: List[CatalogExtra] = Field(default_factory=list)


class Manifest(BaseModel):
    """Stremio addon manifest."""

    id: str
    version: str
    name: str
    description: str
    logo: Optional[str] = None
    resources: List[str]
    types: List[str]
    catalogs: List[CatalogDescriptor]
    idPrefixes: List[str]
    behaviorHints: Dict[str, Any] = Field(default_factory=dict)


class MetaPreview(BaseModel):
    """One catalog entry in Stremio's meta-preview shape."""

    id: str
    type: str
    name: str
    poster: Optional[str] = None
    year: Optional[str] = None
    imdbRating: Optional[float] = None
    description: Optional[str] = None
    genres: List[str] = Field(default_factory=list)
    runtime: Optional[int] = None
    country: Optional[str] = None
    language: Optional[str] = None


class CatalogResponse(BaseModel):
    metas: List[MetaPreview] = Field(default_factory=list)


class ValidateListRequest(BaseModel):
    url: str = Field(..., description="Trakt list URL to validate.")


class ValidateListResponse(BaseModel):
    valid: bool
    error: Optional[str] = None
    listName: Optional[str] = None
    listDescription: Optional[str] = None
    itemCount: Optional[int] = None
    privacy: Optional[str] = None


class PreviewListRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    list_url: str = Field(..., alias="listUrl")
    limit: int = Field(8, ge=1, le=100)
    type: Optional[Literal["movie", "series"]] = None
    sort_by: Optional[str] = Field(None, alias="sortBy")
    sort_order: Literal["asc", "desc"] = Field("asc", alias="sortOrder")


__all__ = [
    "CatalogDescriptor",
    "CatalogExtra",
    "CatalogResponse",
    "ListConfig",
    "ListEntry",
    "Manifest",
    "MetaPreview",
    "PreviewListRequest",
    "ValidateListRequest",
    "ValidateListResponse",
]
