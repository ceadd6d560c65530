"""Expose constructed client wrappers."""

from .credential_store import CredentialStore, StoreCorrupt
from .list_config_store import ListConfigStore
from .metadata import OMDBClient, TMDBClient
from .poster_cache import PosterCache
from .trakt_api import InvalidListURL, TraktAPIClient, TraktAPIError, parse_list_url
from .trakt_oauth import DeviceCode, OAuthRequestError, TraktOAuthClient

__all__ = [
    "CredentialStore",
    "DeviceCode",
    "InvalidListURL",
    "ListConfigStore",
    "OAuthRequestError",
    "OMDBClient",
    "PosterCache",
    "StoreCorrupt",
    "TMDBClient",
    "TraktAPIClient",
    "TraktAPIError",
    "TraktOAuthClient",
    "parse_list_url",
]
