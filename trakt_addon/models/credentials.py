"""
Domain model for the persisted Trakt credential.
"""

from __future__ import annotations

import time
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

# Trakt reports ``created_at`` in epoch seconds; everything stored here is ms.
_MS_THRESHOLD = 10**12


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def to_epoch_ms(value: Any) -> Optional[int]:
    """Normalize an epoch timestamp in seconds or milliseconds to milliseconds."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    if number < _MS_THRESHOLD:
        return number * 1000
    return number


class CredentialRecord(BaseModel):
    """The single token record persisted on disk."""

    model_config = ConfigDict(extra="allow")

    access_token: Optional[str] = Field(
        None, description="Bearer credential sent with Trakt API calls."
    )
    refresh_token: Optional[str] = Field(
        None, description="Credential used to mint a new access token."
    )
    expires_at: Optional[int] = Field(
        None, description="Epoch milliseconds at which the access token expires."
    )
    expires_in: Optional[int] = Field(
        None, description="Upstream-reported validity window in seconds."
    )
    created_at: Optional[int] = Field(
        None, description="Epoch milliseconds when the underlying grant was issued."
    )
    saved_at: Optional[int] = Field(
        None, description="Epoch milliseconds when the record was last persisted."
    )

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def time_until_expiry(self, now: int) -> int:
        return (self.expires_at or 0) - now

    def is_expired(self, now: int) -> bool:
        return (self.expires_at or 0) <= now

    def needs_refresh(self, now: int, buffer_ms: int) -> bool:
        """True when the token expires within ``buffer_ms`` and can be renewed."""
        return self.time_until_expiry(now) < buffer_ms and bool(self.refresh_token)

    @classmethod
    def from_grant(
        cls,
        payload: Mapping[str, Any],
        *,
        issued_at: int,
        previous_refresh_token: Optional[str] = None,
    ) -> "CredentialRecord":
        """Build a record from a Trakt token response received at ``issued_at``."""
        expires_in = int(payload.get("expires_in") or 0)
        return cls(
            access_token=payload.get("access_token"),
            refresh_token=payload.get("refresh_token") or previous_refresh_token,
            expires_at=issued_at + expires_in * 1000,
            expires_in=expires_in,
            created_at=to_epoch_ms(payload.get("created_at")) or issued_at,
        )


__all__ = ["CredentialRecord", "now_ms", "to_epoch_ms"]
