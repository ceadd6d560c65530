"""Schemas related to Trakt authorization."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class DevicePollPayload(BaseModel):
    """Payload sent by the UI while waiting for the user to authorize."""

    device_code: str = Field(..., description="Device code returned when starting auth.")


class DevicePollResult(BaseModel):
    success: bool
    pending: bool = False
    state: str
    error: Optional[str] = None
    interval: Optional[int] = None


class SaveTokenPayload(BaseModel):
    """Manually supplied credential, used for troubleshooting."""

    access_token: str = Field(..., min_length=1)
    refresh_token: Optional[str] = None
    expires_in: int = Field(86400, gt=0, description="Validity window in seconds.")


__all__ = ["DevicePollPayload", "DevicePollResult", "SaveTokenPayload"]
