"""
FastAPI routes backing the configuration UI.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Dict

import httpx
from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from trakt_addon.clients import (
    InvalidListURL,
    OAuthRequestError,
    TraktAPIError,
    parse_list_url,
)
from trakt_addon.core.config import AppSettings
from trakt_addon.dependencies import (
    get_app_settings,
    get_catalog_service,
    get_device_auth_registry,
    get_list_store,
    get_token_manager,
    get_trakt_client,
)
from trakt_addon.models.credentials import CredentialRecord
from trakt_addon.schemas import (
    DevicePollPayload,
    DevicePollResult,
    PreviewListRequest,
    SaveTokenPayload,
    ValidateListRequest,
    ValidateListResponse,
)
from trakt_addon.services import HandshakeState, RefreshFailed, Unauthenticated
from trakt_addon.services.manifest import enabled_lists

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/config", status_code=HTTPStatus.OK)
async def read_config(
    list_store: Annotated[Any, Depends(get_list_store)],
) -> dict:
    return list_store.load().model_dump(by_alias=True)


@router.post("/config", status_code=HTTPStatus.OK)
async def save_config(
    list_store: Annotated[Any, Depends(get_list_store)],
    payload: Dict[str, Any] = Body(...),
) -> dict:
    """Persist the list configuration; the next manifest request reflects it."""
    try:
        config = list_store.save(payload)
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=f"Invalid list configuration: {exc}",
        ) from exc
    return {
        "success": True,
        "message": "Configuration saved successfully",
        "revision": config.revision,
    }


@router.post("/refresh-addon", status_code=HTTPStatus.OK)
async def refresh_addon(
    list_store: Annotated[Any, Depends(get_list_store)],
) -> dict:
    """Explicit reload signal: re-read the configuration from disk."""
    config = list_store.load()
    logger.info("Addon configuration reloaded (%d lists)", len(config.lists))
    return {
        "success": True,
        "message": "Addon configuration refreshed",
        "catalogCount": len(enabled_lists(config)),
    }


@router.get("/addon-info", status_code=HTTPStatus.OK)
async def addon_info(
    request: Request,
    list_store: Annotated[Any, Depends(get_list_store)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> dict:
    config = list_store.load()
    return {
        "status": "online",
        "catalogCount": len(enabled_lists(config)),
        "addonName": "Stremio Trakt Lists",
        "version": settings.addon_version,
        "manifestUrl": str(request.url_for("get_manifest")),
    }


@router.post("/validate-list", response_model=ValidateListResponse)
async def validate_list(
    payload: ValidateListRequest,
    trakt_client: Annotated[Any, Depends(get_trakt_client)],
) -> ValidateListResponse:
    try:
        username, list_slug = parse_list_url(payload.url)
    except InvalidListURL:
        return ValidateListResponse(valid=False, error="Invalid Trakt list URL format")

    try:
        list_data = await trakt_client.get_list(username, list_slug)
    except (TraktAPIError, httpx.HTTPError) as exc:
        logger.info("List validation failed for %s/%s: %s", username, list_slug, exc)
        return ValidateListResponse(valid=False, error="List not found or not accessible")

    try:
        item_count = await trakt_client.get_list_item_count(username, list_slug)
    except (TraktAPIError, httpx.HTTPError):
        item_count = None

    return ValidateListResponse(
        valid=True,
        listName=list_data.get("name"),
        listDescription=list_data.get("description"),
        itemCount=item_count,
        privacy=list_data.get("privacy"),
    )


@router.post("/preview-list")
async def preview_list(
    payload: PreviewListRequest,
    catalog: Annotated[Any, Depends(get_catalog_service)],
) -> list:
    try:
        metas = await catalog.preview(
            list_url=payload.list_url,
            limit=payload.limit,
            item_type=payload.type,
            sort_by=payload.sort_by,
            sort_order=payload.sort_order,
        )
    except InvalidListURL as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="Invalid Trakt list URL format"
        ) from exc
    except (Unauthenticated, RefreshFailed) as exc:
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED, detail="Authentication required"
        ) from exc
    except (TraktAPIError, httpx.HTTPError) as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY, detail="Failed to generate preview"
        ) from exc
    return [meta.model_dump(exclude_none=True) for meta in metas]


@router.get("/token-status", status_code=HTTPStatus.OK)
async def token_status(
    token_manager: Annotated[Any, Depends(get_token_manager)],
) -> dict:
    return token_manager.token_status()


@router.get("/check-auth", status_code=HTTPStatus.OK)
async def check_auth(
    token_manager: Annotated[Any, Depends(get_token_manager)],
    trakt_client: Annotated[Any, Depends(get_trakt_client)],
) -> dict:
    """Confirm the stored token works by fetching the user's profile."""
    try:
        access_token = await token_manager.get_access_token()
        profile = await trakt_client.get_profile(access_token)
    except (Unauthenticated, RefreshFailed, TraktAPIError, httpx.HTTPError) as exc:
        logger.info("Auth check failed: %s", exc)
        return {"authenticated": False}

    record = token_manager.load_tokens()
    return {
        "authenticated": True,
        "user": profile.get("username") or profile.get("name") or "User",
        "tokenExpiresAt": record.expires_at if record else None,
    }


@router.post("/refresh-token")
async def refresh_token(
    token_manager: Annotated[Any, Depends(get_token_manager)],
) -> JSONResponse:
    """Force a refresh regardless of the remaining lifetime."""
    record = token_manager.load_tokens()
    if record is None or not record.refresh_token:
        return JSONResponse(
            status_code=HTTPStatus.UNAUTHORIZED,
            content={
                "success": False,
                "error": "No refresh token available. Please re-authenticate with Trakt.",
                "needsReauth": True,
            },
        )
    try:
        refreshed = await token_manager.refresh_tokens()
    except RefreshFailed as exc:
        status_code = HTTPStatus.UNAUTHORIZED if exc.requires_reauth else HTTPStatus.BAD_GATEWAY
        return JSONResponse(
            status_code=status_code,
            content={
                "success": False,
                "error": str(exc),
                "reason": exc.reason,
                "needsReauth": exc.requires_reauth,
            },
        )
    return JSONResponse(
        content={
            "success": True,
            "expiresAt": refreshed.expires_at,
            "hoursValid": (refreshed.expires_at - token_manager.now()) // 3_600_000,
            "message": "Token refreshed successfully",
        }
    )


@router.post("/clear-tokens", status_code=HTTPStatus.OK)
async def clear_tokens(
    token_manager: Annotated[Any, Depends(get_token_manager)],
) -> dict:
    backup = token_manager.clear_tokens()
    return {
        "success": True,
        "message": "Tokens cleared successfully",
        "backup": backup.name if backup else None,
    }


@router.post("/save-token", status_code=HTTPStatus.OK)
async def save_token(
    payload: SaveTokenPayload,
    token_manager: Annotated[Any, Depends(get_token_manager)],
) -> dict:
    """Store a manually obtained token pair, for troubleshooting."""
    issued_at = token_manager.now()
    record = CredentialRecord.from_grant(payload.model_dump(), issued_at=issued_at)
    stored = token_manager.save_tokens(record)
    logger.info("Tokens manually saved")
    return {
        "success": True,
        "message": "Tokens saved successfully",
        "expiresAt": stored.expires_at,
    }


@router.post("/auth/device/code", status_code=HTTPStatus.OK)
async def start_device_auth(
    registry: Annotated[Any, Depends(get_device_auth_registry)],
) -> dict:
    """Kick off the device flow and return what the user needs to authorize."""
    try:
        handshake = await registry.begin()
    except (OAuthRequestError, httpx.HTTPError) as exc:
        logger.error("Trakt device code request failed: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail="Failed to initialize Trakt authentication",
        ) from exc
    device = handshake.device
    return {
        "device_code": device.device_code,
        "user_code": device.user_code,
        "verification_url": device.verification_url,
        "expires_in": device.expires_in,
        "interval": device.interval,
    }


@router.post("/auth/device/poll", response_model=DevicePollResult)
async def poll_device_auth(
    payload: DevicePollPayload,
    registry: Annotated[Any, Depends(get_device_auth_registry)],
) -> DevicePollResult:
    handshake = await registry.poll(payload.device_code)
    state = handshake.state
    return DevicePollResult(
        success=state is HandshakeState.AUTHORIZED,
        pending=state is HandshakeState.PENDING,
        state=state.value,
        error=handshake.failure_reason or handshake.last_error,
        interval=handshake.interval,
    )


@router.post("/auth/device/cancel", status_code=HTTPStatus.OK)
async def cancel_device_auth(
    payload: DevicePollPayload,
    registry: Annotated[Any, Depends(get_device_auth_registry)],
) -> dict:
    return {"cancelled": registry.cancel(payload.device_code)}


__all__ = ["router"]
