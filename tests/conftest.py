"""Pytest configuration shared across the suite."""

from __future__ import annotations

from pathlib import Path

import pytest

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from trakt_addon.core.config import AppSettings, StorageSettings, TraktSettings


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    """Settings pointing every file at a fresh temporary directory."""
    return AppSettings(
        trakt=TraktSettings(
            TRAKT_CLIENT_ID="client-123",
            TRAKT_CLIENT_SECRET="secret-456",
        ),
        storage=StorageSettings(DATA_DIR=str(tmp_path)),
    )
