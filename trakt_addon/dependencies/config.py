"""
FastAPI dependency utilities for injecting configuration.
"""

from fastapi import Request

from trakt_addon.core.config import AppSettings


def get_app_settings(request: Request) -> AppSettings:
    """FastAPI dependency returning the settings the application was built with."""
    return request.app.state.services.settings


__all__ = ["get_app_settings"]
