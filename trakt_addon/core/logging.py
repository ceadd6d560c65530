"""
Logging utilities for the addon server and its background refresher.

Provides a consistent logging format and configuration.
"""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    # httpx logs every request at INFO, which drowns out catalog traffic.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def mask_token(token: str | None, visible: int = 6) -> str:
    """Return a log-safe preview of a bearer credential."""
    if not token:
        return "<none>"
    return f"{token[:visible]}..."


__all__ = ["configure_logging", "mask_token"]
