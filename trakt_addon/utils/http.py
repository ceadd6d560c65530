"""HTTP utilities shared by the upstream API clients."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Dict, TypeVar

import httpx

T = TypeVar("T")

DEFAULT_TIMEOUT = 10.0


class UpstreamTimeout(Exception):
    """Raised when an upstream call does not settle within its deadline."""

    def __init__(self, operation: str, seconds: float) -> None:
        super().__init__(f"{operation} did not complete within {seconds:g}s")
        self.operation = operation
        self.seconds = seconds


async def call_with_timeout(
    awaitable: Awaitable[T],
    *,
    seconds: float,
    operation: str = "upstream call",
) -> T:
    """Await ``awaitable`` but surface a hang as ``UpstreamTimeout``."""
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as exc:
        raise UpstreamTimeout(operation, seconds) from exc


def json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    """Decode a JSON object body, treating empty or malformed bodies as ``{}``."""
    if not response.content:
        return {}
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def build_async_client(
    transport: httpx.AsyncBaseTransport | None = None,
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.AsyncClient:
    """Create a short-lived client; tests inject a ``MockTransport``."""
    return httpx.AsyncClient(timeout=timeout, transport=transport)


__all__ = [
    "DEFAULT_TIMEOUT",
    "UpstreamTimeout",
    "build_async_client",
    "call_with_timeout",
    "json_or_empty",
]
