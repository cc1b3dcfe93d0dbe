"""
httpx helpers shared by the vendor clients.

Vendor classes accept an optional long-lived AsyncClient (tests inject one
built on httpx.MockTransport); without one, each call opens a short-lived
client bounded by the vendor timeout.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from ..common.errors import ProviderError


@asynccontextmanager
async def vendor_client(
    http_client: Optional[httpx.AsyncClient],
    timeout: float,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the injected client, or a fresh one closed on exit."""
    if http_client is not None:
        yield http_client
        return
    async with httpx.AsyncClient(timeout=timeout) as client:
        yield client


def transport_error(provider: str, exc: httpx.HTTPError) -> ProviderError:
    """Wrap an httpx failure (timeout, connection) as a generic provider error."""
    if isinstance(exc, httpx.TimeoutException):
        return ProviderError(f"{provider} request timed out", provider=provider)
    return ProviderError(f"{provider} request failed: {exc.__class__.__name__}", provider=provider)
