"""FMP client factory configured from settings."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fmp_mcp.clients.fmp_client import FMPClient
from fmp_mcp.config import settings
from fmp_mcp.exceptions import ConfigurationError


@asynccontextmanager
async def fmp_client_factory() -> AsyncIterator[FMPClient]:
    """Yield an ``FMPClient``, closing its HTTP connection pool when done.

    Raises ``ConfigurationError`` when ``FMP_API_KEY`` is unset or blank.
    """
    if not settings.fmp_api_key or not settings.fmp_api_key.strip():
        raise ConfigurationError("FMP_API_KEY environment variable is required")
    async with FMPClient(
        settings.fmp_api_key,
        base_url=settings.fmp_base_url,
        timeout=settings.fmp_timeout_seconds,
    ) as client:
        yield client
