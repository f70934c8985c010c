# services/http/client.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from config.settings import get_settings
from services.errors import ProviderError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"accept": "application/json"}


def provider_timeout(seconds: Optional[float] = None) -> httpx.Timeout:
    total = seconds if seconds is not None else get_settings().http_timeout_s
    return httpx.Timeout(total, connect=min(2.0, total))


@asynccontextmanager
async def provider_client(
    client: Optional[httpx.AsyncClient] = None,
    *,
    timeout_s: Optional[float] = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the caller's client when given, else a short-lived one with a bounded timeout."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(
        timeout=provider_timeout(timeout_s),
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
        follow_redirects=True,
    ) as c:
        yield c


async def get_json(
    provider: str,
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    client: Optional[httpx.AsyncClient] = None,
    timeout_s: Optional[float] = None,
) -> Any:
    """
    GET a JSON document from a provider.

    Raises ProviderError on transport errors, timeouts, non-2xx responses and
    bodies that are not JSON.
    """
    merged = {**DEFAULT_HEADERS, **(headers or {})}
    async with provider_client(client, timeout_s=timeout_s) as c:
        try:
            r = await c.get(url, params=params, headers=merged)
        except httpx.TimeoutException as e:
            raise ProviderError(provider, f"timeout: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(provider, f"request failed: {e}") from e

    if r.status_code >= 400:
        raise ProviderError(provider, f"HTTP {r.status_code}")

    try:
        return r.json()
    except ValueError as e:
        raise ProviderError(provider, "response is not JSON") from e
