# services/finnhub/finnhub_news_service.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import finnhub

from config.settings import get_settings
from services.errors import ProviderError, ProviderNotConfigured

PROVIDER = "finnhub"


def _require_api_key() -> str:
    key = get_settings().finnhub_api_key
    if not key:
        raise ProviderNotConfigured(PROVIDER, "FINNHUB_API_KEY")
    return key


# -------- Sync worker (called inside a thread) --------
def _fetch_general_news_blocking(category: str, api_key: str) -> List[Dict[str, Any]]:
    """
    general_news(category, min_id=0) - category: general, crypto, forex, merger.
    Item schema: {id, headline, summary, source, url, datetime, category, image, related}
    """
    client = finnhub.Client(api_key=api_key)
    data = client.general_news(category or "general", min_id=0) or []
    return [d for d in data if isinstance(d, dict)]


# -------- Public async API --------
async def fetch_general_news(
    category: str = "general",
    *,
    timeout_s: Optional[float] = None,
) -> List[Dict[str, Any]]:
    """Raw Finnhub market news, in provider order. Raises ProviderError on failure."""
    api_key = _require_api_key()
    timeout = timeout_s if timeout_s is not None else get_settings().http_timeout_s
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(_fetch_general_news_blocking, category, api_key), timeout
        )
    except asyncio.TimeoutError as e:
        raise ProviderError(PROVIDER, "general_news timeout") from e
    except Exception as e:
        raise ProviderError(PROVIDER, f"general_news failed: {e}") from e
