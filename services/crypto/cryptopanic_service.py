# services/crypto/cryptopanic_service.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from config.settings import get_settings
from services.errors import ProviderError, ProviderNotConfigured
from services.http.client import get_json

PROVIDER = "cryptopanic"
CRYPTOPANIC_POSTS_URL = "https://cryptopanic.com/api/v1/posts/"


async def fetch_hot_posts(*, client: Optional[httpx.AsyncClient] = None) -> List[Dict[str, Any]]:
    """Hot crypto news posts: [{id, title, url, source: {title}, published_at}, ...]."""
    api_key = get_settings().cryptopanic_api_key
    if not api_key:
        raise ProviderNotConfigured(PROVIDER, "CRYPTOPANIC_API_KEY")

    params = {"auth_token": api_key, "public": "true", "kind": "news", "filter": "hot"}
    data = await get_json(PROVIDER, CRYPTOPANIC_POSTS_URL, params=params, client=client)
    results = data.get("results") if isinstance(data, dict) else None
    if not isinstance(results, list):
        raise ProviderError(PROVIDER, "results list missing")
    return [p for p in results if isinstance(p, dict)]
