# services/crypto/fear_greed_service.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from services.errors import ProviderError
from services.http.client import get_json

PROVIDER = "alternative.me"
FEAR_GREED_URL = "https://api.alternative.me/fng/"


async def fetch_fear_greed_entries(
    limit: int = 2,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> List[Dict[str, Any]]:
    """
    Latest Crypto Fear & Greed readings, newest first.
    Entry shape: {value: "72", value_classification: "Greed", timestamp: "1739750400"}.
    """
    data = await get_json(PROVIDER, FEAR_GREED_URL, params={"limit": limit}, client=client)
    entries = data.get("data") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ProviderError(PROVIDER, "data list missing")
    return [e for e in entries if isinstance(e, dict)]
