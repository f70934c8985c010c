# services/finnhub/finnhub_calendar_service.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from config.settings import get_settings
from services.errors import ProviderError, ProviderNotConfigured
from services.http.client import get_json

PROVIDER = "finnhub"
FINNHUB_BASE_URL = "https://finnhub.io/api/v1"


def _require_api_key() -> str:
    key = get_settings().finnhub_api_key
    if not key:
        raise ProviderNotConfigured(PROVIDER, "FINNHUB_API_KEY")
    return key


async def fetch_economic_calendar(
    from_date: str,
    to_date: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> List[Dict[str, Any]]:
    """
    Raw economic calendar rows for [from_date, to_date] (YYYY-MM-DD).

    Finnhub response:
      {"economicCalendar": [ {actual, country, estimate, event, impact, prev, time, unit, date?} ]}
    """
    token = _require_api_key()
    data = await get_json(
        PROVIDER,
        f"{FINNHUB_BASE_URL}/calendar/economic",
        params={"from": from_date, "to": to_date, "token": token},
        client=client,
    )
    rows = data.get("economicCalendar") if isinstance(data, dict) else None
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise ProviderError(PROVIDER, "economicCalendar is not a list")
    return [r for r in rows if isinstance(r, dict)]
