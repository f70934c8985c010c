"""Helpers for interacting with the public CoinGecko API."""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import httpx

from config.settings import get_settings
from services.errors import ProviderError
from services.http.client import get_json
from utils.common_helpers import safe_float

PROVIDER = "coingecko"

COINGECKO_MARKETS_URL = "https://api.coingecko.com/api/v3/coins/markets"
COINGECKO_GLOBAL_URL = "https://api.coingecko.com/api/v3/global"


def _headers() -> Dict[str, str]:
    key = get_settings().coingecko_api_key
    return {"x-cg-demo-api-key": key} if key else {}


async def fetch_coin_markets(
    coin_ids: Iterable[str],
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Dict[str, Any]]:
    """
    Price, 24h change and 7-day hourly sparkline for the given coin ids.

    Returns {coin_id: {price, change, change_percent, sparkline}}; fields the
    provider left out are None (sparkline is [] when missing).
    """
    ids = ",".join(i for i in coin_ids if i)
    params = {
        "vs_currency": "usd",
        "ids": ids,
        "sparkline": "true",
        "price_change_percentage": "24h",
    }
    data = await get_json(PROVIDER, COINGECKO_MARKETS_URL, params=params, headers=_headers(), client=client)
    if not isinstance(data, list):
        raise ProviderError(PROVIDER, "unexpected /coins/markets payload")

    out: Dict[str, Dict[str, Any]] = {}
    for coin in data:
        if not isinstance(coin, dict) or not coin.get("id"):
            continue
        spark_raw = (coin.get("sparkline_in_7d") or {}).get("price") or []
        sparkline = [v for v in (safe_float(p) for p in spark_raw) if v is not None]
        out[str(coin["id"])] = {
            "price": safe_float(coin.get("current_price")),
            "change": safe_float(coin.get("price_change_24h")),
            "change_percent": safe_float(coin.get("price_change_percentage_24h")),
            "sparkline": sparkline,
        }
    return out


async def fetch_market_cap_dominance(
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, float]:
    """Market-cap share in percent keyed by lowercase ticker (btc, usdt, ...)."""
    data = await get_json(PROVIDER, COINGECKO_GLOBAL_URL, headers=_headers(), client=client)
    pct = ((data or {}).get("data") or {}).get("market_cap_percentage") if isinstance(data, dict) else None
    if not isinstance(pct, dict):
        raise ProviderError(PROVIDER, "market_cap_percentage missing")

    out: Dict[str, float] = {}
    for k, v in pct.items():
        f = safe_float(v)
        if f is not None:
            out[str(k).lower()] = f
    return out
