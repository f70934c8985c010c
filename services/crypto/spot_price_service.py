# services/crypto/spot_price_service.py
"""Exchange spot prices used for the premium spreads. Each returns a positive float or raises."""
from __future__ import annotations

from typing import Any, Optional

import httpx

from services.errors import ProviderError
from services.http.client import get_json
from utils.common_helpers import positive_float

UPBIT_TICKER_URL = "https://api.upbit.com/v1/ticker"
COINBASE_SPOT_URL = "https://api.coinbase.com/v2/prices/BTC-USD/spot"
BINANCE_PRICE_URL = "https://api.binance.com/api/v3/ticker/price"


def _require_positive(provider: str, value: Any) -> float:
    price = positive_float(value)
    if price is None:
        raise ProviderError(provider, f"non-positive price: {value!r}")
    return price


async def fetch_upbit_usdt_krw(*, client: Optional[httpx.AsyncClient] = None) -> float:
    data = await get_json("upbit", UPBIT_TICKER_URL, params={"markets": "KRW-USDT"}, client=client)
    first = data[0] if isinstance(data, list) and data and isinstance(data[0], dict) else {}
    return _require_positive("upbit", first.get("trade_price"))


async def fetch_coinbase_btc_usd(*, client: Optional[httpx.AsyncClient] = None) -> float:
    data = await get_json("coinbase", COINBASE_SPOT_URL, client=client)
    amount = ((data or {}).get("data") or {}).get("amount") if isinstance(data, dict) else None
    return _require_positive("coinbase", amount)


async def fetch_binance_btc_usdt(*, client: Optional[httpx.AsyncClient] = None) -> float:
    data = await get_json("binance", BINANCE_PRICE_URL, params={"symbol": "BTCUSDT"}, client=client)
    price = data.get("price") if isinstance(data, dict) else None
    return _require_positive("binance", price)
