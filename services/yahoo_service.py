# services/yahoo_service.py
"""
Yahoo Finance access through yahooquery.

yahooquery is blocking, so the async wrappers run each call in a worker thread
under a bounded timeout. One call covers one symbol; callers fan out and
isolate failures per symbol.
"""
from __future__ import annotations

import asyncio
import math
from typing import Any, Dict, List, Optional

import pandas as pd
from yahooquery import Ticker

from config.settings import get_settings
from services.errors import ProviderError

PROVIDER = "yahoo"

Json = Dict[str, Any]
Number = Optional[float]


# ---------------------------
# Parsing helpers
# ---------------------------
def _ensure_symbol_dict(obj: Any, sym: str) -> Dict[str, Any]:
    """
    yahooquery can return strings, lists, or dicts not keyed by symbol.
    Normalize to a dict (or {}) for the symbol.
    """
    if isinstance(obj, dict):
        if sym in obj and isinstance(obj[sym], dict):
            return obj[sym]
        return obj
    return {}


def _fnum(x: Any) -> Number:
    try:
        if x is None:
            return None
        if isinstance(x, float) and math.isnan(x):
            return None
        return float(x)
    except (TypeError, ValueError):
        return None


def parse_quote(raw: Dict[str, Any]) -> Json:
    """
    Map a yahooquery quote record to {price, change, change_percent}.
    Missing change fields are derived from the previous close when possible.
    """
    price = _fnum(raw.get("regularMarketPrice"))
    if price is None:
        raise ValueError("regularMarketPrice missing")

    prev = _fnum(raw.get("regularMarketPreviousClose"))
    change = _fnum(raw.get("regularMarketChange"))
    change_pct = _fnum(raw.get("regularMarketChangePercent"))

    if change is None and prev not in (None, 0):
        change = price - prev
    if change_pct is None and prev not in (None, 0) and change is not None:
        change_pct = change / prev * 100.0

    return {
        "price": price,
        "change": change or 0.0,
        "change_percent": change_pct or 0.0,
    }


def closes_from_history(df: Any, sym: str) -> List[float]:
    """Pull the ordered close series out of a yahooquery history frame."""
    if df is None or not isinstance(df, (pd.DataFrame, pd.Series)) or df.empty:
        return []

    if isinstance(df, pd.Series):
        df = df.to_frame().T

    if isinstance(df.index, pd.MultiIndex):
        df = df.reset_index()
        if "symbol" in df.columns:
            df = df[df["symbol"].astype(str).str.upper() == sym.upper()]
    else:
        df = df.reset_index()
        if "index" in df.columns and "date" not in df.columns:
            df = df.rename(columns={"index": "date"})

    if "close" not in df.columns:
        return []

    if "date" in df.columns:
        df = df.assign(date=pd.to_datetime(df["date"], utc=True, errors="coerce"))
        df = df.dropna(subset=["date"]).sort_values("date")

    out: List[float] = []
    for v in df["close"].tolist():
        f = _fnum(v)
        if f is not None:
            out.append(f)
    return out


# ---------------------------
# Blocking calls (worker thread)
# ---------------------------
def _fetch_quote_blocking(sym: str) -> Json:
    tq = Ticker(sym, asynchronous=False, formatted=False, validate=False)
    raw = _ensure_symbol_dict(tq.quotes, sym)
    if not raw:
        raise ValueError(f"no quote for {sym}")
    return parse_quote(raw)


def _fetch_closes_blocking(sym: str, period: str, interval: str) -> List[float]:
    tq = Ticker(sym, asynchronous=False, formatted=False, validate=False)
    return closes_from_history(tq.history(period=period, interval=interval), sym)


# ---------------------------
# Public async API
# ---------------------------
async def fetch_quote(yahoo_symbol: str, *, timeout_s: Optional[float] = None) -> Json:
    """Latest quote for one Yahoo symbol. Raises ProviderError on any failure."""
    sym = (yahoo_symbol or "").strip()
    if not sym:
        raise ProviderError(PROVIDER, "empty symbol")
    timeout = timeout_s if timeout_s is not None else get_settings().http_timeout_s
    try:
        return await asyncio.wait_for(asyncio.to_thread(_fetch_quote_blocking, sym), timeout)
    except asyncio.TimeoutError as e:
        raise ProviderError(PROVIDER, f"quote timeout for {sym}") from e
    except Exception as e:
        raise ProviderError(PROVIDER, f"quote failed for {sym}: {e}") from e


async def fetch_daily_closes(
    yahoo_symbol: str,
    *,
    period: str = "1mo",
    interval: str = "1d",
    timeout_s: Optional[float] = None,
) -> List[float]:
    """Close prices for the window, oldest first. Raises ProviderError on failure."""
    sym = (yahoo_symbol or "").strip()
    if not sym:
        raise ProviderError(PROVIDER, "empty symbol")
    timeout = timeout_s if timeout_s is not None else get_settings().http_timeout_s
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(_fetch_closes_blocking, sym, period, interval), timeout
        )
    except asyncio.TimeoutError as e:
        raise ProviderError(PROVIDER, f"history timeout for {sym}") from e
    except Exception as e:
        raise ProviderError(PROVIDER, f"history failed for {sym}: {e}") from e
