# services/markets/market_aggregator.py
"""
Markets aggregation: one AssetQuote per configured symbol, in catalog order.

Phase one runs the independent provider branches concurrently:
  1. Yahoo quote per symbol (per-symbol isolation)
  2. CoinGecko market data for the tracked coins
  3. CoinGecko market-cap dominance
  5. Yahoo ~30 day daily closes for non-crypto sparklines (per-symbol isolation)
Phase two derives the premium spreads and needs branch 1's USD/KRW rate.

Every branch failure is converted into "no contribution" plus a reason string.
The aggregator raises only if something escapes that isolation.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from config.market_catalog import (
    ASSETS,
    COINGECKO_IDS,
    COINGECKO_SPARKLINE_STEP,
    DOMINANCE_KEYS,
    FX_RATE_SYMBOL,
    RATIO_LEGS,
    RATIO_SYMBOL,
    SPARKLINE_INTERVAL,
    SPARKLINE_PERIOD,
    AssetConfig,
)
from config.settings import get_settings
from schemas.market import AggregateResult, AssetQuote
from services import yahoo_service as yq
from services.crypto import coingecko_service, spot_price_service
from utils.common_helpers import iso_now, pct_premium, positive_float

logger = logging.getLogger(__name__)

Json = Dict[str, Any]

KIMCHI_PREMIUM_SYMBOL = "KIMP"
COINBASE_PREMIUM_SYMBOL = "CBP"


@dataclass
class BranchResult:
    values: Dict[str, Any] = field(default_factory=dict)
    reasons: List[str] = field(default_factory=list)


# ---------------------------
# Phase one branches
# ---------------------------
async def fetch_provider_quotes(assets: Sequence[AssetConfig] = ASSETS) -> BranchResult:
    """Branch 1: one Yahoo call per symbol; a failed symbol is simply left out."""
    out = BranchResult()
    sem = asyncio.Semaphore(get_settings().provider_concurrency)

    async def _one(asset: AssetConfig) -> None:
        async with sem:
            try:
                out.values[asset.symbol] = await yq.fetch_quote(asset.yahoo_symbol)
            except Exception as e:
                logger.warning("markets_quote_failed symbol=%s err=%s", asset.symbol, e)
                out.reasons.append(f"quote:{asset.symbol}")

    await asyncio.gather(*[_one(a) for a in assets if a.yahoo_symbol])
    return out


async def fetch_crypto_overlay(coin_ids: Optional[Dict[str, str]] = None) -> BranchResult:
    """Branch 2: CoinGecko price/24h change/sparkline keyed by our symbol."""
    ids = dict(coin_ids or COINGECKO_IDS)
    out = BranchResult()
    try:
        by_coin = await coingecko_service.fetch_coin_markets(ids.values())
    except Exception as e:
        logger.warning("markets_coingecko_failed err=%s", e)
        out.reasons.append("crypto_markets")
        return out

    for symbol, coin_id in ids.items():
        info = by_coin.get(coin_id)
        if not info:
            continue
        spark = info.get("sparkline") or []
        out.values[symbol] = {
            "price": info.get("price"),
            "change": info.get("change"),
            "change_percent": info.get("change_percent"),
            "sparkline": spark[::COINGECKO_SPARKLINE_STEP],
        }
    return out


async def fetch_dominance() -> BranchResult:
    """Branch 3: BTC.D / USDT.D market-cap shares."""
    out = BranchResult()
    try:
        pct = await coingecko_service.fetch_market_cap_dominance()
    except Exception as e:
        logger.warning("markets_dominance_failed err=%s", e)
        out.reasons.append("dominance")
        return out

    for symbol, key in DOMINANCE_KEYS.items():
        if key in pct:
            out.values[symbol] = pct[key]
    return out


async def fetch_sparklines(assets: Sequence[AssetConfig] = ASSETS) -> BranchResult:
    """Branch 5: daily closes for every non-crypto symbol that has a Yahoo symbol."""
    out = BranchResult()
    sem = asyncio.Semaphore(get_settings().provider_concurrency)

    async def _one(asset: AssetConfig) -> None:
        async with sem:
            try:
                closes = await yq.fetch_daily_closes(
                    asset.yahoo_symbol, period=SPARKLINE_PERIOD, interval=SPARKLINE_INTERVAL
                )
            except Exception as e:
                logger.debug("markets_sparkline_failed symbol=%s err=%s", asset.symbol, e)
                out.reasons.append(f"sparkline:{asset.symbol}")
                return
            if closes:
                out.values[asset.symbol] = closes

    targets = [a for a in assets if a.category != "crypto" and a.yahoo_symbol]
    await asyncio.gather(*[_one(a) for a in targets])
    return out


@dataclass
class PhaseOne:
    quotes: BranchResult
    crypto: BranchResult
    dominance: BranchResult
    sparklines: BranchResult


async def collect_phase_one(assets: Sequence[AssetConfig] = ASSETS) -> PhaseOne:
    quotes, crypto, dominance, sparklines = await asyncio.gather(
        fetch_provider_quotes(assets),
        fetch_crypto_overlay(),
        fetch_dominance(),
        fetch_sparklines(assets),
    )
    return PhaseOne(quotes=quotes, crypto=crypto, dominance=dominance, sparklines=sparklines)


# ---------------------------
# Phase two (derived)
# ---------------------------
async def derive_phase_two(quotes: Dict[str, Json]) -> BranchResult:
    """
    KIMP: Upbit USDT/KRW vs the USD/KRW rate from branch 1.
    CBP:  Coinbase BTC-USD vs Binance BTCUSDT.
    A leg that fails or resolves to a non-positive price drops only its symbol.
    """
    out = BranchResult()
    fx_rate = positive_float((quotes.get(FX_RATE_SYMBOL) or {}).get("price"))

    async def _skip() -> None:
        return None

    upbit, coinbase, binance = await asyncio.gather(
        spot_price_service.fetch_upbit_usdt_krw() if fx_rate else _skip(),
        spot_price_service.fetch_coinbase_btc_usd(),
        spot_price_service.fetch_binance_btc_usdt(),
        return_exceptions=True,
    )

    for leg, res in (("upbit", upbit), ("coinbase", coinbase), ("binance", binance)):
        if isinstance(res, BaseException):
            logger.warning("markets_spot_price_failed leg=%s err=%s", leg, res)

    kimp = pct_premium(_price_or_none(upbit), fx_rate)
    if kimp is None:
        out.reasons.append(f"premium:{KIMCHI_PREMIUM_SYMBOL}")
    else:
        out.values[KIMCHI_PREMIUM_SYMBOL] = kimp

    cbp = pct_premium(_price_or_none(coinbase), _price_or_none(binance))
    if cbp is None:
        out.reasons.append(f"premium:{COINBASE_PREMIUM_SYMBOL}")
    else:
        out.values[COINBASE_PREMIUM_SYMBOL] = cbp

    return out


def _price_or_none(res: Any) -> Optional[float]:
    if isinstance(res, BaseException):
        return None
    return positive_float(res)


def price_ratio(numerator: Optional[AssetQuote], denominator: Optional[AssetQuote]) -> Optional[Json]:
    """
    Ratio quote (e.g. ETH/BTC) from two already-merged quotes. The 24h change is
    derived from each leg's previous price when both changes are known.
    """
    if numerator is None or denominator is None:
        return None
    n, d = numerator.price, denominator.price
    if n <= 0 or d <= 0:
        return None

    ratio = n / d
    prev_n, prev_d = n - numerator.change, d - denominator.change
    change = change_pct = 0.0
    if prev_n > 0 and prev_d > 0:
        prev_ratio = prev_n / prev_d
        change = ratio - prev_ratio
        change_pct = (ratio / prev_ratio - 1.0) * 100.0
    return {"price": ratio, "change": change, "change_percent": change_pct}


# ---------------------------
# Merge
# ---------------------------
def _quote(asset: AssetConfig, updated_at: str, **fields: Any) -> AssetQuote:
    return AssetQuote(
        symbol=asset.symbol,
        name=asset.name,
        name_ko=asset.name_ko,
        category=asset.category,
        updated_at=updated_at,
        **fields,
    )


def merge_quotes(
    *,
    quotes: Dict[str, Json],
    crypto: Dict[str, Json],
    dominance: Dict[str, float],
    premiums: Dict[str, float],
    sparklines: Dict[str, List[float]],
    assets: Sequence[AssetConfig] = ASSETS,
    updated_at: Optional[str] = None,
) -> List[AssetQuote]:
    """
    Precedence: provider quotes, then dominance and premiums (symbols the quote
    provider never covers), then non-null crypto fields over existing entries,
    then backfilled sparklines on non-crypto entries, then the price ratio.
    Anything still missing becomes a zeroed placeholder; catalog order is kept.
    """
    ts = updated_at or iso_now()
    by_symbol = {a.symbol: a for a in assets}
    merged: Dict[str, AssetQuote] = {}

    for symbol, q in quotes.items():
        asset = by_symbol.get(symbol)
        if asset is None:
            continue
        merged[symbol] = _quote(
            asset, ts,
            price=q.get("price") or 0.0,
            change=q.get("change") or 0.0,
            change_percent=q.get("change_percent") or 0.0,
        )

    for derived in (dominance, premiums):
        for symbol, value in derived.items():
            asset = by_symbol.get(symbol)
            if asset is not None:
                merged[symbol] = _quote(asset, ts, price=value)

    for symbol, info in crypto.items():
        existing = merged.get(symbol)
        if existing is None:
            continue
        update: Json = {
            k: info[k] for k in ("price", "change", "change_percent") if info.get(k) is not None
        }
        if info.get("sparkline"):
            update["sparkline"] = list(info["sparkline"])
        merged[symbol] = existing.model_copy(update=update)

    for symbol, series in sparklines.items():
        existing = merged.get(symbol)
        if existing is not None and existing.category != "crypto":
            merged[symbol] = existing.model_copy(update={"sparkline": list(series)})

    if RATIO_SYMBOL in by_symbol:
        ratio = price_ratio(merged.get(RATIO_LEGS[0]), merged.get(RATIO_LEGS[1]))
        if ratio is not None:
            merged[RATIO_SYMBOL] = _quote(by_symbol[RATIO_SYMBOL], ts, **ratio)

    return [merged.get(a.symbol) or _quote(a, ts) for a in assets]


# ---------------------------
# Public API
# ---------------------------
async def aggregate_markets(assets: Sequence[AssetConfig] = ASSETS) -> AggregateResult:
    assets = tuple(assets)
    phase_one = await collect_phase_one(assets)
    premiums = await derive_phase_two(phase_one.quotes.values)

    data = merge_quotes(
        quotes=phase_one.quotes.values,
        crypto=phase_one.crypto.values,
        dominance=phase_one.dominance.values,
        premiums=premiums.values,
        sparklines=phase_one.sparklines.values,
        assets=assets,
    )

    reasons = _collect_reasons(
        phase_one.quotes, phase_one.crypto, phase_one.dominance, premiums, phase_one.sparklines
    )
    logger.info(
        "markets_aggregated symbols=%s quotes=%s degraded=%s",
        len(data), len(phase_one.quotes.values), len(reasons),
    )
    return AggregateResult.from_reasons(data, reasons)


def _collect_reasons(*branches: BranchResult) -> List[str]:
    out: List[str] = []
    for b in branches:
        out.extend(b.reasons)
    return out


def quotes_by_symbol(items: Iterable[AssetQuote]) -> Dict[str, AssetQuote]:
    return {q.symbol: q for q in items}
