# services/summary/summary_aggregator.py
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional

from pydantic import ValidationError

from config.settings import get_settings
from schemas.market import AggregateResult, AssetQuote, EconomicEvent, SentimentReading
from services.cache.cache_backend import CacheBackend, get_cache
from services.calendar import calendar_aggregator
from services.markets import market_aggregator
from services.sentiment import sentiment_aggregator
from services.serving import FEAR_GREED_KEY, MARKETS_KEY, markets_ttl
from services.summary.summary_generator import generate_summary

logger = logging.getLogger(__name__)


def _models_from_cache(payload: Any, model) -> Optional[List[Any]]:
    if not isinstance(payload, list) or not payload:
        return None
    try:
        return [model.model_validate(x) for x in payload]
    except ValidationError as e:
        logger.warning("summary_cache_unreadable model=%s err=%s", model.__name__, e)
        return None


def _reading_from_cache(payload: Any) -> Optional[SentimentReading]:
    if not isinstance(payload, dict):
        return None
    try:
        return SentimentReading.model_validate(payload)
    except ValidationError as e:
        logger.warning("summary_cache_unreadable model=SentimentReading err=%s", e)
        return None


async def _fetch_or_none(name: str, fetch: Callable[[], Awaitable[AggregateResult]]) -> Any:
    try:
        result = await fetch()
    except Exception as e:
        logger.warning("summary_input_failed input=%s err=%s", name, e)
        return None
    return result.data if result.usable else None


async def aggregate_summary(
    *,
    cache: Optional[CacheBackend] = None,
    now: Optional[datetime] = None,
) -> AggregateResult:
    """
    Fresh cached inputs are reused; only the missing ones are fetched, in
    parallel. A failed input contributes nothing to the summary.
    """
    cache = cache if cache is not None else get_cache()
    ttl = get_settings().ttl
    week_from, week_to = calendar_aggregator.date_range_for_tab("this_week")
    calendar_key = calendar_aggregator.cache_key(week_from, week_to)

    markets = _models_from_cache(cache.get(MARKETS_KEY, markets_ttl(now)), AssetQuote)
    events = _models_from_cache(cache.get(calendar_key, ttl.calendar), EconomicEvent)
    sentiment = _reading_from_cache(cache.get(FEAR_GREED_KEY, ttl.fear_greed))

    missing = []
    tasks = []
    if markets is None:
        missing.append("markets")
        tasks.append(_fetch_or_none("markets", market_aggregator.aggregate_markets))
    if events is None:
        missing.append("calendar")
        tasks.append(_fetch_or_none(
            "calendar", lambda: calendar_aggregator.aggregate_calendar(week_from, week_to)
        ))
    if sentiment is None:
        missing.append("sentiment")
        tasks.append(_fetch_or_none("sentiment", sentiment_aggregator.aggregate_sentiment))

    fetched = dict(zip(missing, await asyncio.gather(*tasks))) if tasks else {}
    reasons = [f"{name}:unavailable" for name, data in fetched.items() if data is None]

    if "markets" in fetched:
        markets = fetched["markets"]
    if "calendar" in fetched:
        events = fetched["calendar"]
    if "sentiment" in fetched:
        sentiment = fetched["sentiment"]

    summary = generate_summary(markets or [], events or [], sentiment, now=now)
    logger.info("summary_generated reused=%s fetched=%s", 3 - len(missing), ",".join(missing) or "-")
    return AggregateResult.from_reasons(summary, reasons)
