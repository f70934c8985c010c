# services/serving.py
"""
Request-side boundary shared by every data endpoint:

  fresh cache hit  -> served as-is
  miss             -> aggregate, store, serve
  aggregate fails  -> last stored payload with stale=True
  nothing stored   -> AggregationError carrying the localized message
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel

from config.market_catalog import ERROR_MESSAGES
from config.settings import get_settings
from schemas.market import AggregateResult
from services.cache.cache_backend import CacheBackend, get_cache
from services.errors import AggregationError
from services.markets.market_hours import is_us_market_open
from utils.common_helpers import iso_now, iso_utc

logger = logging.getLogger(__name__)

Json = Dict[str, Any]
Producer = Callable[[], Awaitable[AggregateResult]]

MARKETS_KEY = "markets"
NEWS_KEY = "news"
FEAR_GREED_KEY = "fear-greed"
SUMMARY_KEY = "summary"


def to_jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, (list, tuple)):
        return [to_jsonable(x) for x in data]
    return data


def markets_ttl(now: Optional[datetime] = None) -> int:
    ttl = get_settings().ttl
    return ttl.markets if is_us_market_open(now) else ttl.markets_closed


def _stored_iso(cache: CacheBackend, key: str) -> str:
    ts = cache.stored_at(key)
    if ts is not None:
        return iso_utc(datetime.fromtimestamp(ts, tz=timezone.utc))
    return iso_now()


def envelope(data: Any, updated_at: str, *, stale: bool = False) -> Json:
    body: Json = {"data": data, "updatedAt": updated_at}
    if stale:
        body["stale"] = True
    return body


async def serve_cached(
    domain: str,
    key: str,
    ttl_seconds: float,
    produce: Producer,
    *,
    cache: Optional[CacheBackend] = None,
) -> Json:
    """
    Returns the {data, updatedAt[, stale]} envelope. Raises AggregationError
    (message = localized text for `domain`) when there is nothing to serve.
    """
    cache = cache if cache is not None else get_cache()

    hit = cache.get(key, ttl_seconds)
    if hit is not None:
        logger.debug("serve_cache_hit key=%s", key)
        return envelope(hit, _stored_iso(cache, key))

    try:
        result = await produce()
    except Exception as e:
        logger.exception("serve_aggregate_crashed key=%s", key)
        result = AggregateResult.fail(f"{type(e).__name__}: {e}")

    if result.usable:
        if result.status == "degraded":
            logger.info("serve_degraded key=%s reasons=%s", key, ",".join(result.reasons))
        payload = to_jsonable(result.data)
        cache.set(key, payload)
        return envelope(payload, _stored_iso(cache, key))

    stale = cache.get_stale(key)
    if stale is not None:
        logger.warning("serve_stale key=%s err=%s", key, result.error)
        return envelope(stale, iso_now(), stale=True)

    logger.error("serve_failed key=%s err=%s", key, result.error)
    raise AggregationError(ERROR_MESSAGES.get(domain, "데이터를 불러올 수 없습니다."))
