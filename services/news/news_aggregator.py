# services/news/news_aggregator.py
from __future__ import annotations

import asyncio
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from config.market_catalog import (
    CRYPTO_NEWS_LIMIT,
    FINNHUB_NEWS_LIMIT,
    FINNHUB_SUMMARY_MAX_CHARS,
    MOCK_NEWS,
    MOCK_NEWS_NOTE,
    MOCK_NEWS_URL,
    NEWS_CATEGORY_RULES,
    NewsCategory,
)
from schemas.market import AggregateResult, NewsItem
from services.crypto import cryptopanic_service
from services.errors import ProviderError, ProviderNotConfigured
from services.finnhub import finnhub_news_service
from utils.common_helpers import iso_utc, parse_iso, unix_to_iso

logger = logging.getLogger(__name__)

Json = Dict[str, Any]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def classify_category(raw: Optional[str]) -> NewsCategory:
    lower = (raw or "").lower()
    for category, keywords in NEWS_CATEGORY_RULES:
        if any(k in lower for k in keywords):
            return category
    return "market"


# ---------------------------
# Normalizers
# ---------------------------
def item_id(prefix: str, raw_id: Any, url: str, headline: str) -> str:
    """Provider id when present, else a digest of url and headline."""
    if raw_id not in (None, ""):
        return f"{prefix}-{raw_id}"
    digest = hashlib.sha1(f"{url}\n{headline}".encode("utf-8")).hexdigest()[:12]
    return f"{prefix}-{digest}"


def normalize_finnhub(items: List[Json]) -> List[NewsItem]:
    out: List[NewsItem] = []
    for item in items[:FINNHUB_NEWS_LIMIT]:
        headline = str(item.get("headline") or "").strip()
        published = unix_to_iso(item.get("datetime"))
        if not headline or not published:
            continue
        url = str(item.get("url") or "")
        out.append(NewsItem(
            id=item_id("finnhub", item.get("id"), url, headline),
            headline=headline,
            summary=str(item.get("summary") or "")[:FINNHUB_SUMMARY_MAX_CHARS],
            source=str(item.get("source") or "Finnhub"),
            url=url,
            published_at=published,
            category=classify_category(item.get("category") or item.get("related") or ""),
            image_url=item.get("image") or None,
        ))
    return out


def normalize_cryptopanic(posts: List[Json]) -> List[NewsItem]:
    out: List[NewsItem] = []
    for post in posts[:CRYPTO_NEWS_LIMIT]:
        headline = str(post.get("title") or "").strip()
        published = parse_iso(post.get("published_at"))
        if not headline or published is None:
            continue
        source = (post.get("source") or {}).get("title") if isinstance(post.get("source"), dict) else None
        url = str(post.get("url") or "")
        out.append(NewsItem(
            id=item_id("crypto", post.get("id"), url, headline),
            headline=headline,
            summary="",
            source=source or "CryptoPanic",
            url=url,
            published_at=iso_utc(published),
            category="crypto",
        ))
    return out


def dedupe_sorted(items: List[NewsItem]) -> List[NewsItem]:
    """Newest first; on headline collision (case-insensitive, trimmed) the first one wins."""
    ordered = sorted(items, key=lambda n: parse_iso(n.published_at) or _EPOCH, reverse=True)
    seen = set()
    out: List[NewsItem] = []
    for n in ordered:
        key = n.headline.lower().strip()
        if key in seen:
            continue
        seen.add(key)
        out.append(n)
    return out


def mock_news(now: Optional[datetime] = None) -> List[NewsItem]:
    now = now or datetime.now(timezone.utc)
    return [
        NewsItem(
            id=f"mock-{i}",
            headline=headline,
            summary=MOCK_NEWS_NOTE,
            source="Mock",
            url=MOCK_NEWS_URL,
            published_at=iso_utc(now - timedelta(hours=hours_ago)),
            category=category,
        )
        for i, (headline, category, hours_ago) in enumerate(MOCK_NEWS, start=1)
    ]


# ---------------------------
# Sources
# ---------------------------
async def _finnhub_items() -> Tuple[List[NewsItem], Optional[str]]:
    try:
        raw = await finnhub_news_service.fetch_general_news("general")
    except ProviderNotConfigured:
        return [], "finnhub:not_configured"
    except ProviderError as e:
        logger.warning("news_finnhub_failed err=%s", e)
        return [], "finnhub:error"
    return normalize_finnhub(raw), None


async def _cryptopanic_items() -> Tuple[List[NewsItem], Optional[str]]:
    try:
        raw = await cryptopanic_service.fetch_hot_posts()
    except ProviderNotConfigured:
        return [], "cryptopanic:not_configured"
    except ProviderError as e:
        logger.warning("news_cryptopanic_failed err=%s", e)
        return [], "cryptopanic:error"
    return normalize_cryptopanic(raw), None


# ---------------------------
# Public API
# ---------------------------
async def aggregate_news() -> AggregateResult:
    (fh_items, fh_reason), (cp_items, cp_reason) = await asyncio.gather(
        _finnhub_items(), _cryptopanic_items()
    )
    reasons = [r for r in (fh_reason, cp_reason) if r]

    merged = fh_items + cp_items
    if not merged:
        logger.info("news_mock reasons=%s", ",".join(reasons) or "empty")
        return AggregateResult.degraded(mock_news(), reasons + ["mock"])

    items = dedupe_sorted(merged)
    logger.info("news_aggregated finnhub=%s crypto=%s kept=%s", len(fh_items), len(cp_items), len(items))
    return AggregateResult.from_reasons(items, reasons)
