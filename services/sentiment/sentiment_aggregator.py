# services/sentiment/sentiment_aggregator.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from config.market_catalog import SENTIMENT_LABELS_KO, SENTIMENT_NEUTRAL_KO
from schemas.market import AggregateResult, SentimentReading
from services.crypto import fear_greed_service
from services.errors import ProviderError
from utils.common_helpers import unix_to_iso

logger = logging.getLogger(__name__)


def label_ko(classification: Optional[str]) -> str:
    lower = (classification or "").lower()
    for needle, ko in SENTIMENT_LABELS_KO:
        if needle in lower:
            return ko
    return SENTIMENT_NEUTRAL_KO


def _int_value(v: Any) -> Optional[int]:
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return None


def reading_from_entries(entries: List[Dict[str, Any]]) -> Optional[SentimentReading]:
    """Newest entry is current; the one after it (if any) is the previous reading."""
    if not entries:
        return None
    current = entries[0]
    value = _int_value(current.get("value"))
    timestamp = unix_to_iso(current.get("timestamp"))
    if value is None or timestamp is None:
        return None

    previous = entries[1] if len(entries) > 1 else None
    label = str(current.get("value_classification") or "")
    return SentimentReading(
        value=max(0, min(100, value)),
        label=label,
        label_ko=label_ko(label),
        timestamp=timestamp,
        previous_value=_int_value(previous.get("value")) if previous else None,
        previous_label=previous.get("value_classification") if previous else None,
    )


async def aggregate_sentiment() -> AggregateResult:
    try:
        entries = await fear_greed_service.fetch_fear_greed_entries(limit=2)
    except ProviderError as e:
        logger.warning("sentiment_fetch_failed err=%s", e)
        return AggregateResult.fail(str(e))

    reading = reading_from_entries(entries)
    if reading is None:
        logger.warning("sentiment_empty entries=%s", len(entries))
        return AggregateResult.fail("no fear & greed data")
    return AggregateResult.ok(reading)
