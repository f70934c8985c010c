# services/calendar/calendar_aggregator.py
from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from config.market_catalog import (
    EVENT_NAME_KO,
    HIGH_IMPACT_KEYWORDS,
    IMPACT_ORDER,
    MEDIUM_IMPACT_KEYWORDS,
    MOCK_EVENT_POOL,
    MOCK_EVENT_TIMES,
    PROVIDER_IMPACT_CODES,
    Impact,
)
from schemas.market import AggregateResult, EconomicEvent
from services.errors import ProviderError, ProviderNotConfigured
from services.finnhub import finnhub_calendar_service as fh_calendar
from utils.common_helpers import parse_iso

logger = logging.getLogger(__name__)

Json = Dict[str, Any]

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})")


# ---------------------------
# Classification / localization
# ---------------------------
def classify_impact(provider_impact: Any, name: Optional[str]) -> Impact:
    """Explicit provider code wins; otherwise keyword match on the event name."""
    code = str(provider_impact).strip().lower() if provider_impact is not None else ""
    if code in PROVIDER_IMPACT_CODES:
        return PROVIDER_IMPACT_CODES[code]

    n = (name or "").lower()
    if any(k in n for k in HIGH_IMPACT_KEYWORDS):
        return "high"
    if any(k in n for k in MEDIUM_IMPACT_KEYWORDS):
        return "medium"
    return "low"


def localize_event_name(name: str) -> str:
    n = (name or "").lower()
    for key, ko in EVENT_NAME_KO:
        if key.lower() in n:
            return ko
    return name


def _opt_str(v: Any) -> Optional[str]:
    return None if v is None else str(v)


def event_datetime(row: Json) -> Optional[str]:
    """
    '{date}T{HH:MM}:00Z'. Accepts a bare 'HH:MM'/'HH:MM:SS' time next to a
    'date' field, or a full 'YYYY-MM-DD HH:MM:SS' timestamp in 'time'.
    """
    raw_date = str(row.get("date") or "").strip()[:10]
    raw_time = str(row.get("time") or "").strip()

    if len(raw_time) > 8 and raw_time[:4].isdigit():
        dt = parse_iso(raw_time.replace(" ", "T"))
        if dt is not None:
            return f"{dt.strftime('%Y-%m-%d')}T{dt.strftime('%H:%M')}:00Z"

    if not raw_date:
        return None
    m = _HHMM.match(raw_time)
    if m:
        return f"{raw_date}T{int(m.group(1)):02d}:{m.group(2)}:00Z"
    return f"{raw_date}T00:00:00Z"


def normalize_events(rows: List[Json]) -> List[EconomicEvent]:
    """US rows only; ids keep the index among US rows."""
    out: List[EconomicEvent] = []
    us_rows = [r for r in rows if r.get("country") == "US"]
    for idx, r in enumerate(us_rows):
        name = str(r.get("event") or "")
        dt = event_datetime(r)
        if dt is None:
            logger.debug("calendar_row_skipped reason=no_date event=%s", name)
            continue
        out.append(EconomicEvent(
            id=f"finnhub-{idx}-{name}",
            name=name,
            name_ko=localize_event_name(name),
            datetime=dt,
            country="US",
            impact=classify_impact(r.get("impact"), name),
            actual=_opt_str(r.get("actual")),
            forecast=_opt_str(r.get("estimate")),
            previous=_opt_str(r.get("prev")),
            unit=str(r.get("unit") or ""),
        ))
    return sort_events(out)


def _sort_key(e: EconomicEvent) -> Tuple[float, int]:
    dt = parse_iso(e.datetime)
    ts = dt.timestamp() if dt is not None else 0.0
    return ts, IMPACT_ORDER.get(e.impact, len(IMPACT_ORDER))


def sort_events(events: List[EconomicEvent]) -> List[EconomicEvent]:
    return sorted(events, key=_sort_key)


# ---------------------------
# Mock fallback
# ---------------------------
def mock_calendar(from_date: str, to_date: str) -> List[EconomicEvent]:
    """Deterministic stand-in dataset spread across [from_date, to_date]."""
    start = date.fromisoformat(from_date)
    end = date.fromisoformat(to_date)
    total_days = max(1, round((end - start).days))

    if total_days <= 7:
        pool = MOCK_EVENT_POOL[:8]
    elif total_days <= 31:
        pool = MOCK_EVENT_POOL[:15]
    else:
        pool = MOCK_EVENT_POOL

    events: List[EconomicEvent] = []
    n = len(pool)
    for idx, (name, name_ko, impact, actual, forecast, previous) in enumerate(pool):
        # round half up
        offset = int(idx / n * total_days + 0.5)
        day = start + timedelta(days=offset)
        time_of_day = MOCK_EVENT_TIMES[idx % len(MOCK_EVENT_TIMES)]
        events.append(EconomicEvent(
            id=f"mock-{from_date}-{idx}",
            name=name,
            name_ko=name_ko,
            datetime=f"{day.isoformat()}T{time_of_day}:00Z",
            country="US",
            impact=impact,
            actual=actual,
            forecast=forecast,
            previous=previous,
        ))
    return sorted(events, key=lambda e: parse_iso(e.datetime) or datetime.min.replace(tzinfo=timezone.utc))


# ---------------------------
# Tabs
# ---------------------------
def _month_bounds(year: int, month: int) -> Tuple[date, date]:
    first = date(year, month, 1)
    nxt = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return first, nxt - timedelta(days=1)


def date_range_for_tab(tab: Optional[str], today: Optional[date] = None) -> Tuple[str, str]:
    """this_week = Monday..Sunday; this_month / next_month = calendar month. Unknown tabs -> this_week."""
    today = today or date.today()
    if tab == "this_month":
        a, b = _month_bounds(today.year, today.month)
    elif tab == "next_month":
        y, m = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
        a, b = _month_bounds(y, m)
    else:
        a = today - timedelta(days=today.weekday())
        b = a + timedelta(days=6)
    return a.isoformat(), b.isoformat()


def cache_key(from_date: str, to_date: str) -> str:
    return f"calendar-{from_date}-{to_date}"


# ---------------------------
# Public API
# ---------------------------
async def aggregate_calendar(from_date: str, to_date: str) -> AggregateResult:
    try:
        rows = await fh_calendar.fetch_economic_calendar(from_date, to_date)
    except ProviderNotConfigured as e:
        logger.info("calendar_mock reason=not_configured err=%s", e)
        return AggregateResult.degraded(mock_calendar(from_date, to_date), ["finnhub:not_configured", "mock"])
    except ProviderError as e:
        logger.warning("calendar_mock reason=provider_error err=%s", e)
        return AggregateResult.degraded(mock_calendar(from_date, to_date), ["finnhub:error", "mock"])

    events = normalize_events(rows)
    logger.info("calendar_aggregated from=%s to=%s rows=%s us=%s", from_date, to_date, len(rows), len(events))
    return AggregateResult.ok(events)
