# services/summary/summary_generator.py
"""
Template-based Korean market summary.

Pure functions only: everything is derived from the inputs plus `now`, and any
missing input degrades to an empty sentence instead of raising.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence
from zoneinfo import ZoneInfo

from schemas.market import AssetQuote, EconomicEvent, MarketSummary, SentimentReading
from utils.common_helpers import parse_iso

KST = ZoneInfo("Asia/Seoul")
WEEKDAYS_KO = ("월", "화", "수", "목", "금", "토", "일")

TREND_LABELS: Dict[str, str] = {
    "rising": "상승세",
    "falling": "하락세",
    "flat": "보합세",
    "mixed": "혼조세",
    "collecting": "데이터 수집 중",
}

MOOD_TEXT: Dict[str, str] = {
    "very_optimistic": "시장 심리가 매우 낙관적입니다.",
    "optimistic": "시장 심리가 낙관적입니다.",
    "neutral": "시장 심리가 중립적입니다.",
    "subdued": "시장 심리가 위축되어 있습니다.",
    "extreme_fear": "시장에 극심한 공포가 감지됩니다.",
}

MOVER_SYMBOLS = ("BTC", "GOLD", "OIL")
MAX_MOVERS = 2
MAX_WEEK_EVENTS = 3


# ---------------------------
# Building blocks
# ---------------------------
def overall_trend(spx: Optional[AssetQuote], ndx: Optional[AssetQuote]) -> str:
    if spx is None or ndx is None:
        return "collecting"
    a, b = spx.change_percent, ndx.change_percent
    if a > 0.1 and b > 0.1:
        return "rising"
    if a < -0.1 and b < -0.1:
        return "falling"
    if abs(a) < 0.1 and abs(b) < 0.1:
        return "flat"
    return "mixed"


def describe_move(pct: float) -> str:
    mag = abs(pct)
    up = pct > 0
    if mag >= 3:
        return "급등" if up else "급락"
    if mag >= 1:
        return "큰 폭 상승" if up else "큰 폭 하락"
    if mag >= 0.5:
        return "상승" if up else "하락"
    if mag >= 0.1:
        return "소폭 상승" if up else "소폭 하락"
    return "보합"


def topic_particle(word: str) -> str:
    """은 after a final consonant (batchim), 는 otherwise; non-Hangul endings take 는."""
    if not word:
        return "는"
    code = ord(word[-1])
    if 0xAC00 <= code <= 0xD7A3:
        return "은" if (code - 0xAC00) % 28 else "는"
    return "는"


def format_price(q: AssetQuote) -> str:
    if q.symbol == "USDKRW":
        return f"₩{q.price:,.2f}"
    if q.price >= 100:
        return f"${q.price:,.0f}"
    return f"${q.price:,.2f}"


def format_change(q: AssetQuote) -> str:
    sign = "+" if q.change_percent >= 0 else ""
    return f"{sign}{q.change_percent:.2f}%"


def mood_bucket(value: int) -> str:
    if value >= 75:
        return "very_optimistic"
    if value >= 55:
        return "optimistic"
    if value >= 45:
        return "neutral"
    if value >= 25:
        return "subdued"
    return "extreme_fear"


def format_date_ko(now: datetime) -> str:
    local = now.astimezone(KST)
    return f"{local.month}/{local.day} ({WEEKDAYS_KO[local.weekday()]})"


# ---------------------------
# Sections
# ---------------------------
def narrative_text(markets: Sequence[AssetQuote]) -> str:
    by_symbol = {q.symbol: q for q in markets}
    spx, ndx = by_symbol.get("SPX"), by_symbol.get("NDX")

    text = ""
    if spx is not None and ndx is not None:
        trend = TREND_LABELS[overall_trend(spx, ndx)]
        text += (
            f"미국 증시는 S&P 500 {format_change(spx)}, 나스닥 {format_change(ndx)}으로 "
            f"{trend}를 보이고 있습니다. "
        )

    movers = [by_symbol[s] for s in MOVER_SYMBOLS if s in by_symbol]
    movers.sort(key=lambda q: abs(q.change_percent), reverse=True)
    parts = [
        f"{q.name_ko}{topic_particle(q.name_ko)} {format_price(q)} ({format_change(q)})로 "
        f"{describe_move(q.change_percent)}"
        for q in movers[:MAX_MOVERS]
    ]
    if parts:
        text += ", ".join(parts) + "했습니다. "

    fx = by_symbol.get("USDKRW")
    if fx is not None:
        text += f"달러/원 환율은 {format_price(fx)} ({format_change(fx)})입니다."

    return text.strip()


def _week_window(now: datetime):
    """Sunday 00:00 through the following Sunday 00:00 in now's timezone."""
    start = (now - timedelta(days=(now.weekday() + 1) % 7)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return start, start + timedelta(days=7)


def events_text(events: Iterable[EconomicEvent], now: datetime) -> str:
    start, end = _week_window(now)
    picked: List[str] = []
    for e in events:
        if e.impact != "high":
            continue
        dt = parse_iso(e.datetime)
        if dt is None or not (start <= dt < end):
            continue
        local = dt.astimezone(KST)
        picked.append(f"{e.name_ko} ({local.month}/{local.day})")
        if len(picked) >= MAX_WEEK_EVENTS:
            break
    return f"이번 주 주요 일정: {', '.join(picked)}" if picked else ""


def sentiment_text(reading: Optional[SentimentReading]) -> str:
    if reading is None:
        return ""
    mood = MOOD_TEXT[mood_bucket(reading.value)]
    return f"공포/탐욕 지수: {reading.value} ({reading.label_ko}) — {mood}"


def generate_summary(
    markets: Sequence[AssetQuote],
    events: Sequence[EconomicEvent],
    sentiment: Optional[SentimentReading],
    now: Optional[datetime] = None,
) -> MarketSummary:
    now = now or datetime.now(timezone.utc).astimezone()
    if now.tzinfo is None:
        now = now.astimezone()
    return MarketSummary(
        text=narrative_text(markets),
        events=events_text(events, now),
        sentiment=sentiment_text(sentiment),
        date=format_date_ko(now),
    )
