# services/markets/market_hours.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from schemas.market import MarketStatus

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class ExchangeHours:
    id: str
    name: str
    flag: str
    tz: str
    regular_open: str  # local HH:MM
    regular_close: str
    pre_market_open: Optional[str] = None
    after_market_close: Optional[str] = None
    is_24h: bool = False
    weekend_closed: bool = True


EXCHANGES: Tuple[ExchangeHours, ...] = (
    ExchangeHours("us", "미국", "🇺🇸", "America/New_York", "09:30", "16:00",
                  pre_market_open="04:00", after_market_close="20:00"),
    ExchangeHours("kr", "한국", "🇰🇷", "Asia/Seoul", "09:00", "15:30"),
    ExchangeHours("crypto", "크립토", "🪙", "UTC", "00:00", "23:59",
                  is_24h=True, weekend_closed=False),
    ExchangeHours("eu", "유럽", "🇪🇺", "Europe/London", "08:00", "16:30"),
)


def _to_minutes(hhmm: str) -> int:
    h, m = hhmm.split(":")
    return int(h) * 60 + int(m)


def format_minutes(diff: int) -> str:
    """125 -> '2시간 5분', 120 -> '2시간', 5 -> '5분'; non-positive -> ''."""
    if diff <= 0:
        return ""
    h, m = divmod(diff, 60)
    if h == 0:
        return f"{m}분"
    if m == 0:
        return f"{h}시간"
    return f"{h}시간 {m}분"


def exchange_status(ex: ExchangeHours, now: datetime) -> MarketStatus:
    def _status(status: str, label: str, time_label: str = "") -> MarketStatus:
        return MarketStatus(
            id=ex.id, name=ex.name, flag=ex.flag,
            status=status, status_label=label, time_label=time_label,
        )

    if ex.is_24h:
        return _status("open", "24/7 개장")

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(ZoneInfo(ex.tz))
    current = local.hour * 60 + local.minute
    open_min = _to_minutes(ex.regular_open)
    close_min = _to_minutes(ex.regular_close)

    # weekday(): Mon=0 .. Sun=6
    if ex.weekend_closed and local.weekday() >= 5:
        days_to_monday = 2 if local.weekday() == 5 else 1
        remain = days_to_monday * MINUTES_PER_DAY - current + open_min
        return _status("closed", "마감 (주말)", f"개장까지 {format_minutes(remain)}")

    if open_min <= current < close_min:
        return _status("open", "개장 중", f"마감까지 {format_minutes(close_min - current)}")

    if ex.pre_market_open:
        pre_open = _to_minutes(ex.pre_market_open)
        if pre_open <= current < open_min:
            return _status("pre_market", "프리마켓", f"정규장까지 {format_minutes(open_min - current)}")

    if ex.after_market_close:
        after_close = _to_minutes(ex.after_market_close)
        if close_min <= current < after_close:
            return _status("after_market", "애프터마켓", f"종료까지 {format_minutes(after_close - current)}")

    next_session = _to_minutes(ex.pre_market_open) if ex.pre_market_open else open_min
    if current >= close_min:
        remain = MINUTES_PER_DAY - current + next_session
    else:
        remain = next_session - current
    return _status("closed", "마감", f"개장까지 {format_minutes(remain)}")


def get_all_market_statuses(now: Optional[datetime] = None) -> List[MarketStatus]:
    current = now or datetime.now(timezone.utc)
    return [exchange_status(ex, current) for ex in EXCHANGES]


def is_us_market_open(now: Optional[datetime] = None) -> bool:
    """True during the US regular session; drives the markets cache TTL."""
    current = now or datetime.now(timezone.utc)
    return exchange_status(EXCHANGES[0], current).status == "open"
