from __future__ import annotations

from typing import Any, Generic, List, Literal, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, Field, field_validator

from config.market_catalog import AssetCategory, Impact, NewsCategory

T = TypeVar("T")

MarketStatusType = Literal["open", "pre_market", "after_market", "closed"]
CalendarTab = Literal["this_week", "this_month", "next_month"]


class AssetQuote(BaseModel):
    symbol: str
    name: str
    name_ko: str
    category: AssetCategory
    price: float = 0.0
    change: float = 0.0
    change_percent: float = 0.0
    sparkline: List[float] = Field(default_factory=list)
    updated_at: str


class EconomicEvent(BaseModel):
    id: str
    name: str
    name_ko: str
    datetime: str
    country: str = "US"
    impact: Impact
    actual: Optional[str] = None
    forecast: Optional[str] = None
    previous: Optional[str] = None
    unit: Optional[str] = None


class NewsItem(BaseModel):
    id: str
    headline: str
    summary: str = ""
    source: str
    url: str
    published_at: str
    category: NewsCategory
    image_url: Optional[str] = None


class SentimentReading(BaseModel):
    value: int = Field(ge=0, le=100)
    label: str
    label_ko: str
    timestamp: str
    previous_value: Optional[int] = None
    previous_label: Optional[str] = None


class MarketSummary(BaseModel):
    text: str = ""
    events: str = ""
    sentiment: str = ""
    date: str = ""


class MarketStatus(BaseModel):
    id: str
    name: str
    flag: str
    status: MarketStatusType
    status_label: str
    time_label: str = ""


class NewsSummaryResult(BaseModel):
    translated_headline: str
    korean_summary: str
    provider: Literal["gemini", "openai"]
    cached: bool = False


class SummarizeRequest(BaseModel):
    news_id: str = Field(
        default="", validation_alias=AliasChoices("newsId", "id", "news_id"), max_length=256
    )
    headline: str = Field(default="", max_length=1000)
    summary: str = Field(default="", max_length=5000)
    url: str = Field(default="", max_length=2048)

    @field_validator("news_id", "headline", "summary", "url")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()


class SummarizeResponse(BaseModel):
    success: bool
    data: Optional[NewsSummaryResult] = None
    error: Optional[str] = None


# ── Aggregation outcome ────────────────────────────────────────────────

AggregateStatus = Literal["ok", "degraded", "fail"]


class AggregateResult(BaseModel, Generic[T]):
    """
    Outcome of one aggregation cycle.

    ok:        every provider contributed.
    degraded:  usable data, but some branch failed or mock data was substituted
               (reasons lists which).
    fail:      nothing usable; the serving boundary falls back to stale cache.
    """

    status: AggregateStatus
    data: Optional[T] = None
    reasons: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def usable(self) -> bool:
        return self.status != "fail" and self.data is not None

    @classmethod
    def ok(cls, data: Any) -> "AggregateResult":
        return cls(status="ok", data=data)

    @classmethod
    def degraded(cls, data: Any, reasons: List[str]) -> "AggregateResult":
        return cls(status="degraded", data=data, reasons=list(reasons))

    @classmethod
    def fail(cls, error: str) -> "AggregateResult":
        return cls(status="fail", error=error)

    @classmethod
    def from_reasons(cls, data: Any, reasons: List[str]) -> "AggregateResult":
        return cls.degraded(data, reasons) if reasons else cls.ok(data)
