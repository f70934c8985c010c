# routers/market_routes.py
"""
Dashboard data endpoints. Every GET returns {data, updatedAt} (plus stale=true
when an older payload is served after a failed refresh) or 500 {error}.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from config.settings import get_settings
from middleware.rate_limit import limiter
from schemas.market import SummarizeRequest, SummarizeResponse
from services import serving
from services.calendar import calendar_aggregator
from services.errors import AggregationError, TranslationNotConfigured, TranslationUnavailable
from services.markets import market_aggregator
from services.markets.market_hours import get_all_market_statuses
from services.news import news_aggregator
from services.news.news_translate_service import summarize_news
from services.sentiment import sentiment_aggregator
from services.summary import summary_aggregator
from utils.common_helpers import iso_now

logger = logging.getLogger(__name__)

router = APIRouter()

SUMMARIZE_MISSING_FIELDS = "필수 파라미터 누락"
SUMMARIZE_NO_PROVIDER = "AI API 키가 설정되지 않았습니다."
SUMMARIZE_UNAVAILABLE = "번역 서비스를 일시적으로 사용할 수 없습니다."
SUMMARIZE_FAILED = "요약 처리 중 오류가 발생했습니다."


def _error(e: AggregationError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(e)})


@router.get("/markets")
async def get_markets():
    try:
        return await serving.serve_cached(
            "markets", serving.MARKETS_KEY, serving.markets_ttl(), market_aggregator.aggregate_markets
        )
    except AggregationError as e:
        return _error(e)


@router.get("/calendar")
async def get_calendar(tab: Optional[str] = Query("this_week")):
    from_date, to_date = calendar_aggregator.date_range_for_tab(tab)
    try:
        return await serving.serve_cached(
            "calendar",
            calendar_aggregator.cache_key(from_date, to_date),
            get_settings().ttl.calendar,
            lambda: calendar_aggregator.aggregate_calendar(from_date, to_date),
        )
    except AggregationError as e:
        return _error(e)


@router.get("/news")
async def get_news():
    try:
        return await serving.serve_cached(
            "news", serving.NEWS_KEY, get_settings().ttl.news, news_aggregator.aggregate_news
        )
    except AggregationError as e:
        return _error(e)


@router.get("/fear-greed")
async def get_fear_greed():
    try:
        return await serving.serve_cached(
            "fear_greed",
            serving.FEAR_GREED_KEY,
            get_settings().ttl.fear_greed,
            sentiment_aggregator.aggregate_sentiment,
        )
    except AggregationError as e:
        return _error(e)


@router.get("/summary")
async def get_summary():
    try:
        return await serving.serve_cached(
            "summary", serving.SUMMARY_KEY, get_settings().ttl.summary, summary_aggregator.aggregate_summary
        )
    except AggregationError as e:
        return _error(e)


@router.get("/market-status")
async def get_market_status():
    statuses = get_all_market_statuses()
    return {"data": [s.model_dump(mode="json") for s in statuses], "updatedAt": iso_now()}


@router.post("/news/summarize", response_model=SummarizeResponse, response_model_exclude_none=True)
@limiter.limit(lambda: get_settings().rate_limit_summarize)
async def post_news_summarize(request: Request, body: SummarizeRequest):
    if not body.news_id or not body.headline:
        return JSONResponse(
            status_code=400, content={"success": False, "error": SUMMARIZE_MISSING_FIELDS}
        )

    try:
        result = await summarize_news(body)
    except TranslationNotConfigured:
        return JSONResponse(status_code=503, content={"success": False, "error": SUMMARIZE_NO_PROVIDER})
    except TranslationUnavailable as e:
        logger.warning("news_summarize_unavailable id=%s err=%s", body.news_id, e)
        return JSONResponse(status_code=503, content={"success": False, "error": SUMMARIZE_UNAVAILABLE})
    except Exception:
        logger.exception("news_summarize_failed id=%s", body.news_id)
        return JSONResponse(status_code=500, content={"success": False, "error": SUMMARIZE_FAILED})

    return SummarizeResponse(success=True, data=result)
