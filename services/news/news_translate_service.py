# services/news/news_translate_service.py
"""
Korean translation + 3-line summary of a single news article.

Results are cached per news id for a day. Gemini is tried first when its key is
set; OpenAI is the fallback (or the only provider when Gemini has no key).
"""
from __future__ import annotations

import logging
from typing import Optional

from config.settings import get_settings
from schemas.market import NewsSummaryResult, SummarizeRequest
from services.ai.llm_service import LLMService, get_llm_service
from services.cache.cache_backend import CacheBackend, get_cache
from services.errors import ProviderError, TranslationNotConfigured, TranslationUnavailable
from services.news.article_text import MAX_ARTICLE_CHARS, fetch_article_text

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "당신은 금융/투자 뉴스 전문 번역가입니다. 항상 JSON 형식으로만 응답합니다."

USER_PROMPT_TMPL = """아래 영어 뉴스를 한국어로 번역하고 요약해주세요.

{content}

다음 JSON 형식으로만 응답하세요 (다른 텍스트 없이):
{{
  "translatedHeadline": "번역된 제목",
  "koreanSummary": "한국어 3줄 요약. 투자자 관점에서 핵심만 간결하게. 각 문장은 마침표로 끝냅니다."
}}"""


def cache_key(news_id: str) -> str:
    return f"news-summary:{news_id}"


def build_user_prompt(headline: str, summary: str, article_text: Optional[str] = None) -> str:
    content = f"제목: {headline}\n요약: {summary}"
    if article_text:
        content += f"\n본문: {article_text[:MAX_ARTICLE_CHARS]}"
    return USER_PROMPT_TMPL.format(content=content)


async def summarize_news(
    req: SummarizeRequest,
    *,
    llm: Optional[LLMService] = None,
    cache: Optional[CacheBackend] = None,
) -> NewsSummaryResult:
    """
    Raises TranslationNotConfigured when no provider is configured (nothing is
    called) and TranslationUnavailable when every configured provider fails.
    """
    cache = cache if cache is not None else get_cache()
    key = cache_key(req.news_id)

    hit = cache.get(key, get_settings().ttl.news_summary)
    if isinstance(hit, dict):
        logger.info("news_summary_cache_hit id=%s", req.news_id)
        return NewsSummaryResult(**{**hit, "cached": True})

    llm = llm or get_llm_service()
    if not llm.configured:
        raise TranslationNotConfigured("no AI provider configured")

    article_text = await fetch_article_text(req.url)
    user = build_user_prompt(req.headline, req.summary, article_text)

    for client in llm.clients:
        try:
            data = await llm.generate_json(client, system=SYSTEM_PROMPT, user=user)
        except ProviderError as e:
            logger.warning("news_summary_provider_failed provider=%s err=%s", client.provider, e)
            continue

        headline_ko = str(data.get("translatedHeadline") or "").strip()
        summary_ko = str(data.get("koreanSummary") or "").strip()
        if not headline_ko or not summary_ko:
            logger.warning("news_summary_incomplete provider=%s", client.provider)
            continue

        result = NewsSummaryResult(
            translated_headline=headline_ko,
            korean_summary=summary_ko,
            provider=client.provider,
            cached=False,
        )
        cache.set(key, result.model_dump(mode="json", exclude={"cached"}))
        logger.info(
            "news_summary_done id=%s provider=%s article=%s",
            req.news_id, client.provider, bool(article_text),
        )
        return result

    raise TranslationUnavailable("all AI providers failed")
