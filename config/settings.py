# config/settings.py
"""
Runtime settings read from the environment (and .env when present).

Every provider credential is optional. A missing key degrades that provider's
contribution to empty/mock data instead of failing the process.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class CacheTTL:
    markets: int = 5 * 60
    markets_closed: int = 30 * 60
    calendar: int = 60 * 60
    news: int = 15 * 60
    fear_greed: int = 60 * 60
    summary: int = 10 * 60
    news_summary: int = 24 * 60 * 60

    @staticmethod
    def from_env() -> "CacheTTL":
        return CacheTTL(
            markets=_env_int("TTL_MARKETS_SEC", 300),
            markets_closed=_env_int("TTL_MARKETS_CLOSED_SEC", 1800),
            calendar=_env_int("TTL_CALENDAR_SEC", 3600),
            news=_env_int("TTL_NEWS_SEC", 900),
            fear_greed=_env_int("TTL_FEAR_GREED_SEC", 3600),
            summary=_env_int("TTL_SUMMARY_SEC", 600),
            news_summary=_env_int("TTL_NEWS_SUMMARY_SEC", 86400),
        )


@dataclass(frozen=True)
class Settings:
    # Provider credentials
    finnhub_api_key: str = ""
    coingecko_api_key: str = ""
    cryptopanic_api_key: str = ""

    # AI translation
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    ai_temperature: float = 0.3
    ai_max_tokens: int = 500

    # Timeouts (seconds)
    http_timeout_s: float = 8.0
    ai_timeout_s: float = 15.0
    article_timeout_s: float = 5.0
    provider_concurrency: int = 8

    ttl: CacheTTL = field(default_factory=CacheTTL)

    # HTTP surface
    cors_origins: Tuple[str, ...] = ("http://localhost:3000",)
    rate_limit_summarize: str = "20/minute"

    @staticmethod
    def from_env() -> "Settings":
        origins = os.getenv("CORS_ORIGINS") or "http://localhost:3000"
        return Settings(
            finnhub_api_key=os.getenv("FINNHUB_API_KEY", ""),
            coingecko_api_key=os.getenv("COINGECKO_API_KEY", ""),
            cryptopanic_api_key=os.getenv("CRYPTOPANIC_API_KEY", ""),

            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_model=os.getenv("GEMINI_MODEL") or "gemini-2.0-flash",
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL") or "gpt-4o-mini",
            ai_temperature=_env_float("AI_TEMPERATURE", 0.3),
            ai_max_tokens=_env_int("AI_MAX_TOKENS", 500),

            http_timeout_s=_env_float("HTTP_TIMEOUT_S", 8.0),
            ai_timeout_s=_env_float("AI_TIMEOUT_S", 15.0),
            article_timeout_s=_env_float("ARTICLE_TIMEOUT_S", 5.0),
            provider_concurrency=max(1, _env_int("PROVIDER_CONCURRENCY", 8)),

            ttl=CacheTTL.from_env(),

            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            rate_limit_summarize=os.getenv("RATE_LIMIT_SUMMARIZE", "20/minute"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
