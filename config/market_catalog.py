# config/market_catalog.py
"""
Static catalog data: tracked symbols, classification keyword tables and
Korean display dictionaries. Built once at import time and never mutated.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal, Mapping, Optional, Tuple

AssetCategory = Literal["stock_index", "crypto", "commodity", "forex", "bond"]
NewsCategory = Literal["market", "economy", "crypto", "commodity", "fed_policy"]
Impact = Literal["high", "medium", "low"]


@dataclass(frozen=True)
class AssetConfig:
    symbol: str
    yahoo_symbol: str  # empty for derived symbols
    name: str
    name_ko: str
    category: AssetCategory


# Declared order is the output order of the markets endpoint.
ASSETS: Tuple[AssetConfig, ...] = (
    # US equity indices
    AssetConfig("SPX", "^GSPC", "S&P 500", "S&P 500", "stock_index"),
    AssetConfig("NDX", "^IXIC", "NASDAQ", "나스닥", "stock_index"),
    AssetConfig("DJI", "^DJI", "DOW 30", "다우 30", "stock_index"),
    AssetConfig("VIX", "^VIX", "VIX", "공포지수", "stock_index"),

    # Crypto
    AssetConfig("BTC", "BTC-USD", "Bitcoin", "비트코인", "crypto"),
    AssetConfig("ETH", "ETH-USD", "Ethereum", "이더리움", "crypto"),
    AssetConfig("ETHBTC", "", "ETH/BTC", "ETH/BTC", "crypto"),
    AssetConfig("BTC.D", "", "BTC Dominance", "BTC 도미넌스", "crypto"),
    AssetConfig("USDT.D", "", "USDT Dominance", "USDT 도미넌스", "crypto"),
    AssetConfig("KIMP", "", "Tether Kimchi Premium", "테더 김프", "crypto"),
    AssetConfig("CBP", "", "Coinbase Premium", "코베 프리미엄", "crypto"),

    # Commodities
    AssetConfig("GOLD", "GC=F", "Gold", "금", "commodity"),
    AssetConfig("SILVER", "SI=F", "Silver", "은", "commodity"),
    AssetConfig("OIL", "CL=F", "Crude Oil WTI", "원유(WTI)", "commodity"),

    # FX
    AssetConfig("USDKRW", "KRW=X", "USD/KRW", "달러/원", "forex"),
    AssetConfig("EURUSD", "EURUSD=X", "EUR/USD", "유로/달러", "forex"),
    AssetConfig("USDJPY", "JPY=X", "USD/JPY", "달러/엔", "forex"),
    AssetConfig("DXY", "DX-Y.NYB", "DXY", "달러 인덱스", "forex"),

    # Bonds
    AssetConfig("US10Y", "^TNX", "US 10Y Yield", "미국 10년 국채", "bond"),
    AssetConfig("US2Y", "^IRX", "US 2Y Yield", "미국 2년 국채", "bond"),
)


# Symbol -> CoinGecko coin id
COINGECKO_IDS: Mapping[str, str] = MappingProxyType({
    "BTC": "bitcoin",
    "ETH": "ethereum",
})

# Symbols whose quote feeds the derived (phase two) computations
FX_RATE_SYMBOL = "USDKRW"
RATIO_SYMBOL = "ETHBTC"
RATIO_LEGS: Tuple[str, str] = ("ETH", "BTC")
DOMINANCE_KEYS: Mapping[str, str] = MappingProxyType({
    "BTC.D": "btc",
    "USDT.D": "usdt",
})
COINGECKO_SPARKLINE_STEP = 8

# Sparkline backfill window
SPARKLINE_PERIOD = "1mo"
SPARKLINE_INTERVAL = "1d"


# ---------------------------
# Economic calendar
# ---------------------------
HIGH_IMPACT_KEYWORDS: Tuple[str, ...] = (
    "cpi", "ppi", "nonfarm", "non-farm", "fomc", "gdp", "unemployment rate", "pce",
)
MEDIUM_IMPACT_KEYWORDS: Tuple[str, ...] = (
    "ism", "retail sales", "consumer confidence", "jobless claims", "durable goods",
)
PROVIDER_IMPACT_CODES: Mapping[str, Impact] = MappingProxyType({
    "high": "high", "3": "high",
    "medium": "medium", "2": "medium",
    "low": "low", "1": "low",
})
IMPACT_ORDER: Mapping[str, int] = MappingProxyType({"high": 0, "medium": 1, "low": 2})

# Order matters: the first key contained in the event name wins.
EVENT_NAME_KO: Tuple[Tuple[str, str], ...] = (
    ("CPI", "소비자물가지수"),
    ("Consumer Price Index", "소비자물가지수"),
    ("PPI", "생산자물가지수"),
    ("Producer Price Index", "생산자물가지수"),
    ("Core PCE", "핵심 개인소비지출"),
    ("PCE Price Index", "개인소비지출 물가지수"),
    ("Non-Farm Payrolls", "비농업 고용지수"),
    ("Nonfarm Payrolls", "비농업 고용지수"),
    ("Unemployment Rate", "실업률"),
    ("Initial Jobless Claims", "신규 실업수당 청구건수"),
    ("FOMC", "FOMC 금리 결정"),
    ("Federal Funds Rate", "FOMC 금리 결정"),
    ("FOMC Minutes", "FOMC 의사록"),
    ("GDP", "GDP 성장률"),
    ("Gross Domestic Product", "GDP 성장률"),
    ("ISM Manufacturing PMI", "ISM 제조업 PMI"),
    ("ISM Services PMI", "ISM 서비스업 PMI"),
    ("ISM Non-Manufacturing PMI", "ISM 서비스업 PMI"),
    ("Consumer Confidence", "소비자 신뢰지수"),
    ("CB Consumer Confidence", "소비자 신뢰지수"),
    ("Michigan Consumer Sentiment", "미시간 소비자심리지수"),
    ("Retail Sales", "소매판매"),
    ("Fed Chair", "연준 의장 연설"),
    ("Fed Speech", "연준 이사 연설"),
    ("Durable Goods Orders", "내구재 주문"),
    ("Housing Starts", "주택착공건수"),
    ("Existing Home Sales", "기존 주택 판매"),
    ("Industrial Production", "산업생산"),
    ("Empire State Manufacturing", "엠파이어스테이트 제조업지수"),
    ("Philadelphia Fed Manufacturing", "필라델피아 연은 제조업지수"),
)

# name, name_ko, impact, actual, forecast, previous
MOCK_EVENT_POOL: Tuple[Tuple[str, str, Impact, Optional[str], Optional[str], Optional[str]], ...] = (
    ("ISM Manufacturing PMI", "ISM 제조업 PMI", "high", "49.2", "49.5", "49.3"),
    ("JOLTS Job Openings", "구인건수(JOLTS)", "medium", None, "8.85M", "8.79M"),
    ("ADP Nonfarm Employment", "ADP 비농업 고용", "medium", None, "150K", "143K"),
    ("ISM Services PMI", "ISM 서비스업 PMI", "high", None, "53.0", "52.8"),
    ("Non-Farm Payrolls", "비농업 고용지수", "high", None, "170K", "256K"),
    ("Unemployment Rate", "실업률", "high", None, "4.1%", "4.1%"),
    ("Consumer Price Index (CPI)", "소비자물가지수", "high", None, "3.1%", "3.2%"),
    ("Core CPI MoM", "근원 소비자물가(MoM)", "high", None, "0.3%", "0.2%"),
    ("Initial Jobless Claims", "신규 실업수당 청구건수", "medium", None, "215K", "218K"),
    ("Producer Price Index (PPI)", "생산자물가지수", "high", None, "0.2%", "0.2%"),
    ("Retail Sales MoM", "소매판매", "medium", None, "0.3%", "0.4%"),
    ("FOMC Rate Decision", "FOMC 금리 결정", "high", None, "4.50%", "4.50%"),
    ("FOMC Minutes", "FOMC 의사록", "high", None, None, "-"),
    ("GDP Growth Rate QoQ", "GDP 성장률", "high", None, "3.2%", "3.1%"),
    ("Core PCE Price Index", "핵심 개인소비지출", "high", None, "2.8%", "2.8%"),
    ("CB Consumer Confidence", "소비자 신뢰지수", "medium", None, "105.0", "104.1"),
    ("Michigan Consumer Sentiment", "미시간 소비자심리지수", "medium", None, "71.7", "71.1"),
    ("Durable Goods Orders", "내구재 주문", "medium", None, "-0.5%", "-2.0%"),
    ("Existing Home Sales", "기존 주택 판매", "low", None, "4.20M", "4.24M"),
    ("Fed Chair Speech", "연준 의장 연설", "high", None, None, "-"),
)
MOCK_EVENT_TIMES: Tuple[str, ...] = ("13:30", "14:00", "15:00", "15:45", "19:00", "21:00")


# ---------------------------
# News
# ---------------------------
# Checked in order; first matching rule wins.
NEWS_CATEGORY_RULES: Tuple[Tuple[NewsCategory, Tuple[str, ...]], ...] = (
    ("crypto", ("crypto", "bitcoin")),
    ("commodity", ("forex", "commodity", "oil", "gold")),
    ("economy", ("economy", "economic")),
    ("fed_policy", ("fed", "fomc", "policy", "central bank")),
)
FINNHUB_NEWS_LIMIT = 30
FINNHUB_SUMMARY_MAX_CHARS = 200
CRYPTO_NEWS_LIMIT = 10

MOCK_NEWS_NOTE = "FINNHUB_API_KEY를 설정하면 실제 뉴스 기사와 링크가 표시됩니다."
MOCK_NEWS_URL = "https://finnhub.io/register"
# headline, category, hours before now
MOCK_NEWS: Tuple[Tuple[str, NewsCategory, int], ...] = (
    ("[샘플] Fed Signals Potential Rate Cut in Coming Months", "fed_policy", 1),
    ("[샘플] S&P 500 Hits New All-Time High Amid Tech Rally", "market", 2),
    ("[샘플] Bitcoin Surges Past $100K on Institutional Demand", "crypto", 3),
    ("[샘플] Gold Prices Rise as Dollar Weakens", "commodity", 5),
    ("[샘플] US GDP Growth Exceeds Expectations at 3.2%", "economy", 8),
)


# ---------------------------
# Sentiment
# ---------------------------
# Substring rules on the lowercased English classification; first match wins.
SENTIMENT_LABELS_KO: Tuple[Tuple[str, str], ...] = (
    ("extreme fear", "극심한 공포"),
    ("extreme greed", "극심한 탐욕"),
    ("fear", "공포"),
    ("greed", "탐욕"),
)
SENTIMENT_NEUTRAL_KO = "중립"


# ---------------------------
# Localized error messages (HTTP boundary)
# ---------------------------
ERROR_MESSAGES: Mapping[str, str] = MappingProxyType({
    "markets": "시세 데이터를 불러올 수 없습니다.",
    "calendar": "경제 일정을 불러올 수 없습니다.",
    "news": "뉴스를 불러올 수 없습니다.",
    "fear_greed": "공포/탐욕 지수를 불러올 수 없습니다.",
    "summary": "시장 요약을 불러올 수 없습니다.",
})
