import asyncio
import unittest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

from services.errors import ProviderError, ProviderNotConfigured
from services.news import news_aggregator as news


def _finnhub_item(i, headline, ts, **extra):
    item = {
        "id": i,
        "headline": headline,
        "summary": "s" * 300,
        "source": "Reuters",
        "url": f"https://example.com/{i}",
        "datetime": ts,
        "category": "top news",
        "image": "",
    }
    item.update(extra)
    return item


class CategoryTests(unittest.TestCase):
    def test_rules_in_order(self):
        self.assertEqual(news.classify_category("Bitcoin ETF"), "crypto")
        self.assertEqual(news.classify_category("forex"), "commodity")
        self.assertEqual(news.classify_category("economic data"), "economy")
        self.assertEqual(news.classify_category("Central Bank"), "fed_policy")
        self.assertEqual(news.classify_category("top news"), "market")
        self.assertEqual(news.classify_category(None), "market")


class NormalizeTests(unittest.TestCase):
    def test_finnhub_items(self):
        items = news.normalize_finnhub([_finnhub_item(7, "Stocks rally", 1_760_000_000, related="oil")])
        n = items[0]
        self.assertEqual(n.id, "finnhub-7")
        self.assertEqual(len(n.summary), 200)
        self.assertEqual(n.category, "market")
        self.assertIsNone(n.image_url)
        self.assertTrue(n.published_at.endswith("Z"))

    def test_finnhub_falls_back_to_related_for_category(self):
        items = news.normalize_finnhub([_finnhub_item(8, "Crude jumps", 1_760_000_000, category="", related="oil")])
        self.assertEqual(items[0].category, "commodity")

    def test_finnhub_items_without_id_get_distinct_stable_ids(self):
        raw = [_finnhub_item(None, "Stocks rally", 1_760_000_000), _finnhub_item(None, "Oil slides", 1_760_000_060)]
        for item in raw:
            item.pop("id")
        ids = [n.id for n in news.normalize_finnhub(raw)]

        self.assertEqual(len(set(ids)), 2)
        self.assertTrue(all(i.startswith("finnhub-") and "None" not in i for i in ids))
        self.assertEqual(ids, [n.id for n in news.normalize_finnhub(raw)])

    def test_finnhub_limit(self):
        raw = [_finnhub_item(i, f"h{i}", 1_760_000_000 + i) for i in range(40)]
        self.assertEqual(len(news.normalize_finnhub(raw)), 30)

    def test_cryptopanic_posts(self):
        posts = [
            {"id": 1, "title": "ETH upgrade", "url": "u", "source": {"title": "CoinDesk"},
             "published_at": "2026-10-19T03:00:00Z"},
            {"id": 2, "title": "BTC dips", "url": "u2", "published_at": "2026-10-19T02:00:00Z"},
        ]
        items = news.normalize_cryptopanic(posts)
        self.assertEqual([i.id for i in items], ["crypto-1", "crypto-2"])
        self.assertEqual(items[0].source, "CoinDesk")
        self.assertEqual(items[1].source, "CryptoPanic")
        self.assertTrue(all(i.category == "crypto" for i in items))


class DedupeTests(unittest.TestCase):
    def test_sorted_newest_first_and_first_occurrence_wins(self):
        items = news.normalize_finnhub([
            _finnhub_item(1, "Fed holds rates", 1_760_000_000),
            _finnhub_item(2, "  fed HOLDS rates ", 1_760_000_600),
            _finnhub_item(3, "Oil slides", 1_760_000_300),
        ])
        out = news.dedupe_sorted(items)
        self.assertEqual([n.id for n in out], ["finnhub-2", "finnhub-3"])


class AggregateNewsTests(unittest.TestCase):
    def test_no_sources_yields_mock(self):
        with patch(
            "services.finnhub.finnhub_news_service.fetch_general_news",
            AsyncMock(side_effect=ProviderNotConfigured("finnhub", "FINNHUB_API_KEY")),
        ), patch(
            "services.crypto.cryptopanic_service.fetch_hot_posts",
            AsyncMock(side_effect=ProviderNotConfigured("cryptopanic", "CRYPTOPANIC_API_KEY")),
        ):
            result = asyncio.run(news.aggregate_news())

        self.assertEqual(result.status, "degraded")
        self.assertEqual([n.id for n in result.data], [f"mock-{i}" for i in range(1, 6)])
        self.assertTrue(all(n.headline.startswith("[샘플]") for n in result.data))
        self.assertTrue(all(n.source == "Mock" for n in result.data))

    def test_one_source_failing_keeps_the_other(self):
        with patch(
            "services.finnhub.finnhub_news_service.fetch_general_news",
            AsyncMock(return_value=[_finnhub_item(1, "Stocks rally", 1_760_000_000)]),
        ), patch(
            "services.crypto.cryptopanic_service.fetch_hot_posts",
            AsyncMock(side_effect=ProviderError("cryptopanic", "HTTP 500")),
        ):
            result = asyncio.run(news.aggregate_news())

        self.assertEqual([n.id for n in result.data], ["finnhub-1"])
        self.assertEqual(result.reasons, ["cryptopanic:error"])

    def test_mock_timestamps_are_relative_to_now(self):
        now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        items = news.mock_news(now)
        self.assertEqual(items[0].published_at, "2026-10-19T11:00:00Z")
        self.assertEqual(items[-1].published_at, "2026-10-19T04:00:00Z")


if __name__ == "__main__":
    unittest.main()
