import asyncio
import unittest
from unittest.mock import AsyncMock, patch

from services.errors import ProviderError
from services.sentiment import sentiment_aggregator as sentiment


class LabelTests(unittest.TestCase):
    def test_korean_labels(self):
        self.assertEqual(sentiment.label_ko("Extreme Fear"), "극심한 공포")
        self.assertEqual(sentiment.label_ko("Extreme Greed"), "극심한 탐욕")
        self.assertEqual(sentiment.label_ko("Fear"), "공포")
        self.assertEqual(sentiment.label_ko("Greed"), "탐욕")
        self.assertEqual(sentiment.label_ko("Neutral"), "중립")
        self.assertEqual(sentiment.label_ko(None), "중립")


class ReadingTests(unittest.TestCase):
    def test_current_and_previous(self):
        reading = sentiment.reading_from_entries([
            {"value": "72", "value_classification": "Greed", "timestamp": "1760832000"},
            {"value": "64", "value_classification": "Greed", "timestamp": "1760745600"},
        ])
        self.assertEqual(reading.value, 72)
        self.assertEqual(reading.label_ko, "탐욕")
        self.assertEqual(reading.timestamp, "2025-10-19T00:00:00Z")
        self.assertEqual((reading.previous_value, reading.previous_label), (64, "Greed"))

    def test_single_entry_has_no_previous(self):
        reading = sentiment.reading_from_entries([
            {"value": "20", "value_classification": "Extreme Fear", "timestamp": "1760832000"},
        ])
        self.assertIsNone(reading.previous_value)
        self.assertIsNone(reading.previous_label)

    def test_empty_or_unparseable(self):
        self.assertIsNone(sentiment.reading_from_entries([]))
        self.assertIsNone(sentiment.reading_from_entries([{"value": "n/a", "timestamp": "1"}]))


class AggregateSentimentTests(unittest.TestCase):
    def test_provider_error_is_a_failure_not_mock(self):
        with patch(
            "services.crypto.fear_greed_service.fetch_fear_greed_entries",
            AsyncMock(side_effect=ProviderError("alternative.me", "HTTP 502")),
        ):
            result = asyncio.run(sentiment.aggregate_sentiment())
        self.assertEqual(result.status, "fail")
        self.assertFalse(result.usable)

    def test_no_entries_is_a_failure(self):
        with patch(
            "services.crypto.fear_greed_service.fetch_fear_greed_entries",
            AsyncMock(return_value=[]),
        ):
            result = asyncio.run(sentiment.aggregate_sentiment())
        self.assertEqual(result.status, "fail")


if __name__ == "__main__":
    unittest.main()
