import unittest

import pandas as pd

from services import yahoo_service
from services.news.article_text import extract_main_text
from utils.common_helpers import parse_json_strict, pct_premium


class YahooParsingTests(unittest.TestCase):
    def test_quote_with_change_fields(self):
        q = yahoo_service.parse_quote({
            "regularMarketPrice": 5000.0,
            "regularMarketChange": 50.0,
            "regularMarketChangePercent": 1.01,
        })
        self.assertEqual(q, {"price": 5000.0, "change": 50.0, "change_percent": 1.01})

    def test_quote_derives_change_from_previous_close(self):
        q = yahoo_service.parse_quote({"regularMarketPrice": 102.0, "regularMarketPreviousClose": 100.0})
        self.assertAlmostEqual(q["change"], 2.0)
        self.assertAlmostEqual(q["change_percent"], 2.0)

    def test_quote_without_price_raises(self):
        with self.assertRaises(ValueError):
            yahoo_service.parse_quote({"regularMarketChange": 1.0})

    def test_closes_from_multiindex_history(self):
        idx = pd.MultiIndex.from_tuples(
            [("GC=F", "2026-10-02"), ("GC=F", "2026-10-01"), ("GC=F", "2026-10-03")],
            names=["symbol", "date"],
        )
        df = pd.DataFrame({"close": [2390.0, 2380.0, float("nan")]}, index=idx)
        self.assertEqual(yahoo_service.closes_from_history(df, "GC=F"), [2380.0, 2390.0])

    def test_closes_from_empty_history(self):
        self.assertEqual(yahoo_service.closes_from_history(pd.DataFrame(), "GC=F"), [])
        self.assertEqual(yahoo_service.closes_from_history({"GC=F": "No data found"}, "GC=F"), [])


class ArticleTextTests(unittest.TestCase):
    def test_prefers_article_paragraphs(self):
        long_a = "Federal Reserve officials kept the benchmark rate unchanged on Wednesday."
        long_b = "Markets had priced in a hold, and Treasury yields barely moved afterwards."
        html = f"""
        <html><body>
          <p>Subscribe to our newsletter for the latest market updates today!</p>
          <article>
            <p>{long_a}</p>
            <p>Short one.</p>
            <script>var x = 1;</script>
            <p>{long_b}</p>
          </article>
        </body></html>
        """
        self.assertEqual(extract_main_text(html), f"{long_a}\n{long_b}")

    def test_cap(self):
        html = "<p>" + ("word " * 2000) + "</p>"
        self.assertEqual(len(extract_main_text(html)), 3000)


class HelperTests(unittest.TestCase):
    def test_pct_premium(self):
        self.assertAlmostEqual(pct_premium(1428.0, 1400.0), 2.0)
        self.assertIsNone(pct_premium(None, 1400.0))
        self.assertIsNone(pct_premium(1428.0, 0.0))

    def test_parse_json_strict(self):
        self.assertEqual(parse_json_strict('```json\n{"a": 1}\n```'), {"a": 1})
        self.assertEqual(parse_json_strict('Here you go: {"a": 2}'), {"a": 2})
        with self.assertRaises(ValueError):
            parse_json_strict("[1, 2]")


if __name__ == "__main__":
    unittest.main()
