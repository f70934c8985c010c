import asyncio
import unittest
from unittest.mock import AsyncMock, patch

from config.market_catalog import ASSETS
from services.errors import ProviderError
from services.markets import market_aggregator as agg

_QUOTES = {
    "^GSPC": {"price": 5000.0, "change": 50.0, "change_percent": 1.0},
    "KRW=X": {"price": 1400.0, "change": 5.0, "change_percent": 0.36},
    "BTC-USD": {"price": 99000.0, "change": 900.0, "change_percent": 0.9},
    "ETH-USD": {"price": 2900.0, "change": 10.0, "change_percent": 0.3},
    "GC=F": {"price": 2400.0, "change": -12.0, "change_percent": -0.5},
}


async def _fake_quote(sym, **_kw):
    if sym in _QUOTES:
        return dict(_QUOTES[sym])
    raise ProviderError("yahoo", f"no quote for {sym}")


async def _fake_closes(sym, **_kw):
    if sym == "GC=F":
        return [2380.0, 2390.0, 2400.0]
    raise ProviderError("yahoo", f"no history for {sym}")


_COINS = {
    "bitcoin": {
        "price": 100000.0, "change": 1000.0, "change_percent": 1.01,
        "sparkline": [float(i) for i in range(24)],
    },
    "ethereum": {"price": 3000.0, "change": 30.0, "change_percent": 1.0, "sparkline": []},
}


def _patches(
    *,
    quote=_fake_quote,
    closes=_fake_closes,
    coins=None,
    dominance=None,
    upbit=None,
    coinbase=None,
    binance=None,
):
    def _mock(value):
        if isinstance(value, BaseException):
            return AsyncMock(side_effect=value)
        return AsyncMock(return_value=value)

    return [
        patch("services.yahoo_service.fetch_quote", side_effect=quote),
        patch("services.yahoo_service.fetch_daily_closes", side_effect=closes),
        patch("services.crypto.coingecko_service.fetch_coin_markets",
              _mock(_COINS if coins is None else coins)),
        patch("services.crypto.coingecko_service.fetch_market_cap_dominance",
              _mock({"btc": 57.3, "usdt": 4.1} if dominance is None else dominance)),
        patch("services.crypto.spot_price_service.fetch_upbit_usdt_krw",
              _mock(1428.0 if upbit is None else upbit)),
        patch("services.crypto.spot_price_service.fetch_coinbase_btc_usd",
              _mock(100100.0 if coinbase is None else coinbase)),
        patch("services.crypto.spot_price_service.fetch_binance_btc_usdt",
              _mock(100000.0 if binance is None else binance)),
    ]


def _run_with(patches, coro_fn):
    async def _run():
        for p in patches:
            p.start()
        try:
            return await coro_fn()
        finally:
            for p in reversed(patches):
                p.stop()

    return asyncio.run(_run())


class MarketAggregatorTests(unittest.TestCase):
    def test_one_quote_per_symbol_in_catalog_order(self):
        result = _run_with(_patches(), agg.aggregate_markets)

        self.assertTrue(result.usable)
        self.assertEqual([q.symbol for q in result.data], [a.symbol for a in ASSETS])

    def test_merge_precedence_and_derived_symbols(self):
        result = _run_with(_patches(), agg.aggregate_markets)
        by = agg.quotes_by_symbol(result.data)

        # CoinGecko fields overlay the Yahoo quote
        self.assertEqual(by["BTC"].price, 100000.0)
        self.assertEqual(by["BTC"].sparkline, [0.0, 8.0, 16.0])
        # empty CoinGecko sparkline leaves the entry without one
        self.assertEqual(by["ETH"].sparkline, [])

        self.assertAlmostEqual(by["ETHBTC"].price, 0.03)
        self.assertAlmostEqual(by["BTC.D"].price, 57.3)
        self.assertAlmostEqual(by["USDT.D"].price, 4.1)
        self.assertAlmostEqual(by["KIMP"].price, 2.0)
        self.assertAlmostEqual(by["CBP"].price, 0.1)

        self.assertEqual(by["GOLD"].sparkline, [2380.0, 2390.0, 2400.0])
        self.assertEqual(by["SPX"].price, 5000.0)

    def test_failed_symbols_become_placeholders(self):
        result = _run_with(_patches(), agg.aggregate_markets)
        by = agg.quotes_by_symbol(result.data)

        silver = by["SILVER"]
        self.assertEqual((silver.price, silver.change, silver.change_percent), (0.0, 0.0, 0.0))
        self.assertEqual(silver.sparkline, [])
        self.assertEqual(silver.name_ko, "은")
        self.assertEqual(result.status, "degraded")
        self.assertIn("quote:SILVER", result.reasons)

    def test_sparkline_failure_does_not_touch_the_quote(self):
        result = _run_with(_patches(), agg.aggregate_markets)
        by = agg.quotes_by_symbol(result.data)

        self.assertEqual(by["SPX"].sparkline, [])
        self.assertEqual(by["SPX"].change_percent, 1.0)
        self.assertIn("sparkline:SPX", result.reasons)

    def test_every_provider_down_still_yields_full_list(self):
        boom = ProviderError("x", "down")

        async def _always_fail(sym, **_kw):
            raise boom

        patches = _patches(
            quote=_always_fail, closes=_always_fail, coins=boom, dominance=boom,
            upbit=boom, coinbase=boom, binance=boom,
        )
        result = _run_with(patches, agg.aggregate_markets)

        self.assertEqual(len(result.data), len(ASSETS))
        self.assertTrue(all(q.price == 0.0 for q in result.data))
        self.assertEqual(result.status, "degraded")
        for reason in ("crypto_markets", "dominance", "premium:KIMP", "premium:CBP"):
            self.assertIn(reason, result.reasons)


class PhaseTwoTests(unittest.TestCase):
    def test_kimp_skipped_without_fx_rate(self):
        upbit = AsyncMock(return_value=1428.0)

        async def _run():
            with patch("services.crypto.spot_price_service.fetch_upbit_usdt_krw", upbit), patch(
                "services.crypto.spot_price_service.fetch_coinbase_btc_usd",
                AsyncMock(return_value=100100.0),
            ), patch(
                "services.crypto.spot_price_service.fetch_binance_btc_usdt",
                AsyncMock(return_value=100000.0),
            ):
                return await agg.derive_phase_two({})

        out = asyncio.run(_run())
        upbit.assert_not_called()
        self.assertNotIn("KIMP", out.values)
        self.assertIn("premium:KIMP", out.reasons)
        self.assertAlmostEqual(out.values["CBP"], 0.1)

    def test_one_failing_leg_drops_only_its_premium(self):
        async def _run():
            with patch(
                "services.crypto.spot_price_service.fetch_upbit_usdt_krw",
                AsyncMock(return_value=1386.0),
            ), patch(
                "services.crypto.spot_price_service.fetch_coinbase_btc_usd",
                AsyncMock(side_effect=ProviderError("coinbase", "HTTP 503")),
            ), patch(
                "services.crypto.spot_price_service.fetch_binance_btc_usdt",
                AsyncMock(return_value=100000.0),
            ):
                return await agg.derive_phase_two({"USDKRW": {"price": 1400.0}})

        out = asyncio.run(_run())
        self.assertAlmostEqual(out.values["KIMP"], -1.0)
        self.assertNotIn("CBP", out.values)


class MergeTests(unittest.TestCase):
    def test_crypto_overlay_only_applies_to_existing_entries(self):
        data = agg.merge_quotes(
            quotes={},
            crypto={"BTC": {"price": 100000.0, "change": None, "change_percent": None, "sparkline": [1.0]}},
            dominance={},
            premiums={},
            sparklines={},
            updated_at="2026-10-19T00:00:00Z",
        )
        btc = agg.quotes_by_symbol(data)["BTC"]
        self.assertEqual(btc.price, 0.0)
        self.assertEqual(btc.updated_at, "2026-10-19T00:00:00Z")

    def test_null_overlay_fields_keep_provider_values(self):
        data = agg.merge_quotes(
            quotes={"ETH": {"price": 2900.0, "change": 10.0, "change_percent": 0.35}},
            crypto={"ETH": {"price": 3000.0, "change": None, "change_percent": None, "sparkline": []}},
            dominance={},
            premiums={},
            sparklines={"ETH": [1.0, 2.0]},
        )
        eth = agg.quotes_by_symbol(data)["ETH"]
        self.assertEqual(eth.price, 3000.0)
        self.assertEqual(eth.change, 10.0)
        self.assertEqual(eth.change_percent, 0.35)
        # backfilled sparklines never land on crypto symbols
        self.assertEqual(eth.sparkline, [])

    def test_ratio_absent_when_a_leg_is_missing(self):
        data = agg.merge_quotes(
            quotes={"ETH": {"price": 3000.0, "change": 0.0, "change_percent": 0.0}},
            crypto={}, dominance={}, premiums={}, sparklines={},
        )
        self.assertEqual(agg.quotes_by_symbol(data)["ETHBTC"].price, 0.0)


if __name__ == "__main__":
    unittest.main()
