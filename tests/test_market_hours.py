import unittest
from datetime import datetime
from zoneinfo import ZoneInfo

from services.markets import market_hours as mh

NY = ZoneInfo("America/New_York")
SEOUL = ZoneInfo("Asia/Seoul")


def _status(market_id, now):
    return {s.id: s for s in mh.get_all_market_statuses(now)}[market_id]


class FormatTests(unittest.TestCase):
    def test_format_minutes(self):
        self.assertEqual(mh.format_minutes(125), "2시간 5분")
        self.assertEqual(mh.format_minutes(120), "2시간")
        self.assertEqual(mh.format_minutes(5), "5분")
        self.assertEqual(mh.format_minutes(0), "")


class UsMarketTests(unittest.TestCase):
    def test_open_wednesday_morning(self):
        s = _status("us", datetime(2026, 10, 21, 10, 0, tzinfo=NY))
        self.assertEqual(s.status, "open")
        self.assertEqual(s.status_label, "개장 중")
        self.assertEqual(s.time_label, "마감까지 6시간")

    def test_closed_for_weekend_saturday_night(self):
        s = _status("us", datetime(2026, 10, 24, 2, 0, tzinfo=NY))
        self.assertEqual(s.status, "closed")
        self.assertEqual(s.status_label, "마감 (주말)")
        self.assertEqual(s.time_label, "개장까지 55시간 30분")

    def test_pre_and_after_market(self):
        pre = _status("us", datetime(2026, 10, 21, 5, 0, tzinfo=NY))
        self.assertEqual((pre.status, pre.time_label), ("pre_market", "정규장까지 4시간 30분"))

        after = _status("us", datetime(2026, 10, 21, 17, 0, tzinfo=NY))
        self.assertEqual((after.status, after.status_label), ("after_market", "애프터마켓"))
        self.assertEqual(after.time_label, "종료까지 3시간")

    def test_closed_overnight_counts_to_pre_market(self):
        s = _status("us", datetime(2026, 10, 21, 21, 0, tzinfo=NY))
        self.assertEqual((s.status, s.status_label, s.time_label), ("closed", "마감", "개장까지 7시간"))

    def test_input_timezone_does_not_matter(self):
        utc_equiv = datetime(2026, 10, 21, 14, 0, tzinfo=ZoneInfo("UTC"))
        self.assertEqual(_status("us", utc_equiv).status, "open")
        self.assertTrue(mh.is_us_market_open(utc_equiv))


class OtherMarketTests(unittest.TestCase):
    def test_crypto_always_open(self):
        for now in (
            datetime(2026, 10, 24, 2, 0, tzinfo=NY),
            datetime(2026, 10, 21, 23, 59, tzinfo=SEOUL),
        ):
            s = _status("crypto", now)
            self.assertEqual((s.status, s.status_label, s.time_label), ("open", "24/7 개장", ""))

    def test_korea_before_open_has_no_pre_market(self):
        s = _status("kr", datetime(2026, 10, 21, 8, 0, tzinfo=SEOUL))
        self.assertEqual((s.status, s.time_label), ("closed", "개장까지 1시간"))

    def test_order(self):
        ids = [s.id for s in mh.get_all_market_statuses(datetime(2026, 10, 21, 10, 0, tzinfo=NY))]
        self.assertEqual(ids, ["us", "kr", "crypto", "eu"])


if __name__ == "__main__":
    unittest.main()
