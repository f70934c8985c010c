import json
import logging
import sys
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from config.logging_config import JsonFormatter, configure_logging
from main import app
from middleware.request_logging import level_for


class LevelTests(unittest.TestCase):
    def test_levels_by_status_and_path(self):
        self.assertEqual(level_for(503, "/api/markets"), logging.ERROR)
        self.assertEqual(level_for(429, "/api/news/summarize"), logging.WARNING)
        self.assertEqual(level_for(200, "/api/news"), logging.INFO)
        self.assertEqual(level_for(200, "/health"), logging.DEBUG)


class JsonFormatterTests(unittest.TestCase):
    def test_single_line_with_service_and_korean_text(self):
        record = logging.LogRecord("services.serving", logging.ERROR, __file__, 1, "serve_failed msg=%s", ("뉴스",), None)
        line = JsonFormatter().format(record)

        self.assertNotIn("\n", line)
        entry = json.loads(line)
        self.assertEqual(entry["service"], "market-pulse")
        self.assertEqual(entry["level"], "ERROR")
        self.assertEqual(entry["message"], "serve_failed msg=뉴스")
        self.assertIn("뉴스", line)

    def test_exception_is_included(self):
        try:
            raise ValueError("bad")
        except ValueError:
            exc_info = sys.exc_info()
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "boom", (), exc_info)
        self.assertIn("ValueError: bad", json.loads(JsonFormatter().format(record))["exception"])


class ConfigureLoggingTests(unittest.TestCase):
    def setUp(self):
        root = logging.getLogger()
        self._saved = (root.level, list(root.handlers))

    def tearDown(self):
        root = logging.getLogger()
        root.setLevel(self._saved[0])
        root.handlers = self._saved[1]

    def test_repeat_calls_keep_one_handler(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "warning", "LOG_JSON": "1"}):
            configure_logging()
            configure_logging()

        root = logging.getLogger()
        self.assertEqual(len(root.handlers), 1)
        self.assertIsInstance(root.handlers[0].formatter, JsonFormatter)
        self.assertEqual(root.level, logging.WARNING)
        self.assertEqual(logging.getLogger("httpx").level, logging.WARNING)

    def test_unknown_level_falls_back_to_info(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "chatty", "LOG_JSON": ""}):
            configure_logging()
        self.assertEqual(logging.getLogger().level, logging.INFO)


class ResponseTimeHeaderTests(unittest.TestCase):
    def test_header_is_set(self):
        r = TestClient(app).get("/health")
        self.assertEqual(r.status_code, 200)
        self.assertIn("X-Response-Time-Ms", r.headers)


if __name__ == "__main__":
    unittest.main()
