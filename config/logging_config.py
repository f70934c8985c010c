"""
Logging setup, applied once at import of main.py.

LOG_LEVEL picks the root level (default INFO). LOG_JSON=1 switches the
stdout handler to one JSON object per line, tagged with the service name.

Messages use `event_name key=value` pairs. Request bodies, article text and
API keys never go into log messages; provider failures are logged by
provider name and a short error string only.
"""
import json
import logging
import os
import sys
from typing import Any, Dict, Iterable

SERVICE_NAME = "market-pulse"
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Lowered to WARNING: one line per outbound call otherwise.
NOISY_LOGGERS: Iterable[str] = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "urllib3",
    "yahooquery",
    "google_genai",
)


class JsonFormatter(logging.Formatter):
    """Single-line JSON records for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + "Z",
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def _env_level() -> int:
    name = (os.getenv("LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _build_formatter() -> logging.Formatter:
    if os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes"):
        return JsonFormatter()
    return logging.Formatter(TEXT_FORMAT)


def configure_logging() -> None:
    level = _env_level()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_build_formatter())

    root = logging.getLogger()
    root.setLevel(level)
    # uvicorn --reload imports main again; replace rather than stack handlers
    root.handlers = [handler]

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
