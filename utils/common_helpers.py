import json
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def safe_float(x: Any) -> Optional[float]:
    try:
        if x is None or isinstance(x, bool):
            return None
        v = float(x)
        if math.isnan(v) or math.isinf(v):
            return None
        return v
    except (TypeError, ValueError):
        return None


def positive_float(x: Any) -> Optional[float]:
    v = safe_float(x)
    return v if v is not None and v > 0 else None


def pct_premium(price: Optional[float], reference: Optional[float]) -> Optional[float]:
    """(price / reference - 1) * 100, or None unless both legs are positive."""
    if price is None or reference is None or price <= 0 or reference <= 0:
        return None
    return (price / reference - 1.0) * 100.0


def iso_utc(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def iso_now() -> str:
    return iso_utc(datetime.now(timezone.utc))


def unix_to_iso(ts: Any) -> Optional[str]:
    try:
        return iso_utc(datetime.fromtimestamp(float(ts), tz=timezone.utc))
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def parse_iso(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def strip_code_fences(text: str) -> str:
    t = (text or "").strip()
    if t.startswith("```"):
        lines = t.split("\n")
        lines = lines[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        t = "\n".join(lines).strip()
    return t


def parse_json_strict(maybe: Any) -> Dict[str, Any]:
    """Parse an LLM reply into a dict; tolerate code fences and leading chatter."""
    if maybe is None:
        raise ValueError("Empty LLM response (None)")
    if not isinstance(maybe, str):
        maybe = str(maybe)
    s = strip_code_fences(maybe)
    if not s:
        raise ValueError("Empty LLM response (blank)")
    try:
        data = json.loads(s)
    except json.JSONDecodeError:
        m = re.search(r"\{[\s\S]*\}\s*$", s)
        if not m:
            raise
        data = json.loads(m.group(0))
    if not isinstance(data, dict):
        raise ValueError("LLM did not return a JSON object")
    return data
