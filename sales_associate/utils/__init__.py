"""Shared utility helpers used across the store, services and routers."""

import math
import re
from datetime import datetime, timezone

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

# Formats the sheet UI produces when a human types a date
_SHEET_DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%Y %H:%M:%S", "%d/%m/%Y")


def safe_int(v):
    """Leading-integer parse ("12 days" → 12). None when no digits lead, NaN or inf."""
    if v is None:
        return None
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        return int(v) if math.isfinite(v) else None
    m = _LEADING_INT.match(str(v))
    if not m:
        return None
    try:
        return int(m.group(1))
    except ValueError:
        # more digits than int() will convert
        return None


def parse_timestamp(value) -> float:
    """Epoch seconds for a sheet date cell; 0.0 when missing or unparsable."""
    if not value:
        return 0.0
    text = str(value).strip()
    if not text:
        return 0.0
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        dt = None
        for fmt in _SHEET_DATE_FORMATS:
            try:
                dt = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
        if dt is None:
            return 0.0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and Z suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()
