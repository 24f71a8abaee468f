from __future__ import annotations

import math
import re
from datetime import date, datetime, time

CURRENCY_STRIP_RE = re.compile(r"[£$€,\s]")
LEADING_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def to_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_currency_value(raw) -> float | None:
    """Parse a cell into a number, or None when it holds nothing numeric.

    Accepts native numbers and strings such as "£1,234.56", " $ 12 " or
    "€-3.5". Like a spreadsheet's own number parsing, a leading numeric run is
    used when text follows it ("12.5 items" -> 12.5).
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and math.isnan(raw):
            return None
        return float(raw)
    if not isinstance(raw, str):
        return None
    cleaned = CURRENCY_STRIP_RE.sub("", raw)
    match = LEADING_NUMBER_RE.match(cleaned)
    if not match:
        return None
    return float(match.group(0))


def normalize_number(raw) -> float:
    """Coerce any cell into a number; absent or garbage values become 0."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        if isinstance(raw, float) and math.isnan(raw):
            return 0
        return raw
    parsed = parse_currency_value(raw)
    return parsed if parsed is not None else 0


def normalize_count(raw) -> int:
    return int(round(normalize_number(raw)))
