from __future__ import annotations

from schedule_doctor.cells import is_blank, parse_currency_value


def format_currency(value) -> str:
    """Render a value as GBP ("£1,234.56"); unparsable text comes back unchanged."""
    if is_blank(value):
        return "£0.00"
    parsed = parse_currency_value(value)
    if parsed is None:
        return str(value)
    sign = "-" if parsed < 0 else ""
    return f"{sign}£{abs(parsed):,.2f}"


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} bytes"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"
