"""Dispensing-month text to a canonical month name and a four-digit year."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import date, datetime

from schedule_doctor.cells import is_blank, to_text

MONTHS = (
    "JANUARY",
    "FEBRUARY",
    "MARCH",
    "APRIL",
    "MAY",
    "JUNE",
    "JULY",
    "AUGUST",
    "SEPTEMBER",
    "OCTOBER",
    "NOVEMBER",
    "DECEMBER",
)
MONTH_ALIASES = {name: idx for idx, name in enumerate(MONTHS)}
MONTH_ALIASES.update({name[:3]: idx for idx, name in enumerate(MONTHS)})
MONTH_ALIASES["SEPT"] = 8

YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
TOKEN_SPLIT_RE = re.compile(r"[\s\-/]+")
TODAY_ENV_VAR = "SCHEDULE_DOCTOR_TODAY"


@dataclass(frozen=True)
class MonthYear:
    month: str
    year: int


def current_date() -> date:
    override = os.environ.get(TODAY_ENV_VAR)
    if override:
        return date.fromisoformat(override)
    return date.today()


def month_index(name: str) -> int | None:
    return MONTH_ALIASES.get(name.strip(" .,:;-").upper())


def infer_year(month_idx: int | None, today: date) -> int:
    # A month later in the calendar than today can only be last year's schedule.
    if month_idx is None:
        return today.year
    if month_idx > today.month - 1:
        return today.year - 1
    return today.year


def parse_dispensing_month(raw, today: date | None = None) -> MonthYear:
    """
    Parse "JANUARY 2025", "January" or a date cell into ``MonthYear``.

    The first token names the month; tokens split on whitespace, "-" and
    "/". An explicit 19xx/20xx year anywhere in the text wins; otherwise
    the year is inferred from ``today``. A month that cannot be recognised
    yields an empty month and today's year.
    """
    today = today or current_date()
    if isinstance(raw, (datetime, date)):
        return MonthYear(MONTHS[raw.month - 1], raw.year)
    if is_blank(raw):
        return MonthYear("", today.year)

    text = to_text(raw)
    tokens = [token for token in TOKEN_SPLIT_RE.split(text) if token]
    idx = month_index(tokens[0]) if tokens else None
    if idx is None:
        idx = next((month_index(token) for token in tokens[1:] if month_index(token) is not None), None)

    match = YEAR_RE.search(text)
    year = int(match.group(0)) if match else infer_year(idx, today)
    return MonthYear(MONTHS[idx] if idx is not None else "", year)
