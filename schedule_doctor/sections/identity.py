"""Contractor code, dispensing month and net payment from the details sheet."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from schedule_doctor.cells import parse_currency_value, to_text
from schedule_doctor.diagnostics import Diagnostics
from schedule_doctor.months import MonthYear, parse_dispensing_month
from schedule_doctor.scanner import find_value_by_label
from schedule_doctor.sheets import resolve_sheet
from schedule_doctor.workbook import Workbook

DETAILS_SHEET_CANDIDATES = ("Pharmacy Details", "Details")
CONTRACTOR_CODE_LABELS = ("Contractor Code", "Contractor Number", "Pharmacy Code")
DISPENSING_MONTH_LABELS = ("Dispensing Month", "Payment Month")
NET_PAYMENT_LABELS = ("Net Payment", "Total Net Payment", "Payment To Bank")


@dataclass
class IdentityFragment:
    contractor_code: str
    dispensing_month: str
    month_year: MonthYear
    net_payment: Optional[float] = None


def first_value(grid: list[list], labels: tuple[str, ...]):
    for label in labels:
        value = find_value_by_label(grid, label, ignore_case=True)
        if value is not None:
            return value
    return None


def resolve_details_sheet(workbook: Workbook, diagnostics: Diagnostics) -> list[list] | None:
    return resolve_sheet(
        workbook,
        DETAILS_SHEET_CANDIDATES,
        purpose="pharmacy details",
        diagnostics=diagnostics,
    )


def extract_identity(
    grid: list[list],
    diagnostics: Diagnostics | None = None,
    today: date | None = None,
) -> IdentityFragment:
    diagnostics = diagnostics or Diagnostics()

    contractor_code = to_text(first_value(grid, CONTRACTOR_CODE_LABELS))
    if not contractor_code:
        diagnostics.warning("Contractor code not found on the details sheet")

    raw_month = first_value(grid, DISPENSING_MONTH_LABELS)
    if raw_month is None:
        diagnostics.warning("Dispensing month not found on the details sheet")
    month_year = parse_dispensing_month(raw_month, today=today)
    diagnostics.debug("Dispensing month %r parsed as %s %s", raw_month, month_year.month, month_year.year)

    net_payment = parse_currency_value(first_value(grid, NET_PAYMENT_LABELS))
    if net_payment is None:
        diagnostics.debug("Net payment not found on the details sheet")

    return IdentityFragment(
        contractor_code=contractor_code,
        dispensing_month=to_text(raw_month),
        month_year=month_year,
        net_payment=net_payment,
    )
