from __future__ import annotations

from schedule_doctor.cells import parse_currency_value, to_text
from schedule_doctor.diagnostics import Diagnostics
from schedule_doctor.record import RegionalPaymentDetail, RegionalPayments
from schedule_doctor.scanner import cell_at
from schedule_doctor.workbook import Workbook

REGIONAL_SHEET = "Regional Payments"
DESCRIPTION_COLUMN = 1
AMOUNT_COLUMN = 3
SUM_LABELS = {"sum:", "sum"}
EXCLUDED_DESCRIPTIONS = {
    "description",
    "payment description",
    "regional payments",
    "amount",
    "total",
    "total:",
}


def resolve_regional_sheet(workbook: Workbook, diagnostics: Diagnostics) -> list[list] | None:
    if REGIONAL_SHEET not in workbook.sheet_names:
        diagnostics.warning("No %r sheet in workbook; regional payments left empty", REGIONAL_SHEET)
        return None
    return workbook.grid(REGIONAL_SHEET)


def is_sum_row(row) -> bool:
    return any(
        to_text(cell_at(row, col)).lower() in SUM_LABELS
        for col in range(DESCRIPTION_COLUMN + 1)
    )


def extract_regional_payments(grid: list[list], diagnostics: Diagnostics | None = None) -> RegionalPayments:
    diagnostics = diagnostics or Diagnostics()
    details: list[RegionalPaymentDetail] = []
    total = None

    for row_idx, row in enumerate(grid):
        if not row:
            continue
        if is_sum_row(row):
            total = parse_currency_value(cell_at(row, AMOUNT_COLUMN))
            diagnostics.debug("Regional payments sum row at %d: %s", row_idx, total)
            continue
        description = to_text(cell_at(row, DESCRIPTION_COLUMN))
        if not description or description.lower() in EXCLUDED_DESCRIPTIONS:
            continue
        amount = parse_currency_value(cell_at(row, AMOUNT_COLUMN))
        if amount is None:
            continue
        details.append(RegionalPaymentDetail(description=description, amount=amount))

    if total is None:
        total = sum(item.amount for item in details)
        diagnostics.debug("No 'Sum:' row on regional payments sheet; using detail total %s", total)
    return RegionalPayments(total_amount=total, payment_details=details)
