"""Item counts, financials, service costs and advance payments.

The payment summary sheet puts one label per row in column B with values in
fixed columns. These offsets belong to one template version; a template
revision upstream moves them without any version marker in the workbook.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from schedule_doctor.cells import normalize_count, normalize_number, parse_currency_value
from schedule_doctor.diagnostics import Diagnostics
from schedule_doctor.record import AdvancePayments, Financials, ItemCounts, ServiceCosts
from schedule_doctor.scanner import cell_at, find_row_by_label, find_value_by_label, find_value_in_row
from schedule_doctor.sheets import resolve_sheet
from schedule_doctor.workbook import Workbook

SUMMARY_SHEET_CANDIDATES = ("Community Pharmacy Payment Summ", "Payment Summary", "Summary")

TOTAL_COLUMN = 3
SERVICE_COLUMNS = {
    "total": 3,
    "ams": 5,
    "mcr": 6,
    "nhs_pfs": 7,
    "cpus": 9,
    "other": 11,
}

ITEM_COUNT_LABEL = "Total No Of Items"
SERVICE_COST_LABEL = "Total Gross Ingredient Cost"

FINANCIAL_LABELS = {
    "gross_ingredient_cost": ("Total Gross Ingredient Cost",),
    "net_ingredient_cost": ("Total Net Ingredient Cost",),
    "dispensing_pool": ("Dispensing Pool Payment", "Dispensing Pool"),
    "establishment_payment": ("Establishment Payment",),
    "pharmacy_first_base": ("Pharmacy First Base Payment", "PFS Base Payment"),
    "pharmacy_first_activity": ("Pharmacy First Activity Payment", "PFS Activity Payment"),
    "average_gross_value": ("Average Gross Value",),
    "supplementary_payments": ("Supplementary & Service Payments", "Supplementary Payments"),
}
ADVANCE_LABELS = {
    "previous_month": ("Advance Payment Already Paid", "Advance Payment Previous Month"),
    "next_month": ("Advance Payment For Following Month", "Advance Payment Next Month"),
}
NET_PAYMENT_LABELS = ("Net Payment", "Total Payment Due")


@dataclass
class SummaryFragment:
    item_counts: ItemCounts = field(default_factory=ItemCounts)
    financials: Financials = field(default_factory=Financials)
    service_costs: ServiceCosts = field(default_factory=ServiceCosts)
    advance_payments: AdvancePayments = field(default_factory=AdvancePayments)
    net_payment: Optional[float] = None
    found: set[str] = field(default_factory=set)


def read_amount(grid: list[list], labels: tuple[str, ...]) -> Optional[float]:
    """Amount in the total column of a labelled row, else beside the label."""
    for label in labels:
        value = find_value_in_row(grid, label, TOTAL_COLUMN, ignore_case=True)
        if value is None:
            value = find_value_by_label(grid, label, ignore_case=True)
        parsed = parse_currency_value(value)
        if parsed is not None:
            return parsed
    return None


def resolve_summary_sheet(workbook: Workbook, diagnostics: Diagnostics) -> list[list] | None:
    return resolve_sheet(
        workbook,
        SUMMARY_SHEET_CANDIDATES,
        purpose="payment summary",
        diagnostics=diagnostics,
    )


def extract_item_counts(grid: list[list], diagnostics: Diagnostics) -> Optional[ItemCounts]:
    row = find_row_by_label(grid, ITEM_COUNT_LABEL, ignore_case=True)
    if row is None:
        diagnostics.warning("Row %r not found on the payment summary sheet", ITEM_COUNT_LABEL)
        return None
    return ItemCounts(**{name: normalize_count(cell_at(row, col)) for name, col in SERVICE_COLUMNS.items()})


def extract_service_costs(grid: list[list], diagnostics: Diagnostics) -> Optional[ServiceCosts]:
    row = find_row_by_label(grid, SERVICE_COST_LABEL, ignore_case=True)
    if row is None:
        diagnostics.debug("Row %r not found; service costs default to 0", SERVICE_COST_LABEL)
        return None
    return ServiceCosts(**{
        name: float(normalize_number(cell_at(row, col)))
        for name, col in SERVICE_COLUMNS.items()
        if name != "total"
    })


def extract_summary(grid: list[list], diagnostics: Diagnostics | None = None) -> SummaryFragment:
    diagnostics = diagnostics or Diagnostics()
    fragment = SummaryFragment()

    counts = extract_item_counts(grid, diagnostics)
    if counts is not None:
        fragment.item_counts = counts
        fragment.found.add("item_counts")

    costs = extract_service_costs(grid, diagnostics)
    if costs is not None:
        fragment.service_costs = costs
        fragment.found.add("service_costs")

    for name, labels in FINANCIAL_LABELS.items():
        amount = read_amount(grid, labels)
        if amount is None:
            diagnostics.debug("Financial field %s not found (labels %s)", name, labels)
            continue
        setattr(fragment.financials, name, amount)
        fragment.found.add(name)

    for name, labels in ADVANCE_LABELS.items():
        amount = read_amount(grid, labels)
        if amount is not None:
            setattr(fragment.advance_payments, name, amount)
            fragment.found.add(f"advance_{name}")

    fragment.net_payment = read_amount(grid, NET_PAYMENT_LABELS)
    return fragment
