"""
Pharmacy First Service (PFS) weighted-activity detail.

Rows below the "PFS Information Description" / "Value" header are matched
against PFS_LABELS by exact text (whitespace collapsed, case kept). Rows that
do not match are never guessed into a field; the ones that look relevant are
logged so a new label variant can be added to the table.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Optional

from schedule_doctor.cells import normalize_number, to_text
from schedule_doctor.diagnostics import Diagnostics
from schedule_doctor.record import PfsDetails
from schedule_doctor.scanner import cell_at
from schedule_doctor.sheets import resolve_sheet
from schedule_doctor.workbook import Workbook

PFS_SHEET_CANDIDATES = (
    "PFS Payment Calculation",
    "Pharmacy First Service",
    "Pharmacy First Payment",
    "PFS Calculation",
    "NHS PFS",
    "PFS",
)
PFS_SHEET_KEYWORDS = ("PFS", "Pharmacy First", "Payment Calculation")

HEADER_SEARCH_ROWS = 20
DESCRIPTION_HEADER = "pfs information description"
VALUE_HEADER = "Value"

UNMATCHED_KEYWORDS = ("PAYMENT", "ACTIVITY", "PFS", "UTI", "TREATMENT", "CONSULTATION", "IMPETIGO", "SHINGLES")

CONDITIONS = (
    ("PFS", ""),
    ("UTI", "uti_"),
    ("Impetigo", "impetigo_"),
    ("Shingles", "shingles_"),
    ("Skin Infection", "skin_infection_"),
    ("Hayfever", "hayfever_"),
)


def _condition_labels(name: str, prefix: str) -> dict[str, str]:
    labels = {
        f"{name} Treatment Items": "treatment_items",
        f"{name} Treatment Weighting": "treatment_weighting",
        f"{name} Consultations": "consultations",
        f"{name} Consultation Weighting": "consultation_weighting",
        f"{name} Referrals": "referrals",
        f"{name} Referral Weighting": "referral_weighting",
    }
    for subtotal in ("Weighted Sub-Total", "Weighted Subtotal"):
        labels[f"{name} Treatment Items {subtotal}"] = "treatment_weighted_subtotal"
        labels[f"{name} Treatment {subtotal}"] = "treatment_weighted_subtotal"
        labels[f"{name} Consultations {subtotal}"] = "consultations_weighted_subtotal"
        labels[f"{name} Referrals {subtotal}"] = "referrals_weighted_subtotal"
    return {label: prefix + field_name for label, field_name in labels.items()}


PAYMENT_LABELS = {
    "Weighted Activity Total": "weighted_activity_total",
    "Total Weighted Activity": "weighted_activity_total",
    "Activity Specified Minimum": "activity_specified_minimum",
    "Weighted Activity Above Minimum": "weighted_activity_above_minimum",
    "National Activity Above Minimum": "national_activity_above_minimum",
    "Monthly Pool": "monthly_pool",
    "PFS Monthly Pool": "monthly_pool",
    "Applied Activity Fee": "applied_activity_fee",
    "Maximum Activity Fee": "maximum_activity_fee",
    "Base Payment": "base_payment",
    "BASE PAYMENT": "base_payment",
    "PFS Base Payment": "base_payment",
    "Activity Payment": "activity_payment",
    "ACTIVITY PAYMENT": "activity_payment",
    "PFS Activity Payment": "activity_payment",
    "Total Payment": "total_payment",
    "TOTAL PAYMENT": "total_payment",
    "PFS Total Payment": "total_payment",
}

PFS_LABELS: dict[str, str] = {}
for _name, _prefix in CONDITIONS:
    PFS_LABELS.update(_condition_labels(_name, _prefix))
PFS_LABELS.update(PAYMENT_LABELS)

PFS_FIELDS = {item.name for item in fields(PfsDetails)}


def normalise_label(value) -> str:
    return " ".join(to_text(value).split())


def resolve_pfs_sheet(workbook: Workbook, diagnostics: Diagnostics) -> list[list] | None:
    return resolve_sheet(
        workbook,
        PFS_SHEET_CANDIDATES,
        keywords=PFS_SHEET_KEYWORDS,
        purpose="PFS calculation",
        diagnostics=diagnostics,
    )


def find_pfs_header(grid: list[list]) -> Optional[tuple[int, int, int]]:
    """(row, description column, value column) of the PFS header, if any."""
    for row_idx, row in enumerate(grid[:HEADER_SEARCH_ROWS]):
        if not row:
            continue
        texts = [to_text(cell) for cell in row]
        description_col = next((col for col, text in enumerate(texts) if DESCRIPTION_HEADER in text.lower()), None)
        value_col = next((col for col, text in enumerate(texts) if text == VALUE_HEADER), None)
        if description_col is not None and value_col is not None:
            return row_idx, description_col, value_col
    return None


def extract_pfs_details(grid: list[list], diagnostics: Diagnostics | None = None) -> Optional[PfsDetails]:
    diagnostics = diagnostics or Diagnostics()
    header = find_pfs_header(grid)
    if header is None:
        diagnostics.warning("PFS sheet has no 'PFS Information Description' / 'Value' header in its first %d rows", HEADER_SEARCH_ROWS)
        return None
    header_row, description_col, value_col = header
    diagnostics.debug("PFS header at row %d (description col %d, value col %d)", header_row, description_col, value_col)

    details = PfsDetails()
    for row_idx, row in enumerate(grid[header_row + 1:], start=header_row + 1):
        label = normalise_label(cell_at(row, description_col))
        if not label:
            continue
        field_name = PFS_LABELS.get(label)
        if field_name is None:
            upper = label.upper()
            if any(keyword in upper for keyword in UNMATCHED_KEYWORDS):
                diagnostics.info("Unmatched PFS row %d: %r = %r", row_idx, label, cell_at(row, value_col))
            continue
        setattr(details, field_name, float(normalize_number(cell_at(row, value_col))))

    has_data = (
        details.base_payment is not None
        or details.activity_payment is not None
        or details.treatment_items is not None
    )

    if details.weighted_activity_total is None:
        details.weighted_activity_total = float(sum(details.weighted_subtotals().values()))
        diagnostics.debug("Derived weighted activity total %s from subtotals", details.weighted_activity_total)

    if details.total_payment is None:
        if details.base_payment is not None and details.activity_payment is not None:
            diagnostics.debug("Derived PFS total payment from base + activity payment")
        details.total_payment = (details.base_payment or 0.0) + (details.activity_payment or 0.0)

    if not has_data and details.weighted_activity_total <= 0:
        diagnostics.warning("PFS sheet held no base, activity, treatment or weighted activity values")
        return None
    return details
