"""
assembler.py — run every section extractor and build one PaymentRecord.

Public API:
    result = extract_from_bytes(data, "schedule.xlsx")
    record = result.record

Only an unreadable file is fatal (WorkbookParseError from the loader). A
section whose sheet is missing, or whose extractor raises, contributes its
default fragment and a warning; the record is always assembled.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from schedule_doctor.diagnostics import Diagnostics
from schedule_doctor.months import current_date, parse_dispensing_month
from schedule_doctor.record import PaymentRecord, to_json
from schedule_doctor.sections.high_value import (
    extract_high_value_items,
    extract_high_value_items_permissive,
    resolve_high_value_sheet,
)
from schedule_doctor.sections.identity import IdentityFragment, extract_identity, resolve_details_sheet
from schedule_doctor.sections.pfs import extract_pfs_details, resolve_pfs_sheet
from schedule_doctor.sections.regional import extract_regional_payments, resolve_regional_sheet
from schedule_doctor.sections.summary import SummaryFragment, extract_summary, resolve_summary_sheet
from schedule_doctor.workbook import Workbook, load_workbook_bytes

IMPORTANT_FIELDS = (
    "contractorCode",
    "month",
    "netPayment",
    "itemCounts.total",
    "financials.grossIngredientCost",
)
MIN_IMPORTANT_FIELDS = 3

MIME_TYPES = {
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xlsm": "application/vnd.ms-excel.sheet.macroenabled.12",
    ".xls": "application/vnd.ms-excel",
    ".ods": "application/vnd.oasis.opendocument.spreadsheet",
}

T = TypeVar("T")


@dataclass
class FileMetadata:
    name: str
    size: int
    mime_type: str


@dataclass
class ExtractionResult:
    record: PaymentRecord
    status: str
    important_fields_found: list[str]
    sections: dict[str, bool]
    warnings: list[str] = field(default_factory=list)
    file: Optional[FileMetadata] = None

    @property
    def is_complete(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "important_fields_found": list(self.important_fields_found),
            "sections": dict(self.sections),
            "warnings": list(self.warnings),
            "file": to_json(self.file) if self.file else None,
            "record": self.record.to_dict(),
        }


def guess_mime_type(filename: str) -> str:
    suffix = Path(filename).suffix.lower()
    if suffix in MIME_TYPES:
        return MIME_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def run_section(name: str, diagnostics: Diagnostics, func: Callable[[], T], default: T) -> T:
    try:
        return func()
    except Exception as exc:
        diagnostics.warning("Section %s failed and was left empty: %s: %s", name, type(exc).__name__, exc)
        return default


def _identity(workbook: Workbook, diagnostics: Diagnostics, today: date) -> Optional[IdentityFragment]:
    grid = resolve_details_sheet(workbook, diagnostics)
    if grid is None:
        return None
    return extract_identity(grid, diagnostics, today=today)


def _summary(workbook: Workbook, diagnostics: Diagnostics) -> Optional[SummaryFragment]:
    grid = resolve_summary_sheet(workbook, diagnostics)
    if grid is None:
        return None
    return extract_summary(grid, diagnostics)


def _regional(workbook: Workbook, diagnostics: Diagnostics):
    grid = resolve_regional_sheet(workbook, diagnostics)
    if grid is None:
        return None
    return extract_regional_payments(grid, diagnostics)


def _pfs(workbook: Workbook, diagnostics: Diagnostics):
    grid = resolve_pfs_sheet(workbook, diagnostics)
    if grid is None:
        return None
    return extract_pfs_details(grid, diagnostics)


def _high_value(workbook: Workbook, diagnostics: Diagnostics):
    grid = resolve_high_value_sheet(workbook, diagnostics)
    if grid is None:
        return []
    return extract_high_value_items(grid, diagnostics)


def important_fields_found(identity: Optional[IdentityFragment], summary: Optional[SummaryFragment]) -> list[str]:
    found = []
    if identity and identity.contractor_code:
        found.append("contractorCode")
    if identity and identity.month_year.month:
        found.append("month")
    if (identity and identity.net_payment is not None) or (summary and summary.net_payment is not None):
        found.append("netPayment")
    if summary and "item_counts" in summary.found:
        found.append("itemCounts.total")
    if summary and "gross_ingredient_cost" in summary.found:
        found.append("financials.grossIngredientCost")
    return found


def extract_payment_record(
    workbook: Workbook,
    *,
    diagnostics: Diagnostics | None = None,
    today: date | None = None,
) -> ExtractionResult:
    diagnostics = diagnostics or Diagnostics()
    today = today or current_date()
    diagnostics.info("Extracting payment record from sheets %s", workbook.sheet_names)

    identity = run_section("identity", diagnostics, lambda: _identity(workbook, diagnostics, today), None)
    summary = run_section("summary", diagnostics, lambda: _summary(workbook, diagnostics), None)
    regional = run_section("regional payments", diagnostics, lambda: _regional(workbook, diagnostics), None)
    pfs = run_section("pfs", diagnostics, lambda: _pfs(workbook, diagnostics), None)
    high_value = run_section("high value", diagnostics, lambda: _high_value(workbook, diagnostics), [])

    if not high_value:
        high_value = run_section(
            "high value (permissive)",
            diagnostics,
            lambda: extract_high_value_items_permissive(workbook, diagnostics),
            [],
        )

    record = PaymentRecord()
    if identity is not None:
        record.contractor_code = identity.contractor_code
        record.dispensing_month = identity.dispensing_month
        record.month = identity.month_year.month
        record.year = identity.month_year.year
        record.net_payment = identity.net_payment if identity.net_payment is not None else 0.0
    else:
        record.year = parse_dispensing_month(None, today=today).year

    if summary is not None:
        record.item_counts = summary.item_counts
        record.financials = summary.financials
        record.service_costs = summary.service_costs
        record.advance_payments = summary.advance_payments
        if (identity is None or identity.net_payment is None) and summary.net_payment is not None:
            record.net_payment = summary.net_payment

    record.regional_payments = regional
    record.pfs_details = pfs
    record.high_value_items = list(high_value)

    found = important_fields_found(identity, summary)
    status = "ok" if len(found) >= MIN_IMPORTANT_FIELDS else "incomplete"
    if status != "ok":
        diagnostics.warning(
            "Only %d of %d important fields found (%s); record may be incomplete",
            len(found),
            len(IMPORTANT_FIELDS),
            ", ".join(found) or "none",
        )

    return ExtractionResult(
        record=record,
        status=status,
        important_fields_found=found,
        sections={
            "identity": identity is not None,
            "summary": summary is not None,
            "regional_payments": regional is not None,
            "pfs": pfs is not None,
            "high_value_items": bool(high_value),
        },
        warnings=list(diagnostics.warnings),
    )


def extract_from_bytes(
    data: bytes,
    filename: str,
    mime_type: str | None = None,
    *,
    diagnostics: Diagnostics | None = None,
    today: date | None = None,
) -> ExtractionResult:
    """
    Parse an uploaded schedule and extract its record.

    Raises:
        WorkbookParseError  if the bytes are not a readable spreadsheet.
        ImportError         if the optional .xls/.ods reader is missing.
    """
    diagnostics = diagnostics or Diagnostics()
    workbook = load_workbook_bytes(data, filename)
    result = extract_payment_record(workbook, diagnostics=diagnostics, today=today)
    result.file = FileMetadata(
        name=Path(filename).name,
        size=len(data),
        mime_type=mime_type or guess_mime_type(filename),
    )
    return result


def extract_from_path(
    path: "str | Path",
    *,
    diagnostics: Diagnostics | None = None,
    today: date | None = None,
) -> ExtractionResult:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return extract_from_bytes(path.read_bytes(), path.name, diagnostics=diagnostics, today=today)
