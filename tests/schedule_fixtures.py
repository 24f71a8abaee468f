"""Canonical payment schedule layouts used across the test modules."""

from __future__ import annotations

import io
import zipfile

from openpyxl import Workbook as OpenpyxlWorkbook

from schedule_doctor.workbook import Workbook

DETAILS_SHEET = "Pharmacy Details"
SUMMARY_SHEET = "Community Pharmacy Payment Summ"
REGIONAL_SHEET = "Regional Payments"
HIGH_VALUE_SHEET = "High Value"
PFS_SHEET = "PFS Payment Calculation"


def details_rows(contractor="FA123", month="JANUARY 2025", net="£45,678.90") -> list[list]:
    return [
        ["PHARMACY DETAILS"],
        [None, "Contractor Code", contractor],
        [None, "Contractor Name", "High Street Pharmacy"],
        [None, "Dispensing Month", month],
        [None, "Net Payment", net],
    ]


def summary_rows() -> list[list]:
    return [
        ["COMMUNITY PHARMACY PAYMENT SUMMARY"],
        [None, None, None, "Total", None, "AMS", "M:CR", "NHS PFS", None, "CPUS", None, "Other"],
        [None, "Total No Of Items", None, 8500, None, 4200, 2100, 350, None, 150, None, 1700],
        [None, "Total Gross Ingredient Cost", None, "£98,765.43", None, 42150.85, 28635.22, 16892.45, None, 8749.26, None, 2337.65],
        [None, "Total Net Ingredient Cost", None, 91234.56],
        [None, "Dispensing Pool Payment", None, 15234.1],
        [None, "Establishment Payment", None, 2500],
        [None, "Pharmacy First Base Payment", None, 1000],
        [None, "Pharmacy First Activity Payment", None, 1400.06],
        [None, "Average Gross Value", None, 11.62],
        [None, "Supplementary & Service Payments", None, "£6,543.21"],
        [None, "Advance Payment Already Paid", None, 38000],
        [None, "Advance Payment For Following Month", None, 39500.5],
    ]


def regional_rows() -> list[list]:
    return [
        [None, "Regional Payments"],
        [None, "Description", None, "Amount"],
        [None, "Care Home Service", None, 250.0],
        [None, "Smoking Cessation", None, "£1,200.50"],
        [None, "Gluten Free Food", None, 75.25],
        [None, "Sum:", None, 1525.75],
    ]


def high_value_rows(gic_values=(199.99, 200.00, 200.01, "£1,250.50")) -> list[list]:
    rows = [
        ["HIGH VALUE REPORT"],
        [],
        ["Contractor: FA123"],
        [],
        [None, "Paid Product Name", "Paid Quantity", "Paid GIC Incl BB", "Service Flag"],
    ]
    for idx, gic in enumerate(gic_values):
        rows.append([None, f"Product {chr(ord('A') + idx)}", idx + 1, gic, "MCR" if idx % 2 else None])
    rows.append([None, None, None, 500, None])
    rows.append([None, "Unpriced Product", 1, "n/a", None])
    return rows


def pfs_rows(include_total=True) -> list[list]:
    rows = [
        ["Pharmacy First Service Payment Calculation"],
        [],
        [None, "PFS Information Description", None, "Value"],
        [None, "PFS Treatment Items", None, 40],
        [None, "PFS Treatment Weighting", None, 1.0],
        [None, "PFS Treatment Items Weighted Sub-Total", None, 40],
        [None, "PFS Consultations", None, 20],
        [None, "PFS Consultation Weighting", None, 1.5],
        [None, "PFS Consultations Weighted Sub-Total", None, 30],
        [None, "PFS Referrals", None, 10],
        [None, "PFS Referral Weighting", None, 0.5],
        [None, "PFS Referrals Weighted Sub-Total", None, 5],
        [None, "UTI Treatment Items", None, 12],
        [None, "UTI Treatment Weighting", None, 1.0],
        [None, "UTI Treatment Weighted Sub-Total", None, 12],
        [None, "Weighted Activity Total", None, 87],
        [None, "Monthly Pool", None, 250000],
        [None, "Base Payment", None, 1000],
        [None, "Activity Payment", None, 1400.06],
        [None, "PFS activity notes (see guidance)", None, None],
    ]
    if include_total:
        rows.append([None, "TOTAL PAYMENT", None, 2400.06])
    return rows


def canonical_sheets() -> dict[str, list[list]]:
    return {
        DETAILS_SHEET: details_rows(),
        SUMMARY_SHEET: summary_rows(),
        REGIONAL_SHEET: regional_rows(),
        HIGH_VALUE_SHEET: high_value_rows(),
        PFS_SHEET: pfs_rows(),
    }


def workbook_from_sheets(sheets: dict[str, list[list]]) -> Workbook:
    return Workbook(sheets={name: [list(row) for row in rows] for name, rows in sheets.items()})


def xlsx_bytes(sheets: dict[str, list[list]]) -> bytes:
    book = OpenpyxlWorkbook()
    book.remove(book.active)
    for name, rows in sheets.items():
        sheet = book.create_sheet(name)
        for row in rows:
            sheet.append(row)
    buffer = io.BytesIO()
    book.save(buffer)
    return buffer.getvalue()


def truncated_sheet_xlsx_bytes(sheets: dict[str, list[list]], member: str = "xl/worksheets/sheet1.xml") -> bytes:
    """A valid package whose worksheet XML is cut short; only fails once rows are read."""
    source = zipfile.ZipFile(io.BytesIO(xlsx_bytes(sheets)))
    buffer = io.BytesIO()
    with source, zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as target:
        for info in source.infolist():
            payload = source.read(info.filename)
            if info.filename == member:
                payload = payload[: len(payload) // 2]
            target.writestr(info, payload)
    return buffer.getvalue()
