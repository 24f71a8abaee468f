#!/usr/bin/env python3
"""
Generates two sample payment schedules for trying schedule-doctor end to end.

Run from the repo root:
    python sample-data/generate_schedule.py
    schedule-doctor extract sample-data/FA123_january_2025.xlsx
    schedule-doctor compare sample-data/FA123_february_2025.xlsx sample-data/FA123_january_2025.xlsx

Layout quirks baked in (the February file):
  Sheet "Details"
    - Labels in column A with values pushed to column D
    - Dispensing month without a year ("February")
  Sheet "Payment Summary"
    - Currency strings with £ and thousands separators
  Sheet "Pharmacy First Service Calc"
    - No TOTAL PAYMENT row (derived from base + activity)
    - An unrecognised label variant that is only logged
  Sheet "High Value Items"
    - Wrapped two-row header
"""

from pathlib import Path
import openpyxl

OUT_DIR = Path(__file__).parent


def add_sheet(wb, title, rows):
    ws = wb.create_sheet(title)
    for row in rows:
        ws.append(row)
    return ws


def summary_rows(items, gic, nic, supplementary):
    return [
        ["COMMUNITY PHARMACY PAYMENT SUMMARY"],
        [None, None, None, "Total", None, "AMS", "M:CR", "NHS PFS", None, "CPUS", None, "Other"],
        [None, "Total No Of Items", None, *items],
        [None, "Total Gross Ingredient Cost", None, *gic],
        [None, "Total Net Ingredient Cost", None, nic],
        [None, "Dispensing Pool Payment", None, 15234.10],
        [None, "Establishment Payment", None, 2500],
        [None, "Pharmacy First Base Payment", None, 1000],
        [None, "Pharmacy First Activity Payment", None, 1400.06],
        [None, "Average Gross Value", None, 11.62],
        [None, "Supplementary & Service Payments", None, supplementary],
        [None, "Advance Payment Already Paid", None, 38000],
        [None, "Advance Payment For Following Month", None, 39500.50],
    ]


def pfs_rows(include_total):
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
        [None, "UTI Treatment Items", None, 12],
        [None, "UTI Treatment Weighting", None, 1.0],
        [None, "UTI Treatment Weighted Sub-Total", None, 12],
        [None, "Shingles Treatment Items", None, 3],
        [None, "Shingles Treatment Weighting", None, 2.0],
        [None, "Shingles Treatment Weighted Sub-Total", None, 6],
        [None, "Monthly Pool", None, 250000],
        [None, "Base Payment", None, 1000],
        [None, "Activity Payment", None, 1400.06],
        [None, "PFS Activity Payment (provisional)", None, 1390],
    ]
    if include_total:
        rows.append([None, "TOTAL PAYMENT", None, 2400.06])
    return rows


# ── January: canonical layout ────────────────────────────────────────────────
wb = openpyxl.Workbook()
wb.remove(wb.active)

add_sheet(wb, "Pharmacy Details", [
    ["PHARMACY DETAILS"],
    [None, "Contractor Code", "FA123"],
    [None, "Contractor Name", "High Street Pharmacy"],
    [None, "Dispensing Month", "JANUARY 2025"],
    [None, "Net Payment", 45678.90],
])
add_sheet(wb, "Community Pharmacy Payment Summ", summary_rows(
    [8500, None, 4200, 2100, 350, None, 150, None, 1700],
    [98765.43, None, 42150.85, 28635.22, 16892.45, None, 8749.26, None, 2337.65],
    91234.56,
    6543.21,
))
add_sheet(wb, "Regional Payments", [
    [None, "Regional Payments"],
    [None, "Description", None, "Amount"],
    [None, "Care Home Service", None, 250.00],
    [None, "Smoking Cessation", None, 1200.50],
    [None, "Gluten Free Food", None, 75.25],
    [None, "Sum:", None, 1525.75],
])
add_sheet(wb, "High Value", [
    ["HIGH VALUE REPORT"],
    [],
    [None, "Paid Product Name", "Paid Quantity", "Paid GIC Incl BB", "Service Flag"],
    [None, "Adalimumab 40mg/0.4ml inj", 2, 1250.50, "MCR"],
    [None, "Apixaban 5mg tabs", 56, 199.99, None],
    [None, "Insulin glargine 100u/ml", 10, 200.00, None],
])
add_sheet(wb, "PFS Payment Calculation", pfs_rows(include_total=True))

january = OUT_DIR / "FA123_january_2025.xlsx"
wb.save(january)
print(f"Saved: {january}")

# ── February: moved labels, currency text, no PFS total ──────────────────────
wb = openpyxl.Workbook()
wb.remove(wb.active)

add_sheet(wb, "Details", [
    ["Contractor Code", None, None, "FA123"],
    ["Dispensing Month", None, None, "February"],
    ["Net Payment", None, None, "£46,912.40"],
])
add_sheet(wb, "Payment Summary", summary_rows(
    [8720, None, 4310, 2150, 402, None, 158, None, 1700],
    ["£101,102.10", None, "£43,002.00", "£29,100.55", "£17,450.90", None, "£9,100.00", None, "£2,448.65"],
    "£92,001.36",
    "£6,999.99",
))
add_sheet(wb, "Regional Payments", [
    [None, "Regional Payments"],
    [None, "Description", None, "Amount"],
    [None, "Care Home Service", None, 250.00],
    [None, "Smoking Cessation", None, "£1,450.50"],
    [None, "Minor Ailments", None, 180.00],
    [None, "Sum:", None, "£1,880.50"],
])
add_sheet(wb, "High Value Items", [
    [None, "Paid Product Name", "Paid", "Service Flag"],
    [None, None, "Paid GIC Incl BB"],
    [None, "Adalimumab 40mg/0.4ml inj", "£1,250.50", "MCR"],
    [None, "Etanercept 50mg inj", 715.00, None],
    [None, "Apixaban 5mg tabs", 120.40, None],
])
add_sheet(wb, "Pharmacy First Service Calc", pfs_rows(include_total=False))

february = OUT_DIR / "FA123_february_2025.xlsx"
wb.save(february)
print(f"Saved: {february}")
