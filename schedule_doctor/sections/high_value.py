"""
High-value item extraction.

Two strategies, run in order by the assembler:

    strict      the "High Value" sheet, anchored on a "paid product name" header
                within the first rows, with an exact-header pass as fallback
    permissive  every sheet, any of several product/cost header phrasings

Rows become items only when they carry a product name and a numeric GIC of at
least HIGH_VALUE_THRESHOLD. Anything else is skipped silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from schedule_doctor.cells import parse_currency_value, to_text
from schedule_doctor.diagnostics import Diagnostics
from schedule_doctor.record import HighValueItem
from schedule_doctor.scanner import cell_at, find_header_row
from schedule_doctor.workbook import Workbook

HIGH_VALUE_THRESHOLD = 200
HEADER_SEARCH_ROWS = 30

HIGH_VALUE_SHEET = "High Value"
HIGH_VALUE_SHEET_KEYWORDS = (
    "high value",
    "high-value",
    "highvalue",
    "high cost",
    "costly items",
    "expensive items",
)

PRODUCT_HEADER = "paid product name"
GIC_HEADER = "paid gic incl"
QUANTITY_HEADER = "quantity"
SERVICE_FLAG_HEADER = "service flag"

EXACT_PRODUCT_HEADERS = ("paid product name",)
EXACT_GIC_HEADERS = ("paid gic incl bb", "paid gic incl. bb", "paid gic")
EXACT_QUANTITY_HEADERS = ("paid quantity", "quantity")
EXACT_SERVICE_FLAG_HEADERS = ("service flag", "flag")

PERMISSIVE_PRODUCT_HEADERS = ("paid product name", "product name", "drug name", "item description")
PERMISSIVE_GIC_HEADERS = ("paid gic incl", "paid gic", "gross ingredient cost", "gic")


@dataclass
class HighValueColumns:
    data_start: int
    product: int
    gic: int
    quantity: Optional[int] = None
    service_flag: Optional[int] = None


def normalise_header(value) -> str:
    return " ".join(to_text(value).lower().split())


def first_column(texts: list[str], fragments: tuple[str, ...], *, exact: bool = False, exclude: tuple = ()) -> Optional[int]:
    for fragment in fragments:
        for col, text in enumerate(texts):
            if col in exclude or not text:
                continue
            if (text == fragment) if exact else (fragment in text):
                return col
    return None


def resolve_high_value_sheet(workbook: Workbook, diagnostics: Diagnostics) -> list[list] | None:
    if HIGH_VALUE_SHEET in workbook.sheet_names:
        return workbook.grid(HIGH_VALUE_SHEET)
    for name in workbook.sheet_names:
        lowered = name.lower()
        if any(keyword in lowered for keyword in HIGH_VALUE_SHEET_KEYWORDS):
            diagnostics.debug("Using sheet %r for high value items", name)
            return workbook.grid(name)
    diagnostics.warning("No High Value sheet found. Available sheets: %s", workbook.sheet_names)
    return None


def locate_columns_fuzzy(grid: list[list]) -> Optional[HighValueColumns]:
    header_row = find_header_row(
        grid,
        lambda texts: any(PRODUCT_HEADER in text for text in texts),
        limit=HEADER_SEARCH_ROWS,
    )
    if header_row is None:
        return None

    texts = [to_text(cell).lower() for cell in grid[header_row]]
    product = first_column(texts, (PRODUCT_HEADER,))
    gic = first_column(texts, (GIC_HEADER,))
    quantity = first_column(texts, (QUANTITY_HEADER,))
    service_flag = first_column(texts, (SERVICE_FLAG_HEADER,))
    data_start = header_row + 1

    # Wrapped two-row headers put the remaining captions on the next row.
    if gic is None and header_row + 1 < len(grid):
        below = [to_text(cell).lower() for cell in grid[header_row + 1] or []]
        gic = first_column(below, (GIC_HEADER,))
        if gic is not None:
            quantity = quantity if quantity is not None else first_column(below, (QUANTITY_HEADER,))
            service_flag = service_flag if service_flag is not None else first_column(below, (SERVICE_FLAG_HEADER,))
            data_start = header_row + 2

    if product is None or gic is None:
        return None
    return HighValueColumns(data_start, product, gic, quantity, service_flag)


def locate_columns_exact(grid: list[list]) -> Optional[HighValueColumns]:
    for row_idx, row in enumerate(grid[:HEADER_SEARCH_ROWS]):
        if not row:
            continue
        texts = [normalise_header(cell) for cell in row]
        product = first_column(texts, EXACT_PRODUCT_HEADERS, exact=True)
        gic = first_column(texts, EXACT_GIC_HEADERS, exact=True)
        if product is None or gic is None:
            continue
        return HighValueColumns(
            data_start=row_idx + 1,
            product=product,
            gic=gic,
            quantity=first_column(texts, EXACT_QUANTITY_HEADERS, exact=True),
            service_flag=first_column(texts, EXACT_SERVICE_FLAG_HEADERS, exact=True),
        )
    return None


def locate_columns_permissive(grid: list[list]) -> Optional[HighValueColumns]:
    for row_idx, row in enumerate(grid[:HEADER_SEARCH_ROWS]):
        if not row:
            continue
        texts = [normalise_header(cell) for cell in row]
        product = first_column(texts, PERMISSIVE_PRODUCT_HEADERS)
        if product is None:
            continue
        gic = first_column(texts, PERMISSIVE_GIC_HEADERS, exclude=(product,))
        if gic is None:
            continue
        return HighValueColumns(
            data_start=row_idx + 1,
            product=product,
            gic=gic,
            quantity=first_column(texts, (QUANTITY_HEADER,), exclude=(product, gic)),
            service_flag=first_column(texts, (SERVICE_FLAG_HEADER,), exclude=(product, gic)),
        )
    return None


def rows_to_items(grid: list[list], columns: HighValueColumns) -> list[HighValueItem]:
    items: list[HighValueItem] = []
    for row in grid[columns.data_start:]:
        name = cell_at(row, columns.product)
        if name is None:
            continue
        gic = parse_currency_value(cell_at(row, columns.gic))
        if gic is None or gic < HIGH_VALUE_THRESHOLD:
            continue
        item = HighValueItem(paid_product_name=to_text(name), paid_gic_incl_bb=gic)
        if columns.quantity is not None:
            item.paid_quantity = parse_currency_value(cell_at(row, columns.quantity))
        if columns.service_flag is not None and cell_at(row, columns.service_flag) is not None:
            item.service_flag = to_text(cell_at(row, columns.service_flag))
        items.append(item)
    return items


def extract_high_value_items(grid: list[list], diagnostics: Diagnostics | None = None) -> list[HighValueItem]:
    diagnostics = diagnostics or Diagnostics()
    columns = locate_columns_fuzzy(grid)
    if columns is None:
        diagnostics.debug("Fuzzy header search failed on High Value sheet; trying exact headers")
        columns = locate_columns_exact(grid)
    if columns is None:
        diagnostics.warning(
            "High Value sheet has no product name / paid GIC header in its first %d rows",
            HEADER_SEARCH_ROWS,
        )
        return []

    diagnostics.debug(
        "High Value columns: product=%s gic=%s quantity=%s service_flag=%s (data from row %s)",
        columns.product,
        columns.gic,
        columns.quantity,
        columns.service_flag,
        columns.data_start,
    )
    items = rows_to_items(grid, columns)
    diagnostics.info("Extracted %d high value items", len(items))
    return items


def extract_high_value_items_permissive(workbook: Workbook, diagnostics: Diagnostics | None = None) -> list[HighValueItem]:
    """Best-effort recovery across every sheet; never raises for layout problems."""
    diagnostics = diagnostics or Diagnostics()
    for name in workbook.sheet_names:
        columns = locate_columns_permissive(workbook.grid(name))
        if columns is None:
            continue
        items = rows_to_items(workbook.grid(name), columns)
        if items:
            diagnostics.info("Permissive pass recovered %d high value items from sheet %r", len(items), name)
            return items
    diagnostics.debug("Permissive high value pass found nothing")
    return []
