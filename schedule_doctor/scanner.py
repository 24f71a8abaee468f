from __future__ import annotations

from typing import Callable

from schedule_doctor.cells import is_blank, to_text

LABEL_COLUMN = 1
ALT_LABEL_COLUMN = 0
VALUE_COLUMN = 2
ALT_VALUE_COLUMN = 3


def cell_at(row, index: int):
    if row is None or index < 0 or index >= len(row):
        return None
    value = row[index]
    return None if is_blank(value) else value


def _contains(cell, label: str, ignore_case: bool) -> bool:
    if is_blank(cell):
        return False
    text = to_text(cell)
    if ignore_case:
        return label.lower() in text.lower()
    return label in text


def find_value_by_label(grid: list[list], label: str, *, ignore_case: bool = False):
    """Value beside the first row whose column B (or, failing that, A) holds ``label``.

    A column-B hit reads column C. A column-A hit reads column C, then D when C
    is empty. Returns None when the label never appears.
    """
    for row in grid:
        if _contains(cell_at(row, LABEL_COLUMN), label, ignore_case):
            return cell_at(row, VALUE_COLUMN)
        if _contains(cell_at(row, ALT_LABEL_COLUMN), label, ignore_case):
            value = cell_at(row, VALUE_COLUMN)
            return value if value is not None else cell_at(row, ALT_VALUE_COLUMN)
    return None


def find_row_by_label(grid: list[list], label: str, *, ignore_case: bool = False) -> list | None:
    for row in grid:
        if _contains(cell_at(row, LABEL_COLUMN), label, ignore_case):
            return row
    return None


def find_value_in_row(grid: list[list], label: str, column_index: int, *, ignore_case: bool = False):
    """Value at ``column_index`` of the first row whose column B holds ``label``."""
    row = find_row_by_label(grid, label, ignore_case=ignore_case)
    if row is None:
        return None
    return cell_at(row, column_index)


def find_header_row(
    grid: list[list],
    predicate: Callable[[list[str]], bool],
    *,
    limit: int,
) -> int | None:
    """Index of the first row within ``limit`` rows whose lower-cased texts satisfy ``predicate``."""
    for row_idx, row in enumerate(grid[:limit]):
        if not row:
            continue
        texts = [to_text(cell).lower() for cell in row]
        if predicate(texts):
            return row_idx
    return None
