from __future__ import annotations

from schedule_doctor.diagnostics import Diagnostics
from schedule_doctor.workbook import Workbook


def resolve_sheet_name(workbook: Workbook, candidates: list[str] | tuple[str, ...]) -> str | None:
    """Pick the sheet best matching a logical purpose.

    Every candidate is tried for an exact match first; only then is substring
    containment tried in both directions, candidates in order. Comparison is
    against verbatim sheet names.
    """
    names = workbook.sheet_names
    for candidate in candidates:
        if candidate in names:
            return candidate
    for candidate in candidates:
        for name in names:
            if not name:
                continue
            if name in candidate or candidate in name:
                return name
    return None


def resolve_sheet_by_keywords(workbook: Workbook, keywords: list[str] | tuple[str, ...]) -> str | None:
    """Case-insensitive fragment search, used as the last resort."""
    for keyword in keywords:
        needle = keyword.lower()
        for name in workbook.sheet_names:
            if needle in name.lower():
                return name
    return None


def resolve_sheet(
    workbook: Workbook,
    candidates: list[str] | tuple[str, ...],
    *,
    keywords: list[str] | tuple[str, ...] = (),
    purpose: str = "",
    diagnostics: Diagnostics | None = None,
) -> list[list] | None:
    diagnostics = diagnostics or Diagnostics()
    name = resolve_sheet_name(workbook, candidates)
    if name is None and keywords:
        name = resolve_sheet_by_keywords(workbook, keywords)
    if name is None:
        diagnostics.warning(
            "No %s sheet found (tried %s). Available sheets: %s",
            purpose or "matching",
            list(candidates) + list(keywords),
            workbook.sheet_names,
        )
        return None
    diagnostics.debug("Using sheet %r for %s", name, purpose or candidates[0])
    return workbook.grid(name)
