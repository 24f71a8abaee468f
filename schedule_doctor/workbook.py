"""
workbook.py — raw spreadsheet bytes to an in-memory grid model.

Every downstream extractor reads a ``Workbook``: an ordered mapping of sheet
name to a 2-D grid (list of rows, each a list of raw cell values, ``None`` for
empty cells). Rows are kept ragged exactly as the reader produced them.

Supports: .xlsx .xlsm (openpyxl), .xls (pandas + xlrd), .ods (pandas + odfpy)
"""

from __future__ import annotations

import io
import logging
import math
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

MODERN_WORKBOOK_FORMATS = {".xlsx", ".xlsm"}
LEGACY_WORKBOOK_FORMATS = {".xls"}
ODS_FORMATS = {".ods"}
ALL_FORMATS = MODERN_WORKBOOK_FORMATS | LEGACY_WORKBOOK_FORMATS | ODS_FORMATS

logger = logging.getLogger(__name__)


class WorkbookParseError(ValueError):
    """The uploaded bytes could not be opened as a spreadsheet."""


@dataclass
class Workbook:
    sheets: dict[str, list[list]] = field(default_factory=dict)

    @property
    def sheet_names(self) -> list[str]:
        return list(self.sheets)

    def grid(self, name: str) -> list[list]:
        return self.sheets[name]


def is_encrypted_ooxml(data: bytes) -> bool:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            names = set(archive.namelist())
    except zipfile.BadZipFile:
        return False
    return {"EncryptedPackage", "EncryptionInfo"}.issubset(names)


def _clean_cell(value):
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _load_openpyxl(data: bytes) -> Workbook:
    from openpyxl import load_workbook

    try:
        book = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except Exception as exc:
        raise WorkbookParseError(f"Could not read workbook: {exc}") from exc

    sheets: dict[str, list[list]] = {}
    try:
        for sheet in book.worksheets:
            sheets[sheet.title] = [list(row) for row in sheet.iter_rows(values_only=True)]
    except Exception as exc:
        # read-only mode parses sheet XML lazily, so corrupt sheets fail here
        raise WorkbookParseError(f"Could not read workbook: {exc}") from exc
    finally:
        book.close()
    return Workbook(sheets=sheets)


def _load_pandas(data: bytes, engine: str) -> Workbook:
    import pandas as pd

    try:
        frames = pd.read_excel(io.BytesIO(data), sheet_name=None, header=None, engine=engine)
    except Exception as exc:
        raise WorkbookParseError(f"Could not read workbook: {exc}") from exc

    sheets: dict[str, list[list]] = {}
    for name, frame in frames.items():
        frame = frame.astype(object)
        sheets[str(name)] = [[_clean_cell(value) for value in row] for row in frame.itertuples(index=False)]
    return Workbook(sheets=sheets)


def load_workbook_bytes(data: bytes, filename: str) -> Workbook:
    """
    Parse spreadsheet bytes into a ``Workbook``.

    Raises:
        WorkbookParseError  if the format is unsupported, encrypted or unreadable.
        ImportError         if the optional reader for .xls/.ods is missing.
    """
    suffix = Path(filename).suffix.lower()
    if suffix not in ALL_FORMATS:
        supported = ", ".join(sorted(ALL_FORMATS))
        raise WorkbookParseError(
            f"Could not read workbook: unsupported format '{suffix or '[missing extension]'}'. "
            f"Supported: {supported}"
        )
    if not data:
        raise WorkbookParseError("Could not read workbook: the file is empty")

    if suffix in MODERN_WORKBOOK_FORMATS:
        if is_encrypted_ooxml(data):
            raise WorkbookParseError(
                "Could not read workbook: password-protected / encrypted OOXML workbooks are not supported"
            )
        workbook = _load_openpyxl(data)
    elif suffix in LEGACY_WORKBOOK_FORMATS:
        try:
            import xlrd  # noqa: F401
        except ImportError:
            raise ImportError(".xls files require xlrd — run: pip install xlrd")
        workbook = _load_pandas(data, "xlrd")
    else:
        try:
            import odf  # noqa: F401
        except ImportError:
            raise ImportError(".ods files require odfpy — run: pip install odfpy")
        workbook = _load_pandas(data, "odf")

    logger.debug("Loaded %s with sheets %s", filename, workbook.sheet_names)
    return workbook
