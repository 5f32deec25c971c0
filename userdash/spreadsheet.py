"""Extraction of email addresses from uploaded Excel workbooks."""

from __future__ import annotations

import logging
import zipfile
from io import BytesIO
from pathlib import PurePath
from typing import Any, Iterable, List, Sequence

import xlrd
from xlrd.compdoc import CompDocError
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .errors import (
    DEFAULT_SPREADSHEET_ERROR,
    EmptyWorkbook,
    InvalidFileType,
    NoDataRows,
    NoValidEmails,
    SpreadsheetParseError,
)

logger = logging.getLogger("userdash.spreadsheet")

ALLOWED_EXTENSIONS = frozenset({"xlsx", "xls"})
_OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

Row = Sequence[Any]


def ensure_spreadsheet_filename(filename: str | None) -> str:
    """Validate the upload name before any bytes are parsed."""

    name = (filename or "").strip()
    suffix = PurePath(name).suffix.lower().lstrip(".")
    if suffix not in ALLOWED_EXTENSIONS:
        raise InvalidFileType()
    return name


def _is_legacy_workbook(data: bytes) -> bool:
    return data[: len(_OLE2_SIGNATURE)] == _OLE2_SIGNATURE


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _used_range(rows: Iterable[Row]) -> List[Row]:
    """Crop blank rows and columns around a sheet's populated cells.

    The header is the first populated row, and column A is the leftmost
    populated column, wherever they sit on the sheet.
    """

    cropped = [list(row) for row in rows]
    while cropped and all(_is_blank(value) for value in cropped[0]):
        cropped.pop(0)
    while cropped and all(_is_blank(value) for value in cropped[-1]):
        cropped.pop()

    offsets = [
        next(index for index, value in enumerate(row) if not _is_blank(value))
        for row in cropped
        if not all(_is_blank(value) for value in row)
    ]
    left = min(offsets, default=0)
    return [row[left:] for row in cropped]


def _read_xlsx(data: bytes, first_sheet_only: bool) -> List[List[Row]]:
    workbook = load_workbook(BytesIO(data), read_only=True, data_only=True)
    try:
        worksheets = workbook.worksheets
        if first_sheet_only:
            worksheets = worksheets[:1]
        return [_used_range(sheet.iter_rows(values_only=True)) for sheet in worksheets]
    finally:
        workbook.close()


def _read_xls(data: bytes, first_sheet_only: bool) -> List[List[Row]]:
    book = xlrd.open_workbook(file_contents=data, on_demand=True)
    try:
        count = min(book.nsheets, 1) if first_sheet_only else book.nsheets
        sheets: List[List[Row]] = []
        for index in range(count):
            sheet = book.sheet_by_index(index)
            sheets.append(_used_range(sheet.row_values(row) for row in range(sheet.nrows)))
        return sheets
    finally:
        book.release_resources()


def read_sheets(data: bytes, *, first_sheet_only: bool = True) -> List[List[Row]]:
    """Return the rows of the workbook's sheets as lists of cell values."""

    try:
        if _is_legacy_workbook(data):
            return _read_xls(data, first_sheet_only)
        return _read_xlsx(data, first_sheet_only)
    except (
        InvalidFileException,
        zipfile.BadZipFile,
        xlrd.XLRDError,
        CompDocError,
        KeyError,
        OSError,
        ValueError,
    ) as exc:
        logger.warning("Unable to read uploaded workbook: %s", exc)
        raise SpreadsheetParseError(str(exc) or DEFAULT_SPREADSHEET_ERROR) from exc


def _first_cell(row: Row) -> Any:
    return row[0] if row else None


def extract_emails(data: bytes, first_sheet_only: bool = True) -> List[str]:
    """Pull candidate email strings from column A, skipping each header row.

    Values are only required to be non-empty strings; no address validation
    is performed.
    """

    sheets = read_sheets(data, first_sheet_only=first_sheet_only)
    if not sheets:
        raise EmptyWorkbook()

    if all(len(rows) <= 1 for rows in sheets):
        raise NoDataRows()

    emails = [
        value
        for rows in sheets
        for value in (_first_cell(row) for row in rows[1:])
        if isinstance(value, str) and value
    ]
    if not emails:
        raise NoValidEmails()
    return emails


__all__ = [
    "ALLOWED_EXTENSIONS",
    "ensure_spreadsheet_filename",
    "extract_emails",
    "read_sheets",
]
