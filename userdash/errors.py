"""Exception hierarchy for the analytics dashboard."""

from __future__ import annotations

DEFAULT_SPREADSHEET_ERROR = "Error processing the Excel file"


class DashboardError(RuntimeError):
    """Base class for failures surfaced to the dashboard operator."""


class UpstreamFetchError(DashboardError):
    """Raised when the identity provider cannot be reached or answers badly."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidDateRange(DashboardError, ValueError):
    """Raised when a ``start``/``end`` filter value cannot be parsed."""


class SpreadsheetError(DashboardError):
    """Base class for problems with an uploaded spreadsheet."""

    default_message = DEFAULT_SPREADSHEET_ERROR

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidFileType(SpreadsheetError):
    default_message = "Please upload only Excel files (.xlsx or .xls)"


class EmptyWorkbook(SpreadsheetError):
    default_message = "The Excel file is empty"


class NoDataRows(SpreadsheetError):
    default_message = "The Excel file contains no data or only headers"


class NoValidEmails(SpreadsheetError):
    default_message = "No valid email addresses found in the first column"


class SpreadsheetParseError(SpreadsheetError):
    """Raised when the workbook itself cannot be read."""


__all__ = [
    "DEFAULT_SPREADSHEET_ERROR",
    "DashboardError",
    "UpstreamFetchError",
    "InvalidDateRange",
    "SpreadsheetError",
    "InvalidFileType",
    "EmptyWorkbook",
    "NoDataRows",
    "NoValidEmails",
    "SpreadsheetParseError",
]
