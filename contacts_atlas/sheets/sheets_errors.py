"""
Custom exceptions for the sheets module.

These exceptions separate configuration-independent failure modes of the
spreadsheet store: a missing sheet or column, a failed HTTP call, and a
row that no longer matches what the caller last read.
"""


class SheetsError(Exception):
    """Base exception for spreadsheet store failures."""
    pass


class SchemaError(SheetsError):
    """Raised when the target sheet or a required column is absent."""
    pass


class RemoteError(SheetsError):
    """Raised on a non-2xx response (or transport failure, status 0)."""

    def __init__(self, message: str = "", status: int = 0, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class RowStateError(SheetsError):
    """Raised when a row index is out of range, empty, or stale."""
    pass
