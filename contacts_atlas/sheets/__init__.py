"""
Spreadsheet-backed contact tables.

Main classes:
- SheetStore: read/append/update/delete by row index
- SheetsHttpClient: values, metadata and batch-update API wrapper
- TableSchema: raw headers plus resolved canonical columns
- Record, TableSnapshot, MutationResult: data model

Errors:
- SheetsError: base class
- SchemaError: sheet or column absent
- RemoteError: non-2xx response, with status and body
- RowStateError: row index out of range, empty, or stale
"""

from .sheets_client import SheetsHttpClient
from .sheets_errors import RemoteError, RowStateError, SchemaError, SheetsError
from .sheets_models import MutationResult, Record, TableConfig, TableSnapshot
from .sheets_schema import ABSENT, HEADER_ALIASES, TableSchema, build_row, resolve_columns
from .sheets_store import SheetStore, default_tables

__all__ = [
    "SheetStore",
    "SheetsHttpClient",
    "TableSchema",
    "TableConfig",
    "Record",
    "TableSnapshot",
    "MutationResult",
    "resolve_columns",
    "build_row",
    "default_tables",
    "HEADER_ALIASES",
    "ABSENT",
    "SheetsError",
    "SchemaError",
    "RemoteError",
    "RowStateError",
]
