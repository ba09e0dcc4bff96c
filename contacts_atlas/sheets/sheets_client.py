"""
HTTP client for the spreadsheet values, metadata and batch-update APIs.

Thin blocking wrapper around a requests session: every non-2xx response
becomes a RemoteError carrying status and body, and idempotent reads are
retried on transient statuses.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .sheets_errors import RemoteError


logger = logging.getLogger(__name__)

TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})


class ValueRange(BaseModel):
    """Body of a values GET."""

    model_config = ConfigDict(extra="ignore")

    range: str = ""
    values: List[List[Any]] = Field(default_factory=list)


class SheetProperties(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    sheet_id: int = Field(alias="sheetId", default=0)
    title: str = ""


class SheetEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    properties: SheetProperties = Field(default_factory=SheetProperties)


class SpreadsheetMetadata(BaseModel):
    """Body of a metadata GET restricted to ``sheets.properties``."""

    model_config = ConfigDict(extra="ignore")

    sheets: List[SheetEntry] = Field(default_factory=list)


def a1_range(sheet_name: str, cells: str) -> str:
    """Qualify ``cells`` with a sheet name, quoting names that need it."""
    if re.fullmatch(r"[A-Za-z0-9_]+", sheet_name):
        return f"{sheet_name}!{cells}"
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'!{cells}"


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, RemoteError) and exc.status in TRANSIENT_STATUSES


def _parse(model, body: Dict[str, Any], what: str):
    """Validate a 2xx JSON body; a shape mismatch is a RemoteError like any bad reply."""
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise RemoteError(
            f"{what} returned a malformed body: {e.error_count()} validation error(s)",
            status=200,
            body=str(body),
        ) from e


class SheetsHttpClient:
    """
    Blocking client for one spreadsheet.

    Callers pass the bearer token on every call; the client holds no
    credentials of its own.
    """

    BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"

    def __init__(self,
                 spreadsheet_id: str,
                 session: requests.Session = None,
                 timeout: float = 30.0,
                 max_attempts: int = 3,
                 retry_wait=None,
                 base_url: str = None):
        """
        Initialize the client.

        Args:
            spreadsheet_id: Spreadsheet identifier
            session: HTTP session (a new one is created if omitted)
            timeout: Per-request timeout in seconds
            max_attempts: Attempts for idempotent reads on transient errors
            retry_wait: tenacity wait strategy (exponential backoff by default)
            base_url: Override of the API root
        """
        self.spreadsheet_id = spreadsheet_id
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=0.5, min=0.5, max=4)
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self._session = session or requests.Session()

    def _spreadsheet_url(self, suffix: str = "") -> str:
        return f"{self.base_url}/{self.spreadsheet_id}{suffix}"

    def _values_url(self, range_a1: str, suffix: str = "") -> str:
        return self._spreadsheet_url(f"/values/{quote(range_a1, safe='')}{suffix}")

    def _request(self, method: str, url: str, token: str, what: str, **kwargs) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"}
        if "json" in kwargs:
            headers["Content-Type"] = "application/json"

        try:
            response = self._session.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.exceptions.RequestException as e:
            raise RemoteError(f"{what} failed: {e}", status=0, body="")

        if not 200 <= response.status_code < 300:
            logger.warning(f"{what} failed: HTTP {response.status_code}")
            raise RemoteError(
                f"{what} failed: {response.status_code} {response.text}",
                status=response.status_code,
                body=response.text,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            raise RemoteError(
                f"{what} returned a non-JSON body",
                status=response.status_code,
                body=response.text,
            )

    def _read(self, url: str, token: str, what: str, params: Dict[str, str] = None) -> Dict[str, Any]:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception(_is_transient),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._request("GET", url, token, what, params=params)

    def get_values(self, token: str, range_a1: str) -> List[List[str]]:
        """
        Read a range as rows of strings (trailing empty cells/rows are omitted
        by the API).
        """
        body = self._read(self._values_url(range_a1), token, f"Read {range_a1}")
        value_range = _parse(ValueRange, body, f"Read {range_a1}")
        return [["" if cell is None else str(cell) for cell in row]
                for row in value_range.values]

    def append_values(self, token: str, range_a1: str, rows: Sequence[Sequence[str]]) -> Dict[str, Any]:
        """Append rows after the last row of the table found in ``range_a1``."""
        return self._request(
            "POST",
            self._values_url(range_a1, ":append"),
            token,
            f"Append to {range_a1}",
            params={"valueInputOption": "USER_ENTERED"},
            json={"values": [list(row) for row in rows]},
        )

    def update_values(self, token: str, range_a1: str, rows: Sequence[Sequence[str]]) -> Dict[str, Any]:
        """Overwrite ``range_a1`` in place."""
        return self._request(
            "PUT",
            self._values_url(range_a1),
            token,
            f"Update {range_a1}",
            params={"valueInputOption": "USER_ENTERED"},
            json={"values": [list(row) for row in rows]},
        )

    def get_sheet_properties(self, token: str) -> List[SheetProperties]:
        """List the sheets of the spreadsheet with their numeric ids."""
        body = self._read(
            self._spreadsheet_url(),
            token,
            "Read spreadsheet metadata",
            params={"fields": "sheets.properties"},
        )
        metadata = _parse(SpreadsheetMetadata, body, "Read spreadsheet metadata")
        return [entry.properties for entry in metadata.sheets]

    def batch_update(self, token: str, requests_: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        """Send structural requests (e.g. deleteDimension) in one batch."""
        return self._request(
            "POST",
            self._spreadsheet_url(":batchUpdate"),
            token,
            "Batch update",
            json={"requests": list(requests_)},
        )


def delete_rows_request(sheet_id: int, start_index: int, end_index: int) -> Dict[str, Any]:
    """deleteDimension request for rows [start_index, end_index), 0-based."""
    return {
        "deleteDimension": {
            "range": {
                "sheetId": sheet_id,
                "dimension": "ROWS",
                "startIndex": start_index,
                "endIndex": end_index,
            }
        }
    }
