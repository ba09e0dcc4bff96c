"""
Shared pytest fixtures.

Provides an in-memory spreadsheet backend with the same methods as
SheetsHttpClient, a stub token provider and a throwaway service-account key.
"""

import re
import threading
from typing import Dict, List, Optional, Tuple

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from contacts_atlas.config.config_module import DEFAULT_RANGES
from contacts_atlas.sheets.sheets_client import SheetProperties
from contacts_atlas.sheets.sheets_errors import RemoteError
from contacts_atlas.sheets.sheets_store import SheetStore, default_tables


COMMUNICATION_HEADERS = [
    "Pseudo", "ID Discord", "Pays", "Région", "Ville",
    "Latitude", "Longitude", "Notes", "Lock",
]
COMMERCIAL_HEADERS = [
    "Pseudo", "Prénom", "Nom", "Entreprise", "Email",
    "Pays", "Ville", "NDA Signée", "Notes",
]
JOURNAL_HEADERS = ["Date", "Heure", "Action", "Type", "ID", "Nom", "Détails"]

RANGE_RE = re.compile(
    r"^(?:'(?P<quoted>(?:[^']|'')+)'|(?P<plain>[^!]+))!"
    r"(?P<c1>[A-Z]+)(?P<r1>\d*)(?::(?P<c2>[A-Z]+)(?P<r2>\d*))?$"
)


def parse_a1(range_a1: str) -> Tuple[str, int, Optional[int]]:
    """Split an A1 range into (sheet, first row, last row or None for open-ended)."""
    match = RANGE_RE.match(range_a1)
    if not match:
        raise ValueError(f"Unsupported range: {range_a1}")
    sheet = match.group("quoted")
    sheet = sheet.replace("''", "'") if sheet is not None else match.group("plain")
    first = int(match.group("r1")) if match.group("r1") else 1
    if match.group("c2") is None:
        last = first if match.group("r1") else None
    else:
        last = int(match.group("r2")) if match.group("r2") else None
    return sheet, first, last


def _trim(row: List[str]) -> List[str]:
    out = list(row)
    while out and out[-1] == "":
        out.pop()
    return out


class FakeSheetsBackend:
    """
    In-memory stand-in for SheetsHttpClient.

    Reads trim trailing empty cells and rows like the real API, appends land
    after the last non-empty row, and a deleteDimension that would leave no
    row below the header is rejected with HTTP 400.
    """

    def __init__(self):
        self.sheets: Dict[str, Dict] = {}
        self.calls: List[Tuple[str, Optional[str]]] = []
        self.delete_requests: List[Dict] = []
        self._failures: Dict[str, List[Exception]] = {}
        self._lock = threading.Lock()

    def add_sheet(self, title: str, rows: List[List[str]], sheet_id: int = None) -> None:
        if sheet_id is None:
            sheet_id = len(self.sheets)
        self.sheets[title] = {"id": sheet_id, "rows": [list(r) for r in rows]}

    def rows(self, title: str) -> List[List[str]]:
        """Physical rows as stored (no trimming)."""
        return self.sheets[title]["rows"]

    def data_rows(self, title: str) -> List[List[str]]:
        """Non-trimmed data rows below the header."""
        return self.sheets[title]["rows"][1:]

    def fail_next(self, method: str, exc: Exception, times: int = 1) -> None:
        self._failures.setdefault(method, []).extend([exc] * times)

    def _enter(self, method: str, range_a1: str = None) -> None:
        self.calls.append((method, range_a1))
        pending = self._failures.get(method)
        if pending:
            raise pending.pop(0)

    def _sheet(self, title: str) -> Dict:
        # Range sheet names are matched case-insensitively, as the API does
        for name, sheet in self.sheets.items():
            if name.lower() == title.lower():
                return sheet
        raise RemoteError(f"Unable to parse range: {title}", status=400,
                          body='{"error": "Unable to parse range"}')

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    # ---- SheetsHttpClient interface ----

    def get_values(self, token: str, range_a1: str) -> List[List[str]]:
        with self._lock:
            self._enter("get_values", range_a1)
            title, first, last = parse_a1(range_a1)
            rows = self._sheet(title)["rows"]
            selected = rows[first - 1:last] if last is not None else rows[first - 1:]
            out = [_trim(r) for r in selected]
            while out and not out[-1]:
                out.pop()
            return out

    def append_values(self, token: str, range_a1: str, rows) -> Dict:
        with self._lock:
            self._enter("append_values", range_a1)
            title, _, _ = parse_a1(range_a1)
            stored = self._sheet(title)["rows"]
            last_filled = max((i for i, r in enumerate(stored) if any(c != "" for c in r)),
                              default=-1)
            position = last_filled + 1
            for offset, row in enumerate(rows):
                index = position + offset
                if index < len(stored):
                    stored[index] = [str(c) for c in row]
                else:
                    stored.append([str(c) for c in row])
            return {"updates": {"updatedRows": len(rows)}}

    def update_values(self, token: str, range_a1: str, rows) -> Dict:
        with self._lock:
            self._enter("update_values", range_a1)
            title, first, _ = parse_a1(range_a1)
            stored = self._sheet(title)["rows"]
            for offset, row in enumerate(rows):
                index = first - 1 + offset
                while len(stored) <= index:
                    stored.append([])
                current = list(stored[index])
                if len(current) < len(row):
                    current.extend([""] * (len(row) - len(current)))
                current[:len(row)] = [str(c) for c in row]
                stored[index] = current
            return {"updatedRows": len(rows)}

    def get_sheet_properties(self, token: str) -> List[SheetProperties]:
        with self._lock:
            self._enter("get_sheet_properties")
            return [SheetProperties(sheetId=s["id"], title=title)
                    for title, s in self.sheets.items()]

    def batch_update(self, token: str, requests_) -> Dict:
        with self._lock:
            self._enter("batch_update")
            for request in requests_:
                span = request["deleteDimension"]["range"]
                self.delete_requests.append(dict(span))
                sheet = next(s for s in self.sheets.values() if s["id"] == span["sheetId"])
                start, end = span["startIndex"], span["endIndex"]
                if len(sheet["rows"]) - (end - start) <= 1:
                    raise RemoteError(
                        "You can't delete all the rows on the sheet.",
                        status=400,
                        body='{"error": {"code": 400}}',
                    )
                del sheet["rows"][start:end]
            return {"replies": [{} for _ in requests_]}


class StubTokenProvider:
    """Async token provider returning a fixed token and counting calls."""

    def __init__(self, token: str = "test-token"):
        self.token = token
        self.calls = 0

    async def get_access_token(self) -> str:
        self.calls += 1
        return self.token


@pytest.fixture(scope="session")
def rsa_private_key_pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def service_account_info(rsa_private_key_pem) -> Dict[str, str]:
    return {
        "type": "service_account",
        "client_email": "atlas-reader@example-project.iam.gserviceaccount.com",
        "private_key": rsa_private_key_pem,
        "token_uri": "https://oauth2.googleapis.com/token",
    }


@pytest.fixture
def fake_backend() -> FakeSheetsBackend:
    backend = FakeSheetsBackend()
    backend.add_sheet("Communication", [COMMUNICATION_HEADERS], sheet_id=0)
    backend.add_sheet("Commercial", [COMMERCIAL_HEADERS], sheet_id=1718)
    backend.add_sheet("Journal", [JOURNAL_HEADERS], sheet_id=42)
    return backend


@pytest.fixture
def stub_tokens() -> StubTokenProvider:
    return StubTokenProvider()


@pytest.fixture
def sheet_store(fake_backend, stub_tokens) -> SheetStore:
    return SheetStore(fake_backend, stub_tokens, default_tables(DEFAULT_RANGES))
