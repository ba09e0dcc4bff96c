"""
Data model for spreadsheet-backed contact tables.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .sheets_errors import RowStateError
from .sheets_schema import TableSchema


RECORD_ID_PREFIX = "sheet-"


@dataclass(frozen=True)
class TableConfig:
    """
    One logical table: a named sheet range and its display-name policy.

    ``name_fallbacks`` lists groups of canonical fields tried in order to
    derive a display name; the values of a group are joined with a space and
    the first non-empty result wins.
    """

    name: str
    range_a1: str
    sheet_name: str
    name_fallbacks: Tuple[Tuple[str, ...], ...] = (("pseudo",),)


COMMUNICATION_NAMES = (("pseudo",),)
COMMERCIAL_NAMES = (("pseudo",), ("prenom", "nom"), ("entreprise",))


@dataclass(frozen=True)
class Record:
    """
    One contact decoded from a data row.

    ``row_index`` is the 0-based position among data rows in the most recent
    full read. It is not a persistent key: if the sheet is reordered before a
    write, the same index can point at another physical row.
    """

    row_index: int
    name: str
    country: str = ""
    region: str = ""
    city: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    has_exact_coords: bool = False
    geocode_attempted: bool = False
    fields: Dict[str, str] = field(default_factory=dict)
    raw: Dict[str, str] = field(default_factory=dict)

    @property
    def record_id(self) -> str:
        return record_id_for(self.row_index)

    @property
    def has_coords(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def needs_geocoding(self) -> bool:
        return (not self.has_exact_coords
                and not self.geocode_attempted
                and bool(self.country.strip()))

    def raw_value(self, *headers: str) -> str:
        for header in headers:
            value = self.raw.get(header)
            if value is not None and value.strip():
                return value.strip()
        return ""

    @property
    def is_locked(self) -> bool:
        value = (self.fields.get("lock") or self.raw_value("Lock", "lock")).strip().lower()
        return value in ("true", "oui", "1")

    @property
    def is_nda_signed(self) -> bool:
        value = (self.fields.get("ndaSignee")
                 or self.raw_value("NDA Signée", "NDA Signee")).strip().lower()
        return value == "oui"

    def display_label(self, table_name: str) -> str:
        """Map label: commercial is "Nom Prénom - Pseudo / Entreprise", others the name."""
        if table_name != "commercial":
            return self.fields.get("pseudo", "").strip() or self.name or "?"

        name_part = " ".join(
            v for v in (self.fields.get("nom", ""), self.fields.get("prenom", "")) if v
        ).strip()
        pseudo = self.fields.get("pseudo", "").strip()
        company = self.fields.get("entreprise", "").strip()

        label = name_part
        if pseudo:
            label = f"{label} - {pseudo}" if label else pseudo
        if company:
            label = f"{label} / {company}" if label else company
        return label or "?"


@dataclass(frozen=True)
class TableSnapshot:
    """Result of one full read: schema, decoded records and the raw grid."""

    table_name: str
    schema: TableSchema
    records: List[Record]
    values: List[List[str]]
    fetched_at: float = field(default_factory=time.time)

    @property
    def data_row_count(self) -> int:
        return max(len(self.values) - 1, 0)

    def find(self, record_id: str) -> Optional[Record]:
        return next((r for r in self.records if r.record_id == record_id), None)


@dataclass(frozen=True)
class MutationResult:
    """Outcome of append/update/delete; failures carry the message instead of raising."""

    ok: bool
    error: Optional[str] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, message: str = None) -> "MutationResult":
        return cls(ok=True, message=message)

    @classmethod
    def failure(cls, exc: Exception) -> "MutationResult":
        return cls(ok=False, error=str(exc) or type(exc).__name__,
                   error_kind=type(exc).__name__)


def derive_name(values: Mapping[str, Optional[str]],
                fallbacks: Sequence[Sequence[str]]) -> str:
    """First non-empty fallback group, its values joined with a space."""
    for group in fallbacks:
        parts = [str(values.get(f) or "").strip() for f in group]
        name = " ".join(p for p in parts if p)
        if name:
            return name
    return ""


def record_id_for(row_index: int) -> str:
    return f"{RECORD_ID_PREFIX}{row_index}"


def parse_record_id(record_id: Union[str, int]) -> int:
    """
    Decode ``sheet-{index}`` (or a bare index) into a row index.

    Raises:
        RowStateError: If the id is malformed or negative
    """
    if isinstance(record_id, bool):
        raise RowStateError(f"Invalid record id: {record_id!r}")
    if isinstance(record_id, int):
        row_index = record_id
    else:
        text = str(record_id or "").strip()
        if text.startswith(RECORD_ID_PREFIX):
            text = text[len(RECORD_ID_PREFIX):]
        try:
            row_index = int(text)
        except ValueError:
            raise RowStateError(f"Invalid record id: {record_id!r} (expected sheet-<index>)")
    if row_index < 0:
        raise RowStateError(f"Invalid record id: {record_id!r} (negative row index)")
    return row_index


def pad_row(row: Sequence[object], width: int) -> List[str]:
    out = ["" if cell is None else str(cell) for cell in row]
    if len(out) < width:
        out.extend([""] * (width - len(out)))
    return out
