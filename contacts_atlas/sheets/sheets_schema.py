"""
Header alias resolution for spreadsheet tables.

Maps canonical field names to column positions using ordered alias lists,
tolerant of header casing, spacing and accents, and builds positional rows
from canonical field values.
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

# Sentinel column index for a canonical field with no matching header
ABSENT = -1

# Canonical field -> accepted header spellings, in priority order.
# Spellings are compared against normalized headers (see normalize_header).
HEADER_ALIASES: Dict[str, List[str]] = {
    "pseudo": ["pseudo"],
    "entreprise": ["entreprise"],
    "prenom": ["prénom", "prenom"],
    "nom": ["nom"],
    "idDiscord": ["id discord", "discord"],
    "email": ["email", "e-mail"],
    "pays": ["pays"],
    "ville": ["ville"],
    "region": ["region", "region/etat", "région", "region/état"],
    "langues": ["langue(s) parlée(s)", "langues parlées", "langues"],
    "ndaSignee": ["nda signée", "nda signee", "nda"],
    "referent": ["referent", "réferent", "référent"],
    "notes": ["notes"],
    "latitude": ["latitude", "lat"],
    "longitude": ["longitude", "lon"],
    "lock": ["lock"],
    "contacter": [
        "contacter",
        "contacter ?",
        "à contacter",
        "a contacter",
        "ok pour contact",
        "contact ok",
        "contact ok ?",
        "contacté",
        "contacté ?",
        "contacte",
        "deja contacté",
        "déjà contacté",
        "déja contacté",
    ],
    "twitter": ["twitter"],
    "instagram": ["instagram"],
    "tiktok": ["tiktok"],
    "youtube": ["youtube"],
    "linkedin": ["linkedin"],
    "twitch": ["twitch"],
    "autre": ["autre"],
}


def normalize_header(header: str) -> str:
    """Trim, lowercase and collapse internal whitespace."""
    return re.sub(r"\s+", " ", (header or "").strip().lower())


def fold_accents(text: str) -> str:
    """Strip combining diacritics ("Région" -> "Region")."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def header_indices(header_row: Sequence[str]) -> Dict[str, int]:
    """
    Build a normalized-header -> column lookup.

    A header repeated in the row maps to its last occurrence.
    """
    return {normalize_header(h): i for i, h in enumerate(header_row)}


def resolve_columns(header_row: Sequence[str],
                    alias_table: Mapping[str, Sequence[str]] = None) -> Dict[str, int]:
    """
    Resolve canonical field names to column positions.

    For each canonical field the alias list is walked in priority order and
    the first alias present among the normalized headers wins. When no alias
    matches literally, a second pass compares accent-folded forms. Fields that
    still do not match resolve to ABSENT, which callers treat as "not
    readable/writable in this table", never as an error.

    Args:
        header_row: Raw header strings
        alias_table: Canonical field -> ordered aliases (defaults to HEADER_ALIASES)

    Returns:
        Mapping of every canonical field to a column index or ABSENT
    """
    aliases_by_field = HEADER_ALIASES if alias_table is None else alias_table
    indices = header_indices(header_row)
    folded = {fold_accents(k): v for k, v in indices.items()}

    columns: Dict[str, int] = {}
    for canonical, aliases in aliases_by_field.items():
        column = next((indices[a] for a in aliases if a in indices), ABSENT)
        if column == ABSENT:
            column = next(
                (folded[fold_accents(a)] for a in aliases if fold_accents(a) in folded),
                ABSENT,
            )
        columns[canonical] = column
    return columns


def build_row(header_row: Sequence[str],
              field_values: Mapping[str, Optional[object]],
              base_row: Sequence[str] = None,
              alias_table: Mapping[str, Sequence[str]] = None) -> List[str]:
    """
    Produce a positional row sized to the header.

    Each resolved field present in ``field_values`` (and not None) is written
    as its trimmed string at its column. Every other position keeps the value
    from ``base_row``, or is empty when no base row is given. A base row longer
    than the header keeps its extra cells.

    Args:
        header_row: Raw header strings
        field_values: Canonical field -> value
        base_row: Existing row to merge onto
        alias_table: Canonical field -> ordered aliases

    Returns:
        The new raw row
    """
    row = [str(cell) if cell is not None else "" for cell in (base_row or [])]
    if len(row) < len(header_row):
        row.extend([""] * (len(header_row) - len(row)))

    for canonical, column in resolve_columns(header_row, alias_table).items():
        if column == ABSENT or canonical not in field_values:
            continue
        value = field_values[canonical]
        if value is None:
            continue
        row[column] = str(value).strip()
    return row


@dataclass(frozen=True)
class TableSchema:
    """Raw headers of one sheet range plus their resolved canonical columns."""

    headers: List[str]
    columns: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_headers(cls, headers: Sequence[str],
                     alias_table: Mapping[str, Sequence[str]] = None) -> "TableSchema":
        clean = [str(h) for h in headers]
        return cls(headers=clean, columns=resolve_columns(clean, alias_table))

    @property
    def width(self) -> int:
        return len(self.headers)

    def index(self, canonical: str) -> int:
        return self.columns.get(canonical, ABSENT)

    def has(self, canonical: str) -> bool:
        return self.index(canonical) != ABSENT

    def value(self, row: Sequence[str], canonical: str) -> str:
        """Trimmed cell for ``canonical`` in ``row`` ("" when absent or short)."""
        column = self.index(canonical)
        if column == ABSENT or column >= len(row):
            return ""
        cell = row[column]
        return "" if cell is None else str(cell).strip()

    def resolved_fields(self) -> List[str]:
        return [name for name, column in self.columns.items() if column != ABSENT]
