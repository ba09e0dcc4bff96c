"""
Row-addressed CRUD over the contact tables of one spreadsheet.

Records are addressed by their 0-based position among data rows; the header
occupies sheet row 1, so data row ``i`` lives on sheet row ``i + 2``. Headers
are re-read before every write so column moves on the sheet are honoured.
"""

import asyncio
import math
import time
from typing import Dict, List, Mapping, Optional, Sequence

from ..auth.auth_errors import AuthError
from ..auth.auth_token import TokenManager
from ..config.config_module import AtlasSettings, ConfigError, sheet_name_from_range
from ..config.logger_module import log_info, log_error
from ..geocode.geocode_gazetteer import Gazetteer
from .sheets_client import SheetsHttpClient, a1_range, delete_rows_request
from .sheets_errors import RowStateError, SchemaError, SheetsError
from .sheets_models import (
    COMMERCIAL_NAMES,
    COMMUNICATION_NAMES,
    MutationResult,
    Record,
    TableConfig,
    TableSnapshot,
    derive_name,
    pad_row,
    parse_record_id,
)
from .sheets_schema import TableSchema, build_row


MUTATION_ERRORS = (ConfigError, AuthError, SheetsError)


def default_tables(table_ranges: Mapping[str, str]) -> Dict[str, TableConfig]:
    """Build the communication/commercial table configs from their ranges."""
    fallbacks = {"communication": COMMUNICATION_NAMES, "commercial": COMMERCIAL_NAMES}
    tables = {}
    for name, range_a1 in table_ranges.items():
        tables[name] = TableConfig(
            name=name,
            range_a1=range_a1,
            sheet_name=sheet_name_from_range(range_a1, name.capitalize()),
            name_fallbacks=fallbacks.get(name, COMMUNICATION_NAMES),
        )
    return tables


def parse_coordinate(text: str, limit: float) -> Optional[float]:
    """Parse a stored coordinate, accepting a comma decimal separator."""
    cleaned = (text or "").strip().replace(",", ".")
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(value) or abs(value) > limit:
        return None
    return value


class SheetStore:
    """
    Reads and writes contact rows through the spreadsheet HTTP API.

    The store remembers how many data rows each table had at its last full
    read and adjusts that count after its own appends and deletes, so a
    delete against a table that shrank underneath the caller is refused.
    Nothing guards the window between reading a row and writing it back:
    an external edit landing in that window is overwritten.
    """

    def __init__(self,
                 client: Optional[SheetsHttpClient],
                 tokens: Optional[TokenManager],
                 tables: Mapping[str, TableConfig],
                 gazetteer: Gazetteer = None):
        """
        Initialize the store.

        Args:
            client: Spreadsheet HTTP client (None when no spreadsheet is configured)
            tokens: Bearer-token provider (None when no credential is configured)
            tables: Logical table name -> table config
            gazetteer: Static lookup used for approximate coordinates
        """
        self.client = client
        self.tokens = tokens
        self.tables = dict(tables)
        self.gazetteer = gazetteer or Gazetteer()
        self._known_rows: Dict[str, int] = {}

    @classmethod
    def from_settings(cls, settings: AtlasSettings, gazetteer: Gazetteer = None) -> "SheetStore":
        """
        Build a store from settings.

        A missing credential or spreadsheet id does not fail here; every
        operation raises ConfigError instead.
        """
        client = None
        if settings.spreadsheet_id:
            client = SheetsHttpClient(settings.spreadsheet_id, timeout=settings.http_timeout)
        tokens = None
        if settings.credential is not None:
            tokens = TokenManager(settings.credential, timeout=settings.http_timeout)
        return cls(client, tokens, default_tables(settings.table_ranges), gazetteer)

    def table(self, table_name: str) -> TableConfig:
        try:
            return self.tables[table_name]
        except KeyError:
            raise ConfigError(
                f"Unknown table '{table_name}' (configured: {', '.join(self.tables)})"
            )

    def known_row_count(self, table_name: str) -> Optional[int]:
        return self._known_rows.get(table_name)

    async def _token(self) -> str:
        if self.tokens is None:
            raise ConfigError(
                "Service account key not configured (GOOGLE_SERVICE_ACCOUNT_KEY)."
            )
        if self.client is None:
            raise ConfigError(
                "Spreadsheet id not configured (GOOGLE_SHEETS_SPREADSHEET_ID)."
            )
        return await self.tokens.get_access_token()

    async def _get_values(self, token: str, range_a1: str) -> List[List[str]]:
        return await asyncio.to_thread(self.client.get_values, token, range_a1)

    async def _header_row(self, token: str, config: TableConfig) -> List[str]:
        values = await self._get_values(token, a1_range(config.sheet_name, "A1:Z1"))
        if not values or not any(h.strip() for h in values[0]):
            raise SchemaError(f"Sheet '{config.sheet_name}' has no header row")
        return values[0]

    # ---- reads ----

    async def read_all(self, table_name: str) -> TableSnapshot:
        """
        Fetch the header and data rows of a table and decode them.

        Args:
            table_name: Logical table name

        Returns:
            Snapshot with schema, records and the raw grid

        Raises:
            ConfigError: If credentials or spreadsheet id are missing
            AuthError: On token failure
            RemoteError: On a non-2xx response
        """
        config = self.table(table_name)
        token = await self._token()
        values = await self._get_values(token, config.range_a1)

        snapshot = self.decode(table_name, values)
        self._known_rows[table_name] = snapshot.data_row_count
        log_info(
            f"Read {len(snapshot.records)} record(s) from '{config.sheet_name}' "
            f"({snapshot.data_row_count} data rows)"
        )
        return snapshot

    def decode(self, table_name: str, values: Sequence[Sequence[str]],
               fetched_at: float = None) -> TableSnapshot:
        """
        Decode a raw values grid (header first) into records.

        Rows without a usable display name are skipped; their positions still
        count, so record indices stay aligned with sheet rows.
        """
        config = self.table(table_name)
        grid = [["" if c is None else str(c) for c in row] for row in values]
        schema = TableSchema.from_headers(grid[0] if grid else [])

        records = []
        for row_index, row in enumerate(grid[1:]):
            record = self._decode_row(config, schema, row_index, row)
            if record is not None:
                records.append(record)

        return TableSnapshot(
            table_name=table_name,
            schema=schema,
            records=records,
            values=grid,
            fetched_at=time.time() if fetched_at is None else fetched_at,
        )

    def _decode_row(self, config: TableConfig, schema: TableSchema,
                    row_index: int, row: Sequence[str]) -> Optional[Record]:
        fields = {name: schema.value(row, name) for name in schema.resolved_fields()}
        name = derive_name(fields, config.name_fallbacks)
        if not name:
            return None

        raw = {
            header: (row[i].strip() if i < len(row) else "")
            for i, header in enumerate(schema.headers)
            if header.strip()
        }

        country = fields.get("pays", "")
        city = fields.get("ville", "")
        latitude = parse_coordinate(fields.get("latitude", ""), 90.0)
        longitude = parse_coordinate(fields.get("longitude", ""), 180.0)
        exact = latitude is not None and longitude is not None

        if not exact:
            approx = self.gazetteer.lookup(city, country)
            latitude, longitude = (approx.latitude, approx.longitude) if approx else (None, None)

        return Record(
            row_index=row_index,
            name=name,
            country=country,
            region=fields.get("region", ""),
            city=city,
            latitude=latitude,
            longitude=longitude,
            has_exact_coords=exact,
            fields=fields,
            raw=raw,
        )

    # ---- writes (raising) ----

    async def append_row(self, table_name: str, field_values: Mapping[str, object]) -> List[str]:
        """
        Append one row built from canonical field values against fresh headers.

        Returns:
            The raw row written
        """
        config = self.table(table_name)
        token = await self._token()
        headers = await self._header_row(token, config)

        row = build_row(headers, field_values)
        await asyncio.to_thread(
            self.client.append_values, token, a1_range(config.sheet_name, "A:Z"), [row]
        )

        if table_name in self._known_rows:
            self._known_rows[table_name] += 1
        log_info(f"Appended row to '{config.sheet_name}'")
        return row

    async def update_row(self, record_id, field_values: Mapping[str, object],
                         table_name: str = "communication") -> List[str]:
        """
        Merge field values onto an existing row and write it back in place.

        Fields not named in ``field_values`` keep their current cell content.

        Returns:
            The raw row written

        Raises:
            RowStateError: If the id is malformed or the target row is empty
        """
        config = self.table(table_name)
        row_index = parse_record_id(record_id)
        sheet_row = row_index + 2
        token = await self._token()

        row_range = a1_range(config.sheet_name, f"A{sheet_row}:Z{sheet_row}")
        headers, row_values = await asyncio.gather(
            self._header_row(token, config),
            self._get_values(token, row_range),
        )

        current = row_values[0] if row_values else []
        if not any(cell.strip() for cell in current):
            raise RowStateError(
                f"Row {sheet_row} of '{config.sheet_name}' is empty; reload before editing"
            )

        merged = build_row(headers, field_values, base_row=current)
        await asyncio.to_thread(self.client.update_values, token, row_range, [merged])
        log_info(f"Updated row {sheet_row} of '{config.sheet_name}'")
        return merged

    async def _sheet_id(self, token: str, sheet_name: str) -> int:
        properties = await asyncio.to_thread(self.client.get_sheet_properties, token)
        wanted = sheet_name.strip().lower()
        log_info(
            f"Looking up sheet '{sheet_name}' among: "
            f"{', '.join(p.title for p in properties)}"
        )
        for props in properties:
            if props.title.strip().lower() == wanted:
                return props.sheet_id
        raise SchemaError(
            f"Sheet '{sheet_name}' not found. Available sheets: "
            f"{', '.join(p.title for p in properties) or '(none)'}"
        )

    async def delete_row(self, record_id, table_name: str = "communication") -> str:
        """
        Remove a data row, or blank it when it is the only one left.

        Returns:
            "deleted" or "blanked"

        Raises:
            SchemaError: If the sheet is not found
            RowStateError: If the row is out of range, empty, or the table
                shrank since the last read
        """
        config = self.table(table_name)
        row_index = parse_record_id(record_id)
        sheet_row = row_index + 2
        token = await self._token()

        sheet_id = await self._sheet_id(token, config.sheet_name)
        values = await self._get_values(token, a1_range(config.sheet_name, "A:Z"))

        total_rows = len(values)
        data_rows = max(total_rows - 1, 0)

        known = self._known_rows.get(table_name)
        if known is not None and data_rows < known:
            raise RowStateError(
                f"'{config.sheet_name}' shrank from {known} to {data_rows} data rows "
                f"since the last read; reload before deleting"
            )
        if sheet_row > total_rows:
            raise RowStateError(
                f"Row {sheet_row} is out of range ('{config.sheet_name}' has "
                f"{data_rows} data rows)"
            )

        target = values[sheet_row - 1]
        if not any(cell.strip() for cell in target):
            raise RowStateError(f"Row {sheet_row} of '{config.sheet_name}' is already empty")

        if data_rows == 1:
            # The API refuses to delete the last data row; blank it instead
            width = max(len(values[0]), len(target))
            await asyncio.to_thread(
                self.client.update_values,
                token,
                a1_range(config.sheet_name, f"A{sheet_row}:Z{sheet_row}"),
                [pad_row([], width)],
            )
            outcome = "blanked"
        else:
            await asyncio.to_thread(
                self.client.batch_update,
                token,
                [delete_rows_request(sheet_id, row_index + 1, row_index + 2)],
            )
            outcome = "deleted"

        self._known_rows[table_name] = data_rows - 1
        log_info(f"Row {sheet_row} of '{config.sheet_name}' {outcome}")
        return outcome

    # ---- writes (result-returning) ----

    async def append(self, table_name: str, field_values: Mapping[str, object]) -> MutationResult:
        """Append a record; failures are returned, not raised."""
        try:
            await self.append_row(table_name, field_values)
        except MUTATION_ERRORS as e:
            log_error(f"Append to '{table_name}' failed: {e}")
            return MutationResult.failure(e)
        return MutationResult.success()

    async def update(self, record_id, field_values: Mapping[str, object],
                     table_name: str = "communication") -> MutationResult:
        """Update a record in place; failures are returned, not raised."""
        try:
            await self.update_row(record_id, field_values, table_name)
        except MUTATION_ERRORS as e:
            log_error(f"Update of {record_id!r} in '{table_name}' failed: {e}")
            return MutationResult.failure(e)
        return MutationResult.success()

    async def delete(self, record_id, table_name: str = "communication") -> MutationResult:
        """Delete (or blank) a record; failures are returned, not raised."""
        try:
            outcome = await self.delete_row(record_id, table_name)
        except MUTATION_ERRORS as e:
            log_error(f"Delete of {record_id!r} in '{table_name}' failed: {e}")
            return MutationResult.failure(e)
        return MutationResult.success(outcome)
