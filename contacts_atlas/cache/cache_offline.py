"""
Persisted offline cache of raw table grids.

One SQLite row per logical table, upserted after every successful network
read. The stored grid is re-decoded on load so alias changes apply to
cached data too.
"""

import json
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..config.logger_module import log_info, log_error
from .cache_errors import CacheError


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS sheet_cache (
    contact_type TEXT PRIMARY KEY,
    data_json TEXT NOT NULL,
    fetched_at REAL NOT NULL
)
"""


@dataclass(frozen=True)
class OfflineEntry:
    contact_type: str
    values: List[List[str]]
    fetched_at: float


class OfflineCache:
    """
    SQLite-backed store keyed by logical table name.

    Every call opens its own connection, so instances can be used from
    worker threads.
    """

    def __init__(self, path: str):
        """
        Initialize the cache and create its table.

        Args:
            path: SQLite database file

        Raises:
            CacheError: If the database cannot be created
        """
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._connect()
            try:
                with conn:
                    conn.execute(SCHEMA_SQL)
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as e:
            raise CacheError(f"Failed to open offline cache {self.path}: {e}")
        log_info(f"OfflineCache using {self.path}")

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.path))

    def load(self, contact_type: str) -> Optional[OfflineEntry]:
        """
        Return the stored grid for a table, or None on a miss.

        Raises:
            CacheError: On database errors or an unreadable payload
        """
        try:
            conn = self._connect()
            try:
                row = conn.execute(
                    "SELECT data_json, fetched_at FROM sheet_cache WHERE contact_type = ?",
                    (contact_type,),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            log_error(f"Offline cache read failed for '{contact_type}': {e}")
            raise CacheError(f"Failed to read offline cache: {e}")

        if row is None:
            return None

        try:
            values = json.loads(row[0])
        except ValueError as e:
            raise CacheError(f"Corrupt offline cache entry for '{contact_type}': {e}")
        if not isinstance(values, list):
            raise CacheError(f"Corrupt offline cache entry for '{contact_type}'")

        return OfflineEntry(contact_type=contact_type, values=values, fetched_at=float(row[1]))

    def save(self, contact_type: str, values: List[List[str]], fetched_at: float) -> None:
        """
        Upsert the grid for a table.

        Raises:
            CacheError: On database errors
        """
        payload = json.dumps(values, ensure_ascii=False)
        try:
            conn = self._connect()
            try:
                with conn:
                    conn.execute(
                        "INSERT OR REPLACE INTO sheet_cache (contact_type, data_json, fetched_at) "
                        "VALUES (?, ?, ?)",
                        (contact_type, payload, fetched_at),
                    )
            finally:
                conn.close()
        except sqlite3.Error as e:
            log_error(f"Offline cache write failed for '{contact_type}': {e}")
            raise CacheError(f"Failed to write offline cache: {e}")

    def clear(self, contact_type: str = None) -> None:
        try:
            conn = self._connect()
            try:
                with conn:
                    if contact_type is None:
                        conn.execute("DELETE FROM sheet_cache")
                    else:
                        conn.execute(
                            "DELETE FROM sheet_cache WHERE contact_type = ?", (contact_type,)
                        )
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise CacheError(f"Failed to clear offline cache: {e}")
