"""
Read-through cache over SheetStore reads.

Serves a fresh in-memory snapshot without I/O, otherwise paints from the
offline cache while a background read catches up, otherwise waits for the
network. When the network fails, the last good data is returned marked
stale instead of raising.
"""

import asyncio
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence, Set

from ..auth.auth_errors import AuthError
from ..config.config_module import ConfigError
from ..config.logger_module import log_info, log_warning, log_error
from ..sheets.sheets_errors import SheetsError
from ..sheets.sheets_models import Record, TableSnapshot
from ..sheets.sheets_schema import TableSchema
from ..sheets.sheets_store import SheetStore
from .cache_errors import CacheError
from .cache_offline import OfflineCache


READ_ERRORS = (ConfigError, AuthError, SheetsError)

SOURCE_MEMORY = "memory"
SOURCE_OFFLINE = "offline"
SOURCE_NETWORK = "network"


@dataclass(frozen=True)
class CacheEntry:
    """A table snapshot, when it was fetched, and where this answer came from."""

    table: str
    snapshot: TableSnapshot
    fetched_at: float
    stale: bool = False
    source: str = SOURCE_NETWORK

    @property
    def schema(self) -> TableSchema:
        return self.snapshot.schema

    @property
    def records(self) -> List[Record]:
        return self.snapshot.records


class ReadCache:
    """
    Per-table cache with a TTL, an optional offline tier and observers.

    Every network read takes a sequence number when it starts. A result whose
    number is lower than the last one applied for the same table is dropped,
    so a slow earlier read never overwrites a newer one.
    """

    def __init__(self,
                 store: SheetStore,
                 offline: OfflineCache = None,
                 ttl_seconds: float = 120.0,
                 clock: Callable[[], float] = time.time):
        """
        Initialize the cache.

        Args:
            store: Source of table snapshots
            offline: Persisted cache (None outside an offline-capable runtime)
            ttl_seconds: Age under which a memory entry is reused without I/O
            clock: Source of epoch seconds
        """
        self.store = store
        self.offline = offline
        self.ttl_seconds = ttl_seconds
        self._clock = clock

        self._entries: Dict[str, CacheEntry] = {}
        self._next_seq = 0
        self._applied_seq: Dict[str, int] = {}
        self._observers: List[Callable[[CacheEntry], None]] = []
        self._tasks: Set[asyncio.Task] = set()

    def subscribe(self, callback: Callable[[CacheEntry], None]) -> Callable[[], None]:
        """
        Register a callback invoked with every applied result.

        Returns:
            A function that removes the callback
        """
        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def peek(self, table: str) -> Optional[CacheEntry]:
        """Current memory entry, without I/O or freshness checks."""
        return self._entries.get(table)

    def apply_records(self, table: str, records: Sequence[Record],
                      snapshot: TableSnapshot = None) -> Optional[CacheEntry]:
        """
        Replace the records of the memory entry, keeping its freshness.

        Used to keep geocoding results attached to the cached snapshot.

        Args:
            table: Logical table name
            records: Records derived from the current snapshot
            snapshot: Snapshot the records were derived from; when given and
                no longer current, nothing is applied

        Returns:
            The updated entry, or None when nothing was applied
        """
        current = self._entries.get(table)
        if current is None:
            return None
        if snapshot is not None and current.snapshot is not snapshot:
            log_info(f"Skipping record update for '{table}': snapshot was replaced")
            return None

        entry = replace(current, snapshot=replace(current.snapshot, records=list(records)))
        self._entries[table] = entry
        self._notify(entry)
        return entry

    def invalidate(self, table: str = None) -> None:
        if table is None:
            self._entries.clear()
        else:
            self._entries.pop(table, None)

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.fetched_at < self.ttl_seconds

    async def get(self, table: str, force_refresh: bool = False) -> CacheEntry:
        """
        Return a snapshot of ``table``.

        Args:
            table: Logical table name
            force_refresh: Skip the memory and offline tiers and read the network

        Returns:
            CacheEntry; ``stale`` is set when the data is older than the TTL
            and could not be refreshed

        Raises:
            ConfigError, AuthError, SheetsError: When the read fails and no
                cached data exists
        """
        entry = self._entries.get(table)
        if not force_refresh and entry is not None and self._is_fresh(entry):
            log_info(f"Cache HIT for '{table}' ({self._clock() - entry.fetched_at:.0f}s old)")
            return replace(entry, source=SOURCE_MEMORY)

        log_info(f"Cache MISS for '{table}'" + (" (forced)" if force_refresh else ""))

        if not force_refresh:
            offline_entry = await self._load_offline(table)
            if offline_entry is not None:
                self._schedule_refresh(table)
                return offline_entry

        try:
            return await self.refresh(table)
        except READ_ERRORS as e:
            fallback = self._entries.get(table) or await self._load_offline(table)
            if fallback is None:
                log_error(f"Read of '{table}' failed with no cached data: {e}")
                raise
            log_warning(f"Read of '{table}' failed, serving cached data: {e}")
            return replace(fallback, stale=True)

    async def refresh(self, table: str) -> CacheEntry:
        """
        Read ``table`` from the network and apply the result.

        Returns:
            The applied entry, or the newer one already in place when this
            result arrived out of order
        """
        self._next_seq += 1
        seq = self._next_seq

        snapshot = await self.store.read_all(table)
        return await self._apply(table, seq, snapshot)

    async def _apply(self, table: str, seq: int, snapshot: TableSnapshot) -> CacheEntry:
        current = self._entries.get(table)
        if current is not None and seq < self._applied_seq.get(table, 0):
            log_info(f"Discarding out-of-order read #{seq} of '{table}'")
            return current

        fetched_at = self._clock()
        entry = CacheEntry(table=table, snapshot=snapshot, fetched_at=fetched_at,
                           source=SOURCE_NETWORK)
        self._applied_seq[table] = seq
        self._entries[table] = entry

        if self.offline is not None:
            try:
                await asyncio.to_thread(self.offline.save, table, snapshot.values, fetched_at)
            except CacheError as e:
                log_warning(f"Offline cache not updated for '{table}': {e}")

        self._notify(entry)
        return entry

    def _notify(self, entry: CacheEntry) -> None:
        for callback in list(self._observers):
            try:
                callback(entry)
            except Exception as e:
                log_error(f"Cache observer {callback!r} failed for '{entry.table}': {e}")

    async def _load_offline(self, table: str) -> Optional[CacheEntry]:
        if self.offline is None:
            return None
        try:
            stored = await asyncio.to_thread(self.offline.load, table)
        except CacheError as e:
            log_warning(f"Offline cache unavailable for '{table}': {e}")
            return None
        if stored is None:
            return None

        snapshot = self.store.decode(table, stored.values, fetched_at=stored.fetched_at)
        return CacheEntry(
            table=table,
            snapshot=snapshot,
            fetched_at=stored.fetched_at,
            stale=self._clock() - stored.fetched_at >= self.ttl_seconds,
            source=SOURCE_OFFLINE,
        )

    def _schedule_refresh(self, table: str) -> None:
        task = asyncio.get_running_loop().create_task(self._background_refresh(table))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _background_refresh(self, table: str) -> None:
        try:
            await self.refresh(table)
        except READ_ERRORS as e:
            log_warning(f"Background refresh of '{table}' failed, keeping offline data: {e}")

    async def wait_for_background(self) -> None:
        """Wait for every scheduled background refresh to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
