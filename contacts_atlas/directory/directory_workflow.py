"""
High-level orchestrator for the contact directory.

Coordinates cached reads, geocoding enrichment and mutations, providing a
single interface for the UI layer. Each successful mutation is followed by a
best-effort journal entry and a forced cache refresh.
"""

from dataclasses import replace
from typing import Callable, Dict, List, Mapping, Optional

from ..auth.auth_errors import AuthError
from ..config.config_module import AtlasSettings, ConfigError, load_settings
from ..config.logger_module import log_info, log_warning
from ..cache.cache_errors import CacheError
from ..cache.cache_offline import OfflineCache
from ..cache.cache_read import CacheEntry, ReadCache
from ..geocode.geocode_cache import cache_key
from ..geocode.geocode_gazetteer import Gazetteer
from ..geocode.geocode_resolver import GeocodeResolver
from ..journal.journal_recorder import JournalAction, JournalRecorder
from ..sheets.sheets_errors import SheetsError
from ..sheets.sheets_models import MutationResult, Record, derive_name, record_id_for, parse_record_id
from ..sheets.sheets_store import SheetStore


class ContactDirectory:
    """
    Wires SheetStore, ReadCache, GeocodeResolver and JournalRecorder.

    Mutations are never applied to local state optimistically: the UI sees a
    change only through the refresh that follows a successful write.
    """

    def __init__(self,
                 store: SheetStore,
                 cache: ReadCache,
                 resolver: GeocodeResolver,
                 journal: JournalRecorder):
        """
        Initialize the directory.

        Args:
            store: Spreadsheet store
            cache: Read cache over the store
            resolver: Geocoder for records lacking exact coordinates
            journal: Audit journal
        """
        self.store = store
        self.cache = cache
        self.resolver = resolver
        self.journal = journal

        # table -> place key -> last enriched record for that place
        self._geocoded: Dict[str, Dict[str, Record]] = {}

    @classmethod
    def from_settings(cls, settings: AtlasSettings = None) -> "ContactDirectory":
        """
        Build the full stack from settings (loaded from the environment if omitted).

        An unusable offline cache path disables the offline tier instead of
        failing.
        """
        settings = settings or load_settings()
        gazetteer = Gazetteer()
        store = SheetStore.from_settings(settings, gazetteer=gazetteer)

        offline = None
        if settings.offline_enabled:
            try:
                offline = OfflineCache(settings.offline_cache_path)
            except CacheError as e:
                log_warning(f"Offline cache disabled: {e}")

        cache = ReadCache(store, offline=offline, ttl_seconds=settings.cache_ttl_seconds)
        resolver = GeocodeResolver.from_settings(settings, gazetteer=gazetteer)
        journal = JournalRecorder.from_settings(settings, client=store.client, tokens=store.tokens)

        log_info(
            f"ContactDirectory initialized (tables={', '.join(store.tables)}, "
            f"offline={'on' if offline else 'off'})"
        )
        return cls(store, cache, resolver, journal)

    async def load(self, table: str = "communication", force_refresh: bool = False) -> CacheEntry:
        """
        Snapshot of a table through the read cache.

        Places geocoded by earlier enrichment passes keep their answers, also
        after the snapshot has been re-read from the network.
        """
        entry = await self.cache.get(table, force_refresh=force_refresh)
        records = self._restore_geocodes(table, entry.records)
        if records is entry.records:
            return entry
        applied = self.cache.apply_records(table, records, snapshot=entry.snapshot)
        if applied is not None:
            return replace(applied, source=entry.source, stale=entry.stale)
        return replace(entry, snapshot=replace(entry.snapshot, records=records))

    async def enrich(self, table: str = "communication",
                     on_update: Callable[[Record], None] = None) -> List[Record]:
        """
        Load a table and geocode its records lacking exact coordinates.

        Results are written back to the cached snapshot, and places already
        attempted are not sent to the geocoder again.

        Returns:
            Records in sheet order, enriched where a lookup succeeded
        """
        entry = await self.load(table)
        enriched = await self.resolver.enrich(entry.records, on_update=on_update)

        remembered = self._geocoded.setdefault(table, {})
        for record in enriched:
            if record.geocode_attempted:
                remembered[_place_key(record)] = record

        self.cache.apply_records(table, enriched, snapshot=entry.snapshot)
        return enriched

    def _restore_geocodes(self, table: str, records: List[Record]) -> List[Record]:
        remembered = self._geocoded.get(table)
        if not remembered:
            return records

        restored = []
        changed = False
        for record in records:
            prior = remembered.get(_place_key(record))
            if prior is not None and record.needs_geocoding:
                record = replace(
                    record,
                    latitude=prior.latitude,
                    longitude=prior.longitude,
                    has_exact_coords=prior.has_exact_coords,
                    geocode_attempted=True,
                )
                changed = True
            restored.append(record)
        return restored if changed else records

    def _known_record(self, table: str, record_id) -> Optional[Record]:
        entry = self.cache.peek(table)
        if entry is None:
            return None
        try:
            return entry.snapshot.find(record_id_for(parse_record_id(record_id)))
        except SheetsError:
            return None

    async def _after_mutation(self, table: str, action: JournalAction,
                              record_id: str = None, display_name: str = None,
                              detail: str = None) -> None:
        await self.journal.append_entry(action, table, record_id=record_id,
                                        display_name=display_name, detail=detail)
        try:
            await self.cache.get(table, force_refresh=True)
        except (ConfigError, AuthError, SheetsError) as e:
            log_warning(f"Refresh after {action.value} on '{table}' failed: {e}")

    async def add(self, table: str, fields: Mapping[str, object]) -> MutationResult:
        """Append a contact to ``table``."""
        result = await self.store.append(table, fields)
        if result.ok:
            name = derive_name(
                {k: None if v is None else str(v) for k, v in fields.items()},
                self.store.table(table).name_fallbacks,
            )
            await self._after_mutation(table, JournalAction.ADD, display_name=name)
        return result

    async def edit(self, record_id, fields: Mapping[str, object],
                   table: str = "communication") -> MutationResult:
        """Update the named fields of a contact, keeping the others."""
        known = self._known_record(table, record_id)
        result = await self.store.update(record_id, fields, table)
        if result.ok:
            changed = sorted(k for k, v in fields.items() if v is not None)
            await self._after_mutation(
                table,
                JournalAction.EDIT,
                record_id=str(record_id),
                display_name=known.name if known else None,
                detail=f"Champs: {', '.join(changed)}" if changed else None,
            )
        return result

    async def remove(self, record_id, table: str = "communication") -> MutationResult:
        """Delete a contact (the last remaining row is blanked instead)."""
        known = self._known_record(table, record_id)
        result = await self.store.delete(record_id, table)
        if result.ok:
            await self._after_mutation(
                table,
                JournalAction.DELETE,
                record_id=str(record_id),
                display_name=known.name if known else None,
            )
        return result


def _place_key(record: Record) -> str:
    return cache_key(record.city, record.country)
