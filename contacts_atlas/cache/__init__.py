"""
Caching of table snapshots.

Main classes:
- ReadCache: TTL memory cache with offline first paint and observers
- OfflineCache: SQLite store of raw table grids
- CacheEntry: snapshot plus freshness metadata

Errors:
- CacheError: offline cache read/write failure
"""

from .cache_errors import CacheError
from .cache_offline import OfflineCache, OfflineEntry
from .cache_read import CacheEntry, ReadCache

__all__ = [
    "ReadCache",
    "CacheEntry",
    "OfflineCache",
    "OfflineEntry",
    "CacheError",
]
