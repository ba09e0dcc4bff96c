"""
Session cache of geocoding answers, keyed by normalized "city|country".
"""

from typing import Dict, Optional

from .geocode_gazetteer import Coordinates


def cache_key(city: str, country: str) -> str:
    return f"{(city or '').strip().lower()}|{(country or '').strip().lower()}"


class GeocodeCache:
    """
    Write-once, never-expiring map of resolved places for one session.

    Only successful lookups are stored; a failed lookup is retried on the next
    pass.
    """

    def __init__(self):
        self._entries: Dict[str, Coordinates] = {}
        self.hits = 0
        self.misses = 0

    def get(self, city: str, country: str) -> Optional[Coordinates]:
        found = self._entries.get(cache_key(city, country))
        if found is None:
            self.misses += 1
        else:
            self.hits += 1
        return found

    def store(self, city: str, country: str, coords: Coordinates) -> None:
        self._entries.setdefault(cache_key(city, country), coords)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, int]:
        return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}
