"""
Tiered place resolver.

Resolves a (city, country) pair by trying the bundled gazetteer first, then
the session cache, then one throttled call to the external geocoder.
"""

import asyncio
from dataclasses import replace
from typing import Callable, List, Optional, Sequence, Tuple

from ..config.logger_module import log_info, log_warning
from .geocode_cache import GeocodeCache
from .geocode_client import NominatimClient
from .geocode_errors import GeocodingError
from .geocode_gazetteer import Coordinates, Gazetteer
from .geocode_rate_limiter import MinIntervalThrottle


class GeocodeResolver:
    """
    Converts place text into coordinates under a global request throttle.

    Records that already carry stored coordinates never reach the resolver.
    The cache is consulted before the throttle so repeated places cost no
    delay.
    """

    def __init__(self,
                 client: NominatimClient = None,
                 gazetteer: Gazetteer = None,
                 cache: GeocodeCache = None,
                 throttle: MinIntervalThrottle = None):
        """
        Initialize the resolver.

        Args:
            client: External geocoding client
            gazetteer: Static capitals/cities lookup
            cache: Session cache of external answers
            throttle: Shared throttle for external requests
        """
        self.client = client or NominatimClient()
        self.gazetteer = gazetteer or Gazetteer()
        self.cache = cache or GeocodeCache()
        self.throttle = throttle or MinIntervalThrottle()

    @classmethod
    def from_settings(cls, settings, gazetteer: Gazetteer = None) -> "GeocodeResolver":
        client = NominatimClient(
            base_url=settings.geocoder_url,
            user_agent=settings.geocoder_user_agent,
            language=settings.geocoder_language,
            request_timeout=settings.http_timeout,
        )
        return cls(client=client, gazetteer=gazetteer)

    async def resolve(self, city: str, country: str) -> Optional[Coordinates]:
        """
        Resolve a place, first success wins.

        Args:
            city: City name (may be blank)
            country: Country name

        Returns:
            Coordinates, or None when the place is unavailable this pass
        """
        coords, _ = await self.locate(city, country)
        return coords

    async def locate(self, city: str, country: str) -> Tuple[Optional[Coordinates], bool]:
        """
        Resolve a place and report whether the answer is exact.

        Gazetteer answers are city or capital approximations; only answers
        from the external geocoder (fresh or cached) count as exact.

        Returns:
            (coordinates or None, exact)
        """
        city = (city or "").strip()
        country = (country or "").strip()
        if not city and not country:
            return None, False

        known = self.gazetteer.find_city(city, country)
        if known is not None:
            return known, False

        cached = self.cache.get(city, country)
        if cached is not None:
            return cached, True

        query = f"{city}, {country}" if city else country

        await self.throttle.wait()
        try:
            coords = await asyncio.to_thread(self.client.search, query)
        except GeocodingError as e:
            log_warning(f"Geocoding unavailable for '{query}': {e}")
            return None, False

        self.cache.store(city, country, coords)
        return coords, True

    async def enrich(self, records: Sequence, on_update: Callable = None) -> List:
        """
        Geocode records lacking exact coordinates, one at a time.

        Records with exact coordinates, or already attempted, are passed
        through untouched. Every other record is marked as attempted so later
        passes skip it. A successful lookup sets the coordinates, flagged exact
        only when they came from the external geocoder.

        Args:
            records: Decoded records
            on_update: Called with each replaced record as its answer arrives

        Returns:
            New list in input order
        """
        pending = sum(1 for r in records if r.needs_geocoding)
        if pending:
            log_info(f"Enriching {pending} record(s) without exact coordinates")

        enriched = []
        resolved_count = 0
        for record in records:
            if not record.needs_geocoding:
                enriched.append(record)
                continue

            coords, exact = await self.locate(record.city, record.country)
            if coords is None:
                updated = replace(record, geocode_attempted=True)
            else:
                updated = replace(
                    record,
                    latitude=coords.latitude,
                    longitude=coords.longitude,
                    has_exact_coords=exact,
                    geocode_attempted=True,
                )
                resolved_count += 1

            enriched.append(updated)
            if on_update is not None:
                on_update(updated)

        if pending:
            log_info(f"Enrichment complete: {resolved_count}/{pending} resolved")
        return enriched
