"""
Geocoding for contact locations.

Main classes:
- GeocodeResolver: gazetteer -> session cache -> throttled external lookup
- Gazetteer: bundled capitals and curated cities
- NominatimClient: external search API wrapper
- MinIntervalThrottle: global spacing of external requests
- GeocodeCache: session cache keyed by "city|country"

Errors:
- GeocodingError: external lookup failure (resolved to None by the resolver)
"""

from .geocode_cache import GeocodeCache
from .geocode_client import NominatimClient
from .geocode_errors import GeocodingError
from .geocode_gazetteer import Coordinates, Gazetteer
from .geocode_rate_limiter import MinIntervalThrottle
from .geocode_resolver import GeocodeResolver

__all__ = [
    "GeocodeResolver",
    "Gazetteer",
    "Coordinates",
    "NominatimClient",
    "MinIntervalThrottle",
    "GeocodeCache",
    "GeocodingError",
]
