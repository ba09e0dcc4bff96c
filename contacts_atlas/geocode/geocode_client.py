"""
Nominatim search client.

Wraps a requests session to turn free-text place queries into coordinates.
Throttling is the caller's concern; this client performs exactly one HTTP
request per call.
"""

from typing import List

import requests
from pydantic import BaseModel, ConfigDict, ValidationError

from ..config.config_module import DEFAULT_GEOCODER_URL, DEFAULT_USER_AGENT
from ..config.logger_module import log_info, log_error
from .geocode_errors import GeocodingError
from .geocode_gazetteer import Coordinates


class NominatimPlace(BaseModel):
    """One search candidate; lat/lon arrive as numeric strings."""

    model_config = ConfigDict(extra="ignore")

    lat: float
    lon: float
    display_name: str = ""


class NominatimClient:
    """Single-result place search against a Nominatim-compatible endpoint."""

    def __init__(self,
                 base_url: str = DEFAULT_GEOCODER_URL,
                 user_agent: str = DEFAULT_USER_AGENT,
                 language: str = "fr",
                 session: requests.Session = None,
                 request_timeout: float = 30.0):
        """
        Initialize the client.

        Args:
            base_url: Search endpoint URL
            user_agent: Descriptive User-Agent required by the service policy
            language: accept-language parameter
            session: HTTP session (a new one is created if omitted)
            request_timeout: HTTP request timeout in seconds
        """
        self.base_url = base_url
        self.language = language
        self.request_timeout = request_timeout

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})

    def search(self, query: str) -> Coordinates:
        """
        Geocode a free-text query to the first candidate's coordinates.

        Args:
            query: "city, country" or a country name

        Returns:
            Coordinates of the first result

        Raises:
            GeocodingError: On transport failure, non-200 status, empty or
                malformed results
        """
        if not query or not query.strip():
            raise GeocodingError("Empty place query provided")

        params = {
            "q": query,
            "format": "json",
            "limit": "1",
            "accept-language": self.language,
        }

        try:
            response = self._session.get(
                self.base_url, params=params, timeout=self.request_timeout
            )
        except requests.exceptions.RequestException as e:
            log_error(f"Request error geocoding '{query}': {e}")
            raise GeocodingError(f"Request failed for '{query}': {e}")

        if response.status_code != 200:
            log_error(f"HTTP {response.status_code} geocoding '{query}'")
            raise GeocodingError(f"HTTP {response.status_code} geocoding '{query}'")

        try:
            payload = response.json()
        except ValueError:
            raise GeocodingError(f"Non-JSON response geocoding '{query}'")

        if not isinstance(payload, list) or not payload:
            raise GeocodingError(f"No coordinates found for '{query}'")

        try:
            place = NominatimPlace.model_validate(payload[0])
        except ValidationError as e:
            raise GeocodingError(f"Malformed result for '{query}': {e}")

        log_info(f"Geocoded '{query}' to ({place.lat}, {place.lon})")
        return Coordinates(place.lat, place.lon)
