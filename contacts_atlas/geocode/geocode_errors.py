"""
Custom exceptions for the geocode module.
"""


class GeocodingError(Exception):
    """Raised when the geocoding service fails or returns no results."""
    pass
