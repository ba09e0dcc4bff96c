"""
Custom exceptions for the cache module.
"""


class CacheError(Exception):
    """Raised on offline cache read/write failures (a miss is not an error)."""
    pass
