"""
Cat Cache Errors
缓存代理异常

Exception hierarchy shared by the cache store, the origin fetcher and the
HTTP routes. The routes translate each class into a status code.
"""

from typing import Optional


class CatCacheError(Exception):
    """Base exception for the cache proxy."""

    def __init__(self, message: str, key: Optional[str] = None):
        self.message = message
        self.key = key
        super().__init__(message)


class InvalidKeyError(CatCacheError):
    """Key is missing or cannot be used as a cache file name."""


class CacheMissError(CatCacheError):
    """No cache entry exists for the key."""


class CacheStorageError(CatCacheError):
    """Local disk fault while reading, writing or deleting an entry."""


class UpstreamError(CatCacheError):
    """Origin could not provide an image for the key."""


class UpstreamNotFoundError(UpstreamError):
    """Origin reported that the key does not exist."""


class UpstreamNetworkError(UpstreamError):
    """Origin unreachable, timed out, or answered with an unexpected status."""


class ConfigurationError(CatCacheError):
    """Invalid startup configuration."""
