"""
HTTP Cat Cache

Caching proxy for status-code images (https://http.cat).

Features:
- File-based cache, one image per status code
- Fetch-on-miss from the origin with a bounded timeout
- Direct cache writes (PUT) and removals (DELETE)
"""

from .app import create_app
from .cache_manager import ImageCacheStore
from .config import Settings
from .origin_fetcher import OriginFetcher

__all__ = ["create_app", "ImageCacheStore", "OriginFetcher", "Settings"]
