"""
Image Cache Store

File-based cache for status-code images:
- One file per key, stored directly in the cache root
- Atomic writes (temp file + rename), so readers never see a torn file
- No expiry and no eviction; entries live until explicitly deleted
"""

import os
import asyncio
import tempfile
from pathlib import Path
from typing import Union
import logging

from .config import IMAGE_EXTENSION
from .errors import CacheMissError, CacheStorageError, InvalidKeyError

logger = logging.getLogger(__name__)

# File-name limits count bytes; ".<key>.<8 random>.tmp" must still fit in 255
MAX_KEY_BYTES = 200

# Characters that would let a key leave the cache root or break the file name
_FORBIDDEN_KEY_CHARS = {"/", "\\", "\x00"} | {sep for sep in (os.sep, os.altsep) if sep}


class ImageCacheStore:
    """
    Maps a cache key to image bytes on local disk.

    Cache structure:
    cache_dir/
    ├── 200.jpg
    ├── 404.jpg
    └── ...
    """

    def __init__(self, cache_dir: Union[str, Path]):
        self.cache_dir = Path(cache_dir)

    def ensure_cache_dir(self) -> None:
        """Create the cache root (recursively) if it doesn't exist."""
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheStorageError(f"Cannot create cache directory {self.cache_dir}: {e}") from e
        logger.info(f"[ImageCache] Cache directory: {self.cache_dir}")

    @staticmethod
    def validate_key(key: str) -> str:
        """Reject keys that are empty or unsafe to use as a file name."""
        if not key:
            raise InvalidKeyError("Cache key must not be empty", key=key)
        if key in (".", ".."):
            raise InvalidKeyError(f"Invalid cache key: {key!r}", key=key)
        if any(ch in key for ch in _FORBIDDEN_KEY_CHARS):
            raise InvalidKeyError(f"Cache key contains a path separator: {key!r}", key=key)
        if len(os.fsencode(key)) > MAX_KEY_BYTES:
            raise InvalidKeyError(f"Cache key longer than {MAX_KEY_BYTES} bytes", key=key)
        return key

    def path_for(self, key: str) -> Path:
        """Get the file path for a cached image."""
        self.validate_key(key)
        return self.cache_dir / f"{key}{IMAGE_EXTENSION}"

    # ============================================
    # Blocking implementations (run in worker threads)
    # ============================================

    def _read_sync(self, key: str) -> bytes:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise CacheMissError(f"No cache entry for {key}", key=key) from e
        except OSError as e:
            raise CacheStorageError(f"Failed to read {path}: {e}", key=key) from e

    def _write_sync(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=self.cache_dir,
                prefix=f".{key}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise CacheStorageError(f"Failed to write {path}: {e}", key=key) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning(f"[ImageCache] Could not remove temp file: {tmp_name}")

    def _delete_sync(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise CacheMissError(f"No cache entry for {key}", key=key) from e
        except OSError as e:
            raise CacheStorageError(f"Failed to delete {path}: {e}", key=key) from e

    # ============================================
    # Public async API
    # ============================================

    async def read(self, key: str) -> bytes:
        """
        Get cached image bytes by key.

        Raises:
            CacheMissError: no entry for the key.
            CacheStorageError: any other disk fault.
        """
        return await asyncio.to_thread(self._read_sync, key)

    async def write(self, key: str, data: bytes) -> None:
        """
        Create or overwrite the entry for a key.

        The new file is written next to the target and renamed over it, so a
        concurrent read returns either the old bytes or the new bytes in full.
        """
        await asyncio.to_thread(self._write_sync, key, data)
        logger.debug(f"[ImageCache] Stored: {key} ({len(data)} bytes)")

    async def delete(self, key: str) -> None:
        """
        Remove the entry for a key.

        Raises:
            CacheMissError: no entry for the key.
            CacheStorageError: any other disk fault.
        """
        await asyncio.to_thread(self._delete_sync, key)
