"""
Runtime configuration.

Bind address and cache directory come from the command line; origin and
logging settings come from the environment.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigurationError

# ============================================
# Environment defaults
# ============================================

ORIGIN_URL = os.getenv("CAT_CACHE_ORIGIN_URL", "https://http.cat")
DEFAULT_ORIGIN_TIMEOUT_SECONDS = 10.0
DEFAULT_LOG_LEVEL = "info"

# Level names uvicorn accepts for log_level
LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")

# Every entry is served as this type regardless of its actual bytes
IMAGE_CONTENT_TYPE = "image/jpeg"
IMAGE_EXTENSION = ".jpg"


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigurationError(f"CAT_CACHE_ORIGIN_TIMEOUT must be a number of seconds, got {raw!r}")
    if not 0 < timeout < float("inf"):
        raise ConfigurationError(f"CAT_CACHE_ORIGIN_TIMEOUT must be positive and finite, got {raw!r}")
    return timeout


def _parse_log_level(raw: str) -> str:
    level = raw.strip().lower()
    if level not in LOG_LEVELS:
        raise ConfigurationError(
            f"CAT_CACHE_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {raw!r}"
        )
    return level


@dataclass(frozen=True)
class Settings:
    """Resolved settings for one server process."""
    host: str
    port: int
    cache_dir: Path
    origin_url: str = ORIGIN_URL
    origin_timeout: float = DEFAULT_ORIGIN_TIMEOUT_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_args(
        cls,
        host: str,
        port: int,
        cache: str,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """
        Combine CLI arguments with environment settings.

        Raises:
            ConfigurationError: an environment value is malformed.
        """
        env = os.environ if environ is None else environ
        return cls(
            host=host,
            port=port,
            cache_dir=Path(cache).resolve(),
            origin_url=env.get("CAT_CACHE_ORIGIN_URL", ORIGIN_URL),
            origin_timeout=_parse_timeout(
                env.get("CAT_CACHE_ORIGIN_TIMEOUT", str(DEFAULT_ORIGIN_TIMEOUT_SECONDS))
            ),
            log_level=_parse_log_level(env.get("CAT_CACHE_LOG_LEVEL", DEFAULT_LOG_LEVEL)),
        )
