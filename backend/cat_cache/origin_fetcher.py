"""
Origin Fetcher

Downloads the canonical image for a key from the remote image service
(https://http.cat by default). A single attempt is made per call.
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import httpx

from .config import DEFAULT_ORIGIN_TIMEOUT_SECONDS, ORIGIN_URL
from .errors import UpstreamNetworkError, UpstreamNotFoundError

logger = logging.getLogger(__name__)

# Origin statuses that mean "this key does not exist upstream"
NOT_FOUND_STATUSES = {404, 410}


class OriginFetcher:
    """
    Fetches images from the origin over a shared HTTP client.

    Usage:
        fetcher = OriginFetcher("https://http.cat", timeout=10.0)
        data = await fetcher.fetch("418")
        await fetcher.close()
    """

    def __init__(
        self,
        base_url: str = ORIGIN_URL,
        timeout: float = DEFAULT_ORIGIN_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self.http_client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            headers={
                "User-Agent": "http-cat-cache/1.0",
                "Accept": "image/*,*/*;q=0.8",
            },
        )

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{quote(key, safe='')}"

    async def fetch(self, key: str) -> bytes:
        """
        Fetch image bytes for a key.

        Raises:
            UpstreamNotFoundError: origin has no image for the key.
            UpstreamNetworkError: timeout, connection failure or unexpected status.
        """
        url = self.url_for(key)
        try:
            # httpx timeouts apply per network wait; this bounds the whole request
            response = await asyncio.wait_for(self.http_client.get(url), self.timeout)
            response.raise_for_status()
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamNetworkError(
                f"Timed out after {self.timeout}s fetching {url}", key=key
            ) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in NOT_FOUND_STATUSES:
                raise UpstreamNotFoundError(f"Origin has no image for {key}", key=key) from e
            raise UpstreamNetworkError(f"Origin returned HTTP {status} for {key}", key=key) from e
        except httpx.HTTPError as e:
            raise UpstreamNetworkError(f"Failed to fetch {url}: {e}", key=key) from e

        logger.debug(f"[Origin] Fetched: {url} ({len(response.content)} bytes)")
        return response.content

    async def close(self) -> None:
        """Close HTTP client."""
        await self.http_client.aclose()
