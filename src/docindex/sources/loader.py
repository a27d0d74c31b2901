"""Fetch a single remote module over HTTP.

The loader normalizes transport concerns: redirects are followed, header
names are lower-cased, and every failure (non-2xx status, DNS, TLS,
timeouts, malformed URLs) collapses to ``None``. It never retries.
"""

from urllib.parse import urlparse

import httpx
from loguru import logger

from docindex.models import Resource


class ResourceLoader:
    """HTTP loader backed by one shared ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 30):
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True
            )
        return self._client

    async def load(self, locator: str) -> Resource | None:
        """Fetch ``locator``, returning None on any failure."""
        try:
            scheme = urlparse(locator).scheme
            if scheme == "file":
                logger.error(f"local specifier requested: {locator}")
                return None
            if scheme not in ("http", "https"):
                return None
            response = await self._get_client().get(locator, follow_redirects=True)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.debug(f"Fetch failed for {locator}: {e}")
            return None

        # ``get`` has already read the body, so the connection is released
        # even when the response is discarded here.
        if not response.is_success:
            logger.debug(f"Fetch {locator} returned {response.status_code}")
            return None

        headers = {key.lower(): value for key, value in response.headers.items()}
        return Resource(
            locator=str(response.url),
            headers=headers,
            content=response.text,
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this loader created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ResourceLoader":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
