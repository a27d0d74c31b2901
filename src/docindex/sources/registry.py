"""Package registry metadata: directory listings, versions, descriptions.

Listings and version lists come from the package storage bucket, package
descriptions from the module API. Metadata is small, so it is cached for
the life of the process without eviction.
"""

import httpx
from loguru import logger
from pydantic import ValidationError

from docindex.models import PackageInfo, PackageMeta, PackageVersions


class PackageRegistry:
    """Client for the package storage bucket and module API."""

    def __init__(
        self,
        storage_url: str,
        api_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30,
    ):
        self.storage_url = storage_url
        self.api_url = api_url
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

        self._meta: dict[tuple[str, str], PackageMeta] = {}
        self._versions: dict[str, PackageVersions | None] = {}
        self._info: dict[str, PackageInfo | None] = {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True
            )
        return self._client

    async def _get_json(self, url: str) -> dict | None:
        """GET a JSON document; None on any non-200 or transport failure."""
        try:
            resp = await self._get_client().get(url)
            if resp.status_code != 200:
                logger.debug(f"Registry {url} returned {resp.status_code}")
                return None
            return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Registry lookup failed for {url}: {e}")
            return None

    async def get_package_meta(self, package: str, version: str) -> PackageMeta | None:
        """Directory listing of one package version.

        Successful lookups are cached permanently; failures are retried on
        the next call.
        """
        key = (package, version)
        cached = self._meta.get(key)
        if cached is not None:
            return cached

        data = await self._get_json(
            f"{self.storage_url}{package}/versions/{version}/meta/meta.json"
        )
        if data is None:
            return None
        try:
            meta = PackageMeta.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Invalid meta.json for {package}@{version}: {e}")
            return None
        self._meta[key] = meta
        return meta

    async def get_package_versions(self, package: str) -> PackageVersions | None:
        if package not in self._versions:
            data = await self._get_json(
                f"{self.storage_url}{package}/meta/versions.json"
            )
            versions = None
            if data is not None:
                try:
                    versions = PackageVersions.model_validate(data)
                except ValidationError as e:
                    logger.warning(f"Invalid versions.json for {package}: {e}")
            self._versions[package] = versions
        return self._versions[package]

    async def get_latest(self, package: str) -> str | None:
        """Latest published version of ``package``."""
        versions = await self.get_package_versions(package)
        return versions.latest if versions else None

    async def get_package_description(self, package: str) -> str | None:
        if package not in self._info:
            body = await self._get_json(f"{self.api_url}{package}")
            info = None
            if isinstance(body, dict) and isinstance(body.get("data"), dict):
                try:
                    info = PackageInfo.model_validate(body["data"])
                except ValidationError as e:
                    logger.warning(f"Invalid module info for {package}: {e}")
            self._info[package] = info
        info = self._info[package]
        return info.description if info else None

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
