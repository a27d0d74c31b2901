"""Pytest configuration and fixtures."""

import httpx
import pytest

from docindex.cache import ResourceCache
from docindex.models import PackageListing, PackageMeta, Resource


def make_resource(locator: str, content: str = "x", **headers: str) -> Resource:
    """Build a Resource; header names use underscores for dashes."""
    return Resource(
        locator=locator,
        headers={k.replace("_", "-"): v for k, v in headers.items()},
        content=content,
    )


def make_meta(*paths: str) -> PackageMeta:
    """Build PackageMeta from paths; a trailing "/" marks a directory."""
    listing = [PackageListing(path="", size=0, type="dir")]
    for p in paths:
        if p.endswith("/"):
            listing.append(PackageListing(path=p[:-1], size=0, type="dir"))
        else:
            listing.append(PackageListing(path=p, size=10, type="file"))
    return PackageMeta(uploaded_at="2022-01-01T00:00:00Z", directory_listing=listing)


class FakeLoader:
    """Loader returning canned resources and recording every call."""

    def __init__(self, resources: dict[str, Resource] | None = None):
        self.resources = resources or {}
        self.calls: list[str] = []

    async def __call__(self, locator: str) -> Resource | None:
        self.calls.append(locator)
        return self.resources.get(locator)


@pytest.fixture
def fake_loader():
    return FakeLoader()


@pytest.fixture
def resource_cache(fake_loader):
    """ResourceCache over a FakeLoader with a 100-byte budget."""
    return ResourceCache(fake_loader, budget_bytes=100)


@pytest.fixture
def mock_client():
    """Build an httpx.AsyncClient served by a handler function.

    Usage::

        client = mock_client(lambda request: httpx.Response(200, text="ok"))
    """
    clients: list[httpx.AsyncClient] = []

    def factory(handler) -> httpx.AsyncClient:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler), follow_redirects=True
        )
        clients.append(client)
        return client

    return factory
