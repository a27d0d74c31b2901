"""Tests for src/docindex/redirect.py: canonical locator detection."""

import httpx

from conftest import make_resource

from docindex.cache import ResourceCache
from docindex.redirect import resolve_redirect
from docindex.sources.loader import ResourceLoader


class TestResolveRedirect:
    async def test_redirected_locator(self, resource_cache, fake_loader):
        fake_loader.resources["https://deno.land/x/a/mod.ts"] = make_resource(
            "https://deno.land/x/a@1.0.0/mod.ts"
        )
        result = await resolve_redirect(resource_cache, "https://deno.land/x/a/mod.ts")
        assert result == "https://deno.land/x/a@1.0.0/mod.ts"

    async def test_canonical_locator_returns_none(self, resource_cache, fake_loader):
        url = "https://deno.land/x/a@1.0.0/mod.ts"
        fake_loader.resources[url] = make_resource(url)
        assert await resolve_redirect(resource_cache, url) is None

    async def test_failed_fetch_returns_none(self, resource_cache):
        assert await resolve_redirect(resource_cache, "https://nowhere.test/a.ts") is None

    async def test_non_http_returns_none(self, resource_cache, fake_loader):
        assert await resolve_redirect(resource_cache, "deno/stable/") is None
        assert fake_loader.calls == []

    async def test_malformed_locator_returns_none(self, mock_client):
        loader = ResourceLoader(
            client=mock_client(lambda request: httpx.Response(200, text="x"))
        )
        cache = ResourceCache(loader.load)
        assert await resolve_redirect(cache, "http://[::1/mod.ts") is None
        assert len(cache) == 0

    async def test_malformed_types_header_returns_none(
        self, resource_cache, fake_loader
    ):
        url = "https://cdn.test/pkg@1.0.0/index.js"
        fake_loader.resources[url] = make_resource(
            url, x_typescript_types="http://[::1/index.d.ts"
        )
        assert await resolve_redirect(resource_cache, url) is None

    async def test_types_header_takes_precedence(self, resource_cache, fake_loader):
        url = "https://cdn.test/pkg@1.0.0/index.js"
        fake_loader.resources[url] = make_resource(
            url, x_typescript_types="./index.d.ts"
        )
        result = await resolve_redirect(resource_cache, url)
        assert result == "https://cdn.test/pkg@1.0.0/index.d.ts"

    async def test_types_header_resolved_against_final_url(
        self, resource_cache, fake_loader
    ):
        fake_loader.resources["https://cdn.test/pkg"] = make_resource(
            "https://cdn.test/v1/pkg@2.0.0/index.js",
            x_typescript_types="/v1/pkg@2.0.0/index.d.ts",
        )
        result = await resolve_redirect(resource_cache, "https://cdn.test/pkg")
        assert result == "https://cdn.test/v1/pkg@2.0.0/index.d.ts"

    async def test_result_is_cached(self, resource_cache, fake_loader):
        fake_loader.resources["https://deno.land/x/a/mod.ts"] = make_resource(
            "https://deno.land/x/a@1.0.0/mod.ts"
        )
        await resolve_redirect(resource_cache, "https://deno.land/x/a/mod.ts")
        await resolve_redirect(resource_cache, "https://deno.land/x/a/mod.ts")
        await resource_cache.get_or_load("https://deno.land/x/a/mod.ts")
        assert len(fake_loader.calls) == 1

    async def test_transport_redirect_end_to_end(self, mock_client):
        def handler(request):
            if request.url.path == "/std/fs/mod.ts":
                return httpx.Response(
                    301, headers={"Location": "https://deno.land/std@0.150.0/fs/mod.ts"}
                )
            return httpx.Response(200, text="export {};")

        loader = ResourceLoader(client=mock_client(handler))
        cache = ResourceCache(loader.load)
        assert (
            await resolve_redirect(cache, "https://deno.land/std/fs/mod.ts")
            == "https://deno.land/std@0.150.0/fs/mod.ts"
        )
        assert (
            await resolve_redirect(cache, "https://deno.land/std@0.150.0/fs/mod.ts")
            is None
        )
