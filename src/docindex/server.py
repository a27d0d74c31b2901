"""docindex MCP Server - module documentation with a bounded fetch cache."""

import json
import sys
from contextlib import asynccontextmanager

from loguru import logger
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from docindex.cache import ResourceCache
from docindex.config import settings
from docindex.entries import Analyzer, EntriesCache
from docindex.errors import DocIndexError
from docindex.index import IndexBuilder
from docindex.models import dump_nodes
from docindex.redirect import resolve_redirect
from docindex.sources.analyzer import DenoDocAnalyzer
from docindex.sources.loader import ResourceLoader
from docindex.sources.registry import PackageRegistry
from docindex.util import get_url_label, human_size

# Configure logging
logger.remove()
logger.add(sys.stderr, level=settings.log_level)

# Module-level state (set during lifespan)
_loader: ResourceLoader | None = None
_resources: ResourceCache | None = None
_entries: EntriesCache | None = None
_registry: PackageRegistry | None = None
_builder: IndexBuilder | None = None


def _init_state(analyzer: Analyzer | None = None) -> None:
    """Create the per-process caches. One instance of each per process."""
    global _loader, _resources, _entries, _registry, _builder

    static_dir = settings.get_static_dir()
    _loader = ResourceLoader(timeout=settings.http_timeout)
    _resources = ResourceCache(_loader.load, budget_bytes=settings.max_cache_size)
    _entries = EntriesCache(
        analyzer
        or DenoDocAnalyzer(settings.deno_path, timeout=settings.analyzer_timeout),
        _resources,
        static_dir=static_dir,
    )
    _registry = PackageRegistry(
        settings.storage_url, settings.api_url, timeout=settings.http_timeout
    )
    _builder = IndexBuilder(_registry, _entries, static_dir=static_dir)
    logger.info(f"MAX_CACHE_SIZE: {human_size(settings.max_cache_size)}")


async def _close_state() -> None:
    global _loader, _resources, _entries, _registry, _builder

    if _loader:
        await _loader.aclose()
    if _registry:
        await _registry.aclose()
    _loader = _resources = _entries = _registry = _builder = None


@asynccontextmanager
async def _lifespan(_server: FastMCP):
    """Server lifespan: build caches on startup, close HTTP clients on shutdown."""
    logger.info("Starting docindex MCP Server...")
    _init_state()

    yield

    logger.info("Shutting down docindex MCP Server...")
    await _close_state()


# Initialize MCP server
mcp = FastMCP(
    name="docindex",
    instructions=(
        "Module documentation server. "
        "Use `docs` for the declarations of a single module URL. "
        "Use `package_index` for an overview of a published package. "
        "Fetched modules and analyzed declarations are cached in memory."
    ),
    lifespan=_lifespan,
)


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        openWorldHint=True,
    ),
)
async def docs(url: str) -> str:
    """Documentation nodes of one module, as JSON.
    Returns "Redirect: <url>" when the module lives at a canonical URL
    (pinned version or type declarations); request that URL instead.
    """
    if _resources is None or _entries is None:
        return "Error: server is not initialized"

    _entries.seed_static(url)
    if url not in _entries:
        canonical = await resolve_redirect(_resources, url)
        if canonical:
            return f"Redirect: {canonical}"

    try:
        entries = await _entries.get_entries(url)
    except DocIndexError as e:
        return f"Error: {e.message}"

    logger.info(f"Documented {get_url_label(url)}: {len(entries)} nodes")
    return json.dumps(dump_nodes(entries), ensure_ascii=False, indent=2)


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        openWorldHint=True,
    ),
)
async def package_index(
    package: str,
    version: str | None = None,
    path: str = "/",
) -> str:
    """Index of a published package: directories, their modules and declarations.
    - version: defaults to the latest published version
    - path: sub-directory to index (default: package root)
    """
    if _registry is None or _builder is None:
        return "Error: server is not initialized"

    if not version:
        version = await _registry.get_latest(package)
        if not version:
            return f"Error: package '{package}' not found"

    index = _builder.get_static_index(package, version) if path == "/" else None
    if index is None:
        index = await _builder.build_index(
            settings.registry_host, package, version, path
        )
    if index is None:
        return f"Error: no documentation found for {package}@{version}{path}"

    description = await _registry.get_package_description(package)
    return json.dumps(
        {
            "package": package,
            "version": version,
            "path": path,
            "description": description,
            **json.loads(index.to_json()),
        },
        ensure_ascii=False,
        indent=2,
    )


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        openWorldHint=False,
    ),
)
async def cache_stats() -> str:
    """Resource cache and entries cache statistics."""
    if _resources is None or _entries is None:
        return "Error: server is not initialized"
    return json.dumps(
        {"resources": _resources.stats(), "entries": _entries.stats()},
        indent=2,
    )


def main() -> None:
    """Entry point for the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
