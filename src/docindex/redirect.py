"""Detect locators that resolve to a different canonical locator.

Callers use this to answer with a permanent redirect instead of serving
documentation under a non-canonical URL (for example an unversioned
module URL that the registry redirects to a pinned version).
"""

from urllib.parse import urljoin

from loguru import logger

from docindex.cache import ResourceCache

# Declaration files advertised by this header are documented in place of
# the implementation file that was requested.
TYPES_HEADER = "x-typescript-types"


async def resolve_redirect(cache: ResourceCache, locator: str) -> str | None:
    """Return the canonical locator if it differs from ``locator``.

    Returns None when the locator is already canonical or could not be
    fetched; the not-found path handles the latter.
    """
    if not locator.startswith("http"):
        return None

    resource = await cache.get_or_load(locator)
    if resource is None:
        return None

    types = resource.headers.get(TYPES_HEADER)
    try:
        canonical = urljoin(resource.locator, types) if types else resource.locator
    except ValueError as e:
        logger.debug(f"Ignoring {TYPES_HEADER} of {locator}: {e}")
        return None
    return None if canonical == locator else canonical
