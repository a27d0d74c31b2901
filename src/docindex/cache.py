"""In-memory LRU cache of fetched modules, bounded by a byte budget.

Root modules requested for documentation or redirect checks pass through
here; the analyzer subprocess fetches imports on its own. Entries are kept in
one ``OrderedDict`` whose order is recency: hits move to the tail and
eviction pops from the head.

Eviction is checked after the fact. An insert adds the resource and queues
a check with ``loop.call_soon``; the check runs once the inserting
coroutine yields, so a request is never penalized for the eviction it
triggers. A single oversized resource can therefore exceed the budget
until the next turn of the event loop.

State is process-lifetime only and unsynchronized: the event loop only
interleaves at awaits, and duplicate concurrent fetches of a cold
locator just replace each other.
"""

import asyncio
from collections import OrderedDict
from collections.abc import Awaitable, Callable

from loguru import logger

from docindex.config import DEFAULT_MAX_CACHE_SIZE
from docindex.models import Resource
from docindex.util import human_size

Loader = Callable[[str], Awaitable[Resource | None]]


class ResourceCache:
    """Byte-budgeted LRU cache wrapping a loader."""

    def __init__(self, loader: Loader, budget_bytes: int = DEFAULT_MAX_CACHE_SIZE):
        self._loader = loader
        self.budget_bytes = budget_bytes
        self.total_bytes = 0
        self._resources: OrderedDict[str, Resource] = OrderedDict()
        self._check_queued = False
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        logger.debug(f"ResourceCache budget: {human_size(budget_bytes)}")

    def __contains__(self, locator: str) -> bool:
        return locator in self._resources

    def __len__(self) -> int:
        return len(self._resources)

    @property
    def loader_callback(self) -> Loader:
        """The load function handed to the analyzer."""
        return self.get_or_load

    def peek(self, locator: str) -> Resource | None:
        """Return a cached resource without touching its recency."""
        return self._resources.get(locator)

    async def get_or_load(self, locator: str) -> Resource | None:
        """Return the cached resource for ``locator``, fetching it on a miss.

        Failed fetches are not cached; the next call tries again.
        """
        cached = self._resources.get(locator)
        if cached is not None:
            self._resources.move_to_end(locator)
            self._hits += 1
            logger.debug(f"Cache HIT: {locator}")
            return cached

        self._misses += 1
        logger.debug(f"Cache MISS: {locator}")
        resource = await self._loader(locator)
        if resource is None:
            return None

        self._store(locator, resource)
        return resource

    def _store(self, locator: str, resource: Resource) -> None:
        previous = self._resources.pop(locator, None)
        if previous is not None:
            self.total_bytes -= previous.size_bytes
        self._resources[locator] = resource
        self.total_bytes += resource.size_bytes
        self._enqueue_check()

    def _enqueue_check(self) -> None:
        if self._check_queued:
            return
        self._check_queued = True
        asyncio.get_running_loop().call_soon(self._run_queued_check)

    def _run_queued_check(self) -> None:
        self._check_queued = False
        self.evict()

    def evict(self) -> int:
        """Evict least recently used resources until under budget.

        Returns:
            Number of resources evicted.
        """
        if self.total_bytes <= self.budget_bytes:
            return 0

        evicted = 0
        freed = 0
        while self._resources and self.total_bytes > self.budget_bytes:
            _locator, resource = self._resources.popitem(last=False)
            self.total_bytes -= resource.size_bytes
            freed += resource.size_bytes
            evicted += 1

        self._evictions += evicted
        logger.info(
            f"evicting: {evicted} resources ({human_size(freed)}) from cache"
        )
        return evicted

    def clear(self) -> None:
        self._resources.clear()
        self.total_bytes = 0

    def stats(self) -> dict:
        """Get cache statistics."""
        return {
            "entries": len(self._resources),
            "total_bytes": self.total_bytes,
            "budget_bytes": self.budget_bytes,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
        }
