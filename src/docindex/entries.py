"""Merged declaration lists per module locator.

The analyzer is expensive, so its merged output is kept for the life of
the process. Entries are small next to the module source they were
built from and are never evicted.
"""

import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from docindex.cache import Loader, ResourceCache
from docindex.errors import BadRequestError, InternalError, NotFoundError
from docindex.merge import merge_entries
from docindex.models import DeclarationNode, parse_nodes
from docindex.util import split_builtin

# Analyzer contract: analyze(locator, loader) -> declaration nodes (or the
# equivalent JSON data). Raises on failure.
Analyzer = Callable[[str, Loader], Awaitable[Any]]

# Text the analyzer puts in its error when a module cannot be resolved.
_NOT_FOUND_MARKER = "Unable to load specifier"


class EntriesCache:
    """Analyze-once cache of merged declaration lists."""

    def __init__(
        self,
        analyzer: Analyzer,
        resources: ResourceCache,
        static_dir: Path | None = None,
    ):
        self._analyzer = analyzer
        self._resources = resources
        self._static_dir = static_dir
        self._entries: dict[str, list[DeclarationNode]] = {}

    def __contains__(self, locator: str) -> bool:
        return locator in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def set(self, locator: str, nodes: list[DeclarationNode]) -> list[DeclarationNode]:
        """Merge ``nodes`` and store them for ``locator``."""
        entries = merge_entries(nodes)
        self._entries[locator] = entries
        return entries

    async def get_entries(self, locator: str) -> list[DeclarationNode]:
        """Return merged declarations for ``locator``, analyzing on a miss.

        Raises:
            NotFoundError: The analyzer could not load the module.
            BadRequestError: The analyzer failed for any other reason.
            InternalError: The analyzer returned something unusable.
        """
        entries = self._entries.get(locator)
        if entries is not None:
            return entries

        try:
            raw = await self._analyzer(locator, self._resources.loader_callback)
            nodes = parse_nodes(raw)
        except ValidationError as e:
            logger.error(f"Unexpected analyzer output for {locator}: {e}")
            raise InternalError("Unexpected object.") from e
        except Exception as e:
            message = str(e)
            if _NOT_FOUND_MARKER in message:
                raise NotFoundError(
                    f'The module "{locator}" cannot be found'
                ) from e
            raise BadRequestError(f"Bad request: {message}") from e

        return self.set(locator, nodes)

    def seed_static(self, locator: str) -> bool:
        """Seed entries for a built-in locator from a local JSON snapshot.

        Built-in locators look like ``deno/<lib>[@<version>]/...`` and are
        read from ``<static_dir>/<lib>[_<version>].json``. Failures are
        logged and the live analyzer path stays available.

        Returns:
            True if entries for ``locator`` are cached afterwards.
        """
        if locator in self._entries:
            return True
        builtin = split_builtin(locator)
        if builtin is None or self._static_dir is None:
            return False

        lib, version = builtin
        path = self._static_dir / (f"{lib}_{version}.json" if version else f"{lib}.json")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            self.set(locator, parse_nodes(data))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load static entries {path}: {e}")
            return False

        logger.info(f"Seeded {locator} from {path.name}")
        return True

    def stats(self) -> dict:
        return {
            "entries": len(self._entries),
            "declarations": sum(len(nodes) for nodes in self._entries.values()),
        }
