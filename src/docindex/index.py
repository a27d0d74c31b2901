"""Build the documentation index of a published package version.

The index groups a package by directory. A directory with a conventional
entry point (``mod.ts``, ``lib.ts``, ``main.ts``, ``index.ts`` and their
JS/TS variants) is summarized by that module alone; otherwise every direct
module file in it is listed. Private directories (``.x``, ``_x``,
``testdata``) are skipped, as are hidden and test modules.

Each selected module is run through the entries cache. Indexing is
best-effort: a module that fails to document is left out of the index
instead of failing the whole package.
"""

import re
from pathlib import Path

from loguru import logger

from docindex.entries import EntriesCache
from docindex.errors import DocIndexError
from docindex.models import DeclarationNode, IndexStructure, PackageMeta
from docindex.sources.registry import PackageRegistry

EXT = (".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs")
INDEX_MODULES = tuple(
    f"{name}{ext}" for name in ("mod", "lib", "main", "index") for ext in EXT
)

_EXT_GROUP = r"(?:js|jsx|mjs|cjs|ts|tsx|mts|cts)"
_RE_MODULE_EXT = re.compile(rf"\.{_EXT_GROUP}$", re.IGNORECASE)
# Matched against the path below the directory, which starts with "/".
_RE_IGNORED_MODULE = re.compile(
    rf"(/[_.].|/(?:test|[^/]+[_.]test)\.{_EXT_GROUP}$)", re.IGNORECASE
)
_RE_PRIVATE_PATH = re.compile(r"/(?:[_.].|testdata(?:/|$))")


def is_dir(path: str, meta: PackageMeta) -> bool:
    """True for the package root or a listing entry typed ``dir``."""
    if path == "":
        return True
    for entry in meta.directory_listing:
        if entry.path == path:
            return entry.type == "dir"
    return False


def get_dirs(path: str, meta: PackageMeta) -> list[str] | None:
    """``path`` and every non-private directory below it, in listing order.

    Returns None if ``path`` is not a directory of the package.
    """
    if path.endswith("/"):
        path = path[:-1]
    if not is_dir(path, meta):
        return None

    dirs = [path]
    prefix = f"{path}/"
    for entry in meta.directory_listing:
        p = entry.path
        if (
            entry.type == "dir"
            and p.startswith(prefix)
            and not _RE_PRIVATE_PATH.search(p[len(path) :])
        ):
            dirs.append(p)
    return dirs


def get_index_module(directory: str, meta: PackageMeta) -> str | None:
    """The conventional entry point of ``directory``, matched case-insensitively."""
    files: dict[str, str] = {}
    for entry in meta.directory_listing:
        if entry.type == "file" and entry.path.startswith(f"{directory}/"):
            files.setdefault(entry.path.lower(), entry.path)

    base = directory.lower()
    for index in INDEX_MODULES:
        item = files.get(f"{base}/{index}")
        if item:
            return item
    return None


def get_modules(directory: str, meta: PackageMeta) -> list[str] | None:
    """Direct, non-ignored module files of ``directory``; None if there are none."""
    prefix = f"{directory}/"
    modules = []
    for entry in meta.directory_listing:
        p = entry.path
        if entry.type != "file" or not p.startswith(prefix):
            continue
        name = p[len(prefix) :]
        if "/" in name:
            continue
        if _RE_MODULE_EXT.search(p) and not _RE_IGNORED_MODULE.search(f"/{name}"):
            modules.append(p)
    return modules or None


def get_structure(path: str, meta: PackageMeta) -> dict[str, list[str]]:
    """Map each directory under ``path`` to the modules that represent it."""
    structure: dict[str, list[str]] = {}
    for directory in get_dirs(path, meta) or []:
        index = get_index_module(directory, meta)
        if index:
            structure[directory] = [index]
            continue
        modules = get_modules(directory, meta)
        if modules:
            structure[directory] = modules
    return structure


def module_locator(registry_host: str, package: str, version: str, module: str) -> str:
    host = registry_host.rstrip("/")
    if package == "std":
        return f"{host}/std@{version}{module}"
    return f"{host}/x/{package}@{version}{module}"


class IndexBuilder:
    """Builds and caches package indexes."""

    def __init__(
        self,
        registry: PackageRegistry,
        entries: EntriesCache,
        static_dir: Path | None = None,
    ):
        self._registry = registry
        self._entries = entries
        self._static_dir = static_dir
        self._indexes: dict[tuple[str, str, str], IndexStructure] = {}
        self._static_indexes: dict[str, IndexStructure] = {}

    async def build_index(
        self,
        registry_host: str,
        package: str,
        version: str,
        path: str = "/",
    ) -> IndexStructure | None:
        """Index ``package@version`` below ``path``.

        Returns None when the package has no metadata, nothing indexable
        below ``path``, or no module that could be documented.
        """
        key = (package, version, path)
        cached = self._indexes.get(key)
        if cached is not None:
            return cached

        meta = await self._registry.get_package_meta(package, version)
        if meta is None:
            return None

        structure = get_structure(path, meta)
        if not structure:
            return None

        entries = await self._collect_entries(registry_host, package, version, structure)
        if not entries:
            return None

        index = IndexStructure(structure=structure, entries=entries)
        self._indexes[key] = index
        logger.info(
            f"Indexed {package}@{version}{path}: "
            f"{len(structure)} directories, {len(entries)} modules"
        )
        return index

    async def _collect_entries(
        self,
        registry_host: str,
        package: str,
        version: str,
        structure: dict[str, list[str]],
    ) -> dict[str, list[DeclarationNode]]:
        collected: dict[str, list[DeclarationNode]] = {}
        for modules in structure.values():
            for module in modules:
                url = module_locator(registry_host, package, version, module)
                try:
                    entries = await self._entries.get_entries(url)
                except DocIndexError as e:
                    logger.warning(f"Skipping {url}: {e.message}")
                    continue
                except Exception as e:
                    logger.warning(f"Skipping {url}: unexpected error: {e}")
                    continue
                if entries:
                    collected[module] = entries
        return collected

    def get_static_index(self, package: str, version: str) -> IndexStructure | None:
        """Load a pre-built index from ``<static_dir>/<package>_<version>.json``.

        Only successful reads are cached; a missing snapshot is looked for
        again on the next call.
        """
        key = f"{package}_{version}"
        cached = self._static_indexes.get(key)
        if cached is not None or self._static_dir is None:
            return cached

        path = self._static_dir / f"{key}.json"
        try:
            index = IndexStructure.from_json(path.read_bytes())
        except (OSError, ValueError) as e:
            logger.debug(f"No static index {path}: {e}")
            return None
        self._static_indexes[key] = index
        return index
