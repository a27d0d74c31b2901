"""docindex - Module documentation index with a bounded fetch cache."""

from importlib.metadata import version

from docindex.__main__ import _cli as main
from docindex.server import mcp

__version__ = version("docindex")
__all__ = ["mcp", "main", "__version__"]
