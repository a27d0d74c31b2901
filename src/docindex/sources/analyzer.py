"""Documentation analyzer backed by ``deno doc --json``.

The analyzer is an external tool: it takes a module URL and returns the
declaration tree as JSON. The root module is checked through the loader
first so that unreachable modules fail fast with the same "Unable to load
specifier" error the analyzer itself reports.

Only that check goes through the loader. The ``deno doc`` subprocess
fetches the root module and all of its imports again on its own, so the
resource cache does not serve the analysis itself.
"""

import asyncio
import json
import shutil
import subprocess
from typing import Any

from loguru import logger

from docindex.cache import Loader
from docindex.errors import AnalyzerError


class DenoDocAnalyzer:
    """Callable analyzer: ``await analyzer(url, loader)``."""

    def __init__(self, deno_path: str = "deno", timeout: int = 120):
        self.deno_path = deno_path
        self.timeout = timeout

    def _command(self, url: str) -> list[str]:
        executable = shutil.which(self.deno_path)
        if executable is None:
            raise AnalyzerError(f"Analyzer executable not found: {self.deno_path}")
        return [executable, "doc", "--json", url]

    async def __call__(self, url: str, loader: Loader) -> list[dict[str, Any]]:
        if await loader(url) is None:
            raise AnalyzerError(f'Unable to load specifier: "{url}"')

        cmd = self._command(url)
        logger.debug(f"Running analyzer: {' '.join(cmd)}")
        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                stdin=subprocess.DEVNULL,
            )
        except subprocess.TimeoutExpired as e:
            raise AnalyzerError(
                f"Analyzer timed out after {self.timeout}s for {url}"
            ) from e
        except OSError as e:
            raise AnalyzerError(f"Failed to run analyzer: {e}") from e

        if result.returncode != 0:
            message = result.stderr.strip() or f"exit code {result.returncode}"
            raise AnalyzerError(message)

        return parse_doc_output(result.stdout)


def parse_doc_output(stdout: str) -> list[dict[str, Any]]:
    """Extract the node list from analyzer JSON output.

    Older releases print a bare list; newer ones wrap it as
    ``{"version": n, "nodes": [...]}``.
    """
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise AnalyzerError(f"Invalid analyzer output: {e}") from e
    if isinstance(data, dict):
        data = data.get("nodes")
    if not isinstance(data, list):
        raise AnalyzerError("Invalid analyzer output: expected a list of nodes")
    return data
