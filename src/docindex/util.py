"""Small helpers shared by the cache, the index builder and the tool surface."""

import re
from dataclasses import dataclass


def human_size(num_bytes: float, si: bool = True, dp: int = 1) -> str:
    """Format a byte count for log output.

    Args:
        num_bytes: Number of bytes.
        si: Use metric units (powers of 1000) when True, binary (IEC)
            units (powers of 1024) otherwise.
        dp: Number of decimal places to display.
    """
    thresh = 1000 if si else 1024

    if abs(num_bytes) < thresh:
        return f"{num_bytes} B"

    units = (
        ["kB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]
        if si
        else ["KiB", "MiB", "GiB", "TiB", "PiB", "EiB", "ZiB", "YiB"]
    )
    u = -1
    r = 10**dp
    value = float(num_bytes)

    while True:
        value /= thresh
        u += 1
        if not (round(abs(value) * r) / r >= thresh and u < len(units) - 1):
            break

    return f"{value:.{dp}f} {units[u]}"


# ---------------------------------------------------------------------------
# Registry URL parsing
# ---------------------------------------------------------------------------

_PKG = r"(?P<pkg>[^@/]+)"
_ORG = r"(?:(?P<org>@[^/]+)/)?"

# Known module hosts whose URLs are shown in a more human readable form.
_REGISTRY_PATTERNS: dict[str, re.Pattern[str]] = {
    "deno.land/x": re.compile(
        rf"^https://deno\.land/x/{_PKG}(?:@(?P<ver>[^/]+))?(?:/(?P<mod>.*))?$"
    ),
    "deno.land/std": re.compile(
        r"^https://deno\.land/std(?:@(?P<ver>[^/]+))?(?:/(?P<mod>.*))?$"
    ),
    "nest.land": re.compile(
        rf"^https://x\.nest\.land/{_PKG}@(?P<ver>[^/]+)(?:/(?P<mod>.*))?$"
    ),
    "crux.land": re.compile(rf"^https://crux\.land/{_PKG}@(?P<ver>[^/]+)$"),
    "github.com": re.compile(
        r"^https://raw\.githubusercontent\.com/(?P<org>[^/]+)/(?P<pkg>[^/]+)"
        r"/(?P<ver>[^/]+)(?:/(?P<mod>.*))?$"
    ),
    "gist.github.com": re.compile(
        r"^https://gist\.githubusercontent\.com/(?P<org>[^/]+)/(?P<pkg>[^/]+)"
        r"/raw/(?P<ver>[^/]+)(?:/(?P<mod>.*))?$"
    ),
    "esm.sh": re.compile(
        rf"^https?://esm\.sh/{_ORG}{_PKG}(?:@(?P<ver>[^/]+))?(?:/(?P<mod>.*))?$"
    ),
    "skypack.dev": re.compile(
        rf"^https://cdn\.skypack\.dev/{_ORG}{_PKG}(?:@(?P<ver>[^/?]+))?"
        r"(?:/(?P<mod>[^?]*))?(?:\?.*)?$"
    ),
    "unpkg.com": re.compile(
        rf"^https://unpkg\.com/{_ORG}{_PKG}(?:@(?P<ver>[^/]+))?(?:/(?P<mod>.*))?$"
    ),
}


@dataclass
class ParsedURL:
    registry: str
    org: str | None = None
    package: str | None = None
    version: str | None = None
    module: str | None = None


def parse_url(url: str) -> ParsedURL | None:
    """Match a module URL against the known registries."""
    for registry, pattern in _REGISTRY_PATTERNS.items():
        match = pattern.match(url)
        if not match:
            continue
        groups = match.groupdict()
        pkg = groups.get("pkg")
        ver = groups.get("ver")
        if registry == "gist.github.com":
            # Gist ids and revisions are shown abbreviated
            pkg = pkg[:7] if pkg else pkg
            ver = ver[:7] if ver else ver
        return ParsedURL(
            registry=registry,
            org=groups.get("org") or None,
            package=pkg or None,
            version=ver or None,
            module=groups.get("mod") or None,
        )
    return None


# ---------------------------------------------------------------------------
# Built-in library locators (deno/<lib>[@<version>]/)
# ---------------------------------------------------------------------------

_BUILTIN_LABELS: dict[str, str] = {
    "stable": "Deno CLI APIs",
    "unstable": "Deno CLI APIs (unstable)",
    "esnext": "ESNext APIs",
    "dom": "DOM APIs",
}
_BUILTIN_RE = re.compile(r"^deno/([^@/]+)(?:@([^/]+))?/")
_VERSIONED_LIBS = ("stable", "unstable")
_PROTOCOL_RE = re.compile(r"^\S+/{2}")


def split_builtin(url: str) -> tuple[str, str | None] | None:
    """Return ``(lib, version)`` for a built-in locator, else None."""
    match = _BUILTIN_RE.match(url)
    if not match:
        return None
    return match.group(1), match.group(2)


def get_lib_with_version(url: str) -> tuple[str, str | None]:
    builtin = split_builtin(url)
    if builtin:
        lib, version = builtin
        label = _BUILTIN_LABELS.get(lib)
        if label:
            if version is None and lib in _VERSIONED_LIBS:
                version = "latest"
            return label, version
    return _PROTOCOL_RE.sub("", url, count=1), None


def get_url_label(url: str) -> str:
    """Label a URL by its built-in library name or with the protocol stripped."""
    return get_lib_with_version(url)[0]
