"""Next.js build manifest reading.

Each manifest under the build directory is optional. Missing files contribute
no routes; files that exist must be valid JSON.
"""

import json
import logging
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

ROUTES_MANIFEST = "routes-manifest.json"
PRERENDER_MANIFEST = "prerender-manifest.json"
PAGES_MANIFEST = Path("server") / "pages-manifest.json"
APP_PATHS_MANIFEST = Path("server") / "app-paths-manifest.json"

# Route groups like "(marketing)" never appear in the public URL
ROUTE_GROUP_RE = re.compile(r"/\([^/]*\)(?=/|$)")
APP_ENTRY_SEGMENTS = ("/page", "/route")


def read_json_if_exists(path: Path) -> Any | None:
    """Read a JSON file, returning None when it doesn't exist.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON data or None if file is missing

    Raises:
        ValueError: If file exists but is not valid JSON
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug(f"Manifest not found, skipping: {path}")
        return None

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse manifest {path}: {e}") from e


def static_route_keys(data: object) -> Iterator[str]:
    """Extract page paths from routes-manifest.json."""
    if not isinstance(data, dict):
        return
    static_routes = data.get("staticRoutes")
    if not isinstance(static_routes, list):
        return
    for route in static_routes:
        if isinstance(route, dict) and isinstance(route.get("page"), str) and route["page"]:
            yield route["page"]


def prerender_route_keys(data: object) -> Iterator[str]:
    """Extract route keys from prerender-manifest.json."""
    if not isinstance(data, dict):
        return
    routes = data.get("routes")
    if isinstance(routes, dict):
        yield from (key for key in routes if isinstance(key, str))


def pages_route_keys(data: object) -> Iterator[str]:
    """Extract route keys from server/pages-manifest.json."""
    if isinstance(data, dict):
        yield from (key for key in data if isinstance(key, str))


def app_route_keys(data: object) -> Iterator[str]:
    """Extract route keys from server/app-paths-manifest.json.

    App router keys name the entry file (``/about/page``, ``/robots.txt/route``),
    so the trailing ``/page`` or ``/route`` segment and any route group
    segments are removed.
    """
    if not isinstance(data, dict):
        return
    for key in data:
        if not isinstance(key, str):
            continue
        route = ROUTE_GROUP_RE.sub("", key)
        for entry in APP_ENTRY_SEGMENTS:
            if route == entry or route == entry.lstrip("/"):
                route = "/"
                break
            if route.endswith(entry):
                route = route[: -len(entry)]
                break
        yield route


def read_route_keys(build_dir: str | Path) -> Iterator[str]:
    """Yield raw route keys from every manifest found in the build directory.

    Args:
        build_dir: Next.js build output directory (usually ``.next``)

    Yields:
        Raw route keys in manifest order, not yet normalized
    """
    root = Path(build_dir).resolve()
    sources = (
        (ROUTES_MANIFEST, static_route_keys),
        (PRERENDER_MANIFEST, prerender_route_keys),
        (PAGES_MANIFEST, pages_route_keys),
        (APP_PATHS_MANIFEST, app_route_keys),
    )
    for relative_path, extract in sources:
        data = read_json_if_exists(root / relative_path)
        if data is None:
            continue
        keys = list(extract(data))
        logger.debug(f"Read {len(keys)} route keys from {relative_path}")
        yield from keys
