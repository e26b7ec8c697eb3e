"""Route discovery and normalization.

Turns raw route keys from the Next.js build manifests into the canonical set
of indexable paths, and maps those paths to absolute URLs.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from nextjs_indexing_pack.manifests import read_route_keys

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_ROUTES = frozenset(
    {
        "/404",
        "/500",
        "/_error",
        "/_app",
        "/_document",
        "/_middleware",
        "/index",
        "/_not-found",
    }
)
INTERNAL_PREFIX = "/_next"
DEFAULT_BUILD_DIR = ".next"

UrlFilter = Callable[[str], bool]

_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_route(route: str) -> str:
    """Normalize a raw route key to a path.

    Adds a leading slash, strips one trailing slash and maps ``/index`` to root.
    """
    if not route.startswith("/"):
        route = f"/{route}"
    if route != "/" and route.endswith("/"):
        route = route[:-1]
    if route == "/index":
        return "/"
    return route


def is_dynamic_route(route: str) -> bool:
    """Check whether a route contains dynamic segment markers."""
    return "[" in route or "]" in route or ":" in route


def sort_routes(routes: Iterable[str]) -> list[str]:
    """Sort routes with root first and the rest ascending."""
    return sorted(routes, key=lambda route: (route != "/", route))


@dataclass(frozen=True)
class RouteNormalizer:
    """Canonicalizes raw route keys and drops non-indexable ones."""

    excluded_routes: frozenset[str] = DEFAULT_EXCLUDED_ROUTES
    internal_prefix: str = INTERNAL_PREFIX

    def is_excluded(self, route: str) -> bool:
        """Check whether a normalized route must never be submitted.

        Args:
            route: Normalized route

        Returns:
            True for non-content pages, internal assets and dynamic routes
        """
        if route in self.excluded_routes:
            return True
        if route.startswith(self.internal_prefix):
            return True
        return is_dynamic_route(route)

    def normalize(self, route: str) -> str | None:
        """Normalize a raw route key, returning None if it's excluded."""
        normalized = normalize_route(route)
        if self.is_excluded(normalized):
            return None
        return normalized

    def collect(self, raw_routes: Iterable[str]) -> list[str]:
        """Build the sorted canonical route list from raw route keys.

        Args:
            raw_routes: Route keys from any number of manifest sources

        Returns:
            Deduplicated routes, root first
        """
        routes: set[str] = set()
        for raw_route in raw_routes:
            normalized = self.normalize(raw_route)
            if normalized is not None:
                routes.add(normalized)
        return sort_routes(routes)


def collect_indexable_routes(
    build_dir: str | Path = DEFAULT_BUILD_DIR,
    normalizer: RouteNormalizer | None = None,
) -> list[str]:
    """Discover indexable routes from a Next.js build directory.

    Args:
        build_dir: Next.js build output directory
        normalizer: Route normalizer (default exclusions when omitted)

    Returns:
        Canonical routes, root first and the rest sorted

    Raises:
        ValueError: If a manifest exists but is not valid JSON
    """
    normalizer = normalizer or RouteNormalizer()
    routes = normalizer.collect(read_route_keys(build_dir))
    logger.info(f"Discovered {len(routes)} indexable routes in {build_dir}")
    return routes


@dataclass(frozen=True)
class BaseUrl:
    """Normalized site base URL."""

    host: str
    """Host with non-default port (``example.com:8080``)."""

    base: str
    """Origin plus path without trailing slash (``https://example.com/docs``)."""


def _host(scheme: str, hostname: str, port: int | None) -> str:
    if ":" in hostname:
        hostname = f"[{hostname}]"
    if port is None or port == _DEFAULT_PORTS.get(scheme):
        return hostname
    return f"{hostname}:{port}"


def parse_base_url(base_url: str) -> BaseUrl:
    """Validate and normalize a site base URL.

    Args:
        base_url: Fully qualified URL (e.g., https://example.com)

    Returns:
        BaseUrl with host and normalized base

    Raises:
        ValueError: If base_url is empty or not a fully qualified http(s) URL
    """
    if not base_url:
        raise ValueError("`base_url` must be provided.")

    invalid = ValueError(
        f"`base_url` must be a fully qualified URL (for example, https://example.com). "
        f"Received: {base_url}"
    )
    try:
        parts = urlsplit(base_url.strip())
        port = parts.port
    except ValueError as e:
        raise invalid from e
    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS or not parts.hostname:
        raise invalid

    host = _host(scheme, parts.hostname, port)
    path = parts.path
    if path.endswith("/"):
        path = path[:-1]
    return BaseUrl(host=host, base=f"{scheme}://{host}{path}")


def route_to_url(base: BaseUrl, route: str) -> str:
    """Map a canonical route to an absolute URL."""
    if route == "/":
        return base.base
    return f"{base.base}{route}"


def routes_to_urls(
    base: BaseUrl,
    routes: Iterable[str],
    url_filter: UrlFilter | None = None,
) -> list[str]:
    """Map routes to absolute URLs and apply the optional filter."""
    urls = [route_to_url(base, route) for route in routes]
    if url_filter is None:
        return urls
    return [url for url in urls if url_filter(url)]


def normalize_absolute_url(url: str) -> str:
    """Parse and normalize an absolute URL.

    Args:
        url: URL to check

    Returns:
        URL with lowercased scheme and host, and ``/`` for an empty path

    Raises:
        ValueError: If url is not an absolute URL
    """
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError as e:
        raise ValueError(f"Invalid URL: {url}") from e
    scheme = parts.scheme.lower()
    if not scheme or not parts.hostname:
        raise ValueError(f"Invalid URL: {url}")

    netloc = _host(scheme, parts.hostname, port)
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, parts.fragment))


def resolve_explicit_urls(
    urls: Iterable[str],
    url_filter: UrlFilter | None = None,
) -> list[str]:
    """Validate, filter and deduplicate an explicit URL list.

    Every entry is validated before anything is returned, so a single
    malformed URL fails the whole list.

    Args:
        urls: Absolute URLs (blank entries are ignored)
        url_filter: Optional predicate over normalized URLs

    Returns:
        Unique URLs in first-seen order

    Raises:
        ValueError: If any entry is not an absolute URL
    """
    normalized = [normalize_absolute_url(url) for url in urls if url and url.strip()]

    seen: set[str] = set()
    result: list[str] = []
    for url in normalized:
        if url_filter is not None and not url_filter(url):
            continue
        if url in seen:
            continue
        seen.add(url)
        result.append(url)
    return result


def resolve_urls(
    base: BaseUrl,
    build_dir: str | Path = DEFAULT_BUILD_DIR,
    explicit_urls: list[str] | None = None,
    url_filter: UrlFilter | None = None,
    normalizer: RouteNormalizer | None = None,
) -> list[str]:
    """Select the URLs to submit.

    An explicit URL list takes precedence; otherwise routes are discovered in
    the build directory and mapped against the base URL.

    Args:
        base: Normalized base URL
        build_dir: Next.js build output directory
        explicit_urls: Optional absolute URLs that bypass discovery
        url_filter: Optional predicate over absolute URLs
        normalizer: Route normalizer used for discovery

    Returns:
        URLs to submit

    Raises:
        ValueError: If an explicit URL is malformed or a manifest is invalid
    """
    if explicit_urls:
        urls = resolve_explicit_urls(explicit_urls, url_filter)
        logger.info(f"Using {len(urls)} explicit URLs")
        return urls

    routes = collect_indexable_routes(build_dir, normalizer)
    return routes_to_urls(base, routes, url_filter)
