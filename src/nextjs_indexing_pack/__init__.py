"""nextjs-indexing-pack: notify search engines about Next.js routes.

Discovers indexable routes from a Next.js build and submits them to IndexNow
and the Google Indexing API.
"""

from nextjs_indexing_pack.google import (
    GoogleIndexingResult,
    UrlSubmissionResponse,
    submit_to_google_indexing,
)
from nextjs_indexing_pack.indexnow import (
    DEFAULT_ENDPOINTS,
    IndexNowResult,
    SubmissionResponse,
    submit_to_indexnow,
)
from nextjs_indexing_pack.metadata import generate_indexing_metadata, generate_robots_tag
from nextjs_indexing_pack.oauth import ServiceAccount, TokenRequestError, fetch_access_token
from nextjs_indexing_pack.routes import (
    DEFAULT_EXCLUDED_ROUTES,
    RouteNormalizer,
    collect_indexable_routes,
)

__all__ = [
    "DEFAULT_ENDPOINTS",
    "DEFAULT_EXCLUDED_ROUTES",
    "GoogleIndexingResult",
    "IndexNowResult",
    "RouteNormalizer",
    "ServiceAccount",
    "SubmissionResponse",
    "TokenRequestError",
    "UrlSubmissionResponse",
    "collect_indexable_routes",
    "fetch_access_token",
    "generate_indexing_metadata",
    "generate_robots_tag",
    "submit_to_google_indexing",
    "submit_to_indexnow",
]
