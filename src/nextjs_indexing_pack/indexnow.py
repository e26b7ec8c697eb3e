"""IndexNow submission.

Sends one shared payload to every IndexNow-compatible endpoint concurrently.
A failing endpoint is recorded in the result and never affects the others.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import NotRequired, TypedDict

import httpx

from nextjs_indexing_pack.routes import (
    DEFAULT_BUILD_DIR,
    BaseUrl,
    RouteNormalizer,
    UrlFilter,
    parse_base_url,
    resolve_urls,
)

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINTS = (
    "https://api.indexnow.org/indexnow",
    "https://www.bing.com/indexnow",
    "https://yandex.com/indexnow",
    "https://searchadvisor.naver.com/indexnow",
)


class IndexNowPayloadDict(TypedDict):
    """IndexNow request body."""

    host: str
    key: str
    keyLocation: str
    urlList: list[str]


class SubmissionResponseDict(TypedDict):
    """Serialized submission response."""

    status: int
    ok: bool
    body: NotRequired[str]


@dataclass
class SubmissionResponse:
    """Outcome of one submission request."""

    status: int
    ok: bool
    body: str | None = None

    @classmethod
    def from_response(cls, response: httpx.Response) -> "SubmissionResponse":
        """Build from a received HTTP response."""
        return cls(
            status=response.status_code,
            ok=response.is_success,
            body=response.text or None,
        )

    @classmethod
    def from_error(cls, error: Exception) -> "SubmissionResponse":
        """Build from a transport failure (no response received)."""
        return cls(status=0, ok=False, body=str(error) or type(error).__name__)

    def to_dict(self) -> SubmissionResponseDict:
        data: SubmissionResponseDict = {"status": self.status, "ok": self.ok}
        if self.body is not None:
            data["body"] = self.body
        return data


@dataclass
class IndexNowResult:
    """Result of an IndexNow submission."""

    urls: list[str]
    responses: dict[str, SubmissionResponse] = field(default_factory=dict)


def build_payload(
    base: BaseUrl,
    key: str,
    urls: list[str],
    key_location: str | None = None,
) -> IndexNowPayloadDict:
    """Build the IndexNow request body.

    Args:
        base: Normalized site base URL
        key: IndexNow key
        urls: Absolute URLs to submit
        key_location: Public key file URL (default: ``{base}/{key}.txt``)

    Returns:
        Payload shared by all endpoints
    """
    return {
        "host": base.host,
        "key": key,
        "keyLocation": key_location or f"{base.base}/{key}.txt",
        "urlList": urls,
    }


async def _post_to_endpoint(
    client: httpx.AsyncClient,
    endpoint: str,
    payload: IndexNowPayloadDict,
) -> SubmissionResponse:
    try:
        response = await client.post(
            endpoint,
            json=payload,
            headers={"Content-Type": "application/json"},
        )
    except httpx.HTTPError as e:
        logger.warning(f"IndexNow request to {endpoint} failed: {e!r}")
        return SubmissionResponse.from_error(e)

    if response.is_success:
        logger.info(f"IndexNow endpoint {endpoint} accepted submission ({response.status_code})")
    else:
        logger.warning(f"IndexNow endpoint {endpoint} returned {response.status_code}: {response.text}")
    return SubmissionResponse.from_response(response)


async def submit_payload(
    client: httpx.AsyncClient,
    endpoints: Sequence[str],
    payload: IndexNowPayloadDict,
) -> dict[str, SubmissionResponse]:
    """Post a payload to all endpoints concurrently.

    Args:
        client: HTTP client
        endpoints: Endpoint URLs
        payload: IndexNow request body

    Returns:
        One response per endpoint, keyed by endpoint URL
    """
    results = await asyncio.gather(
        *(_post_to_endpoint(client, endpoint, payload) for endpoint in endpoints)
    )
    return dict(zip(endpoints, results, strict=True))


async def submit_to_indexnow(
    base_url: str,
    key: str,
    *,
    build_dir: str | Path = DEFAULT_BUILD_DIR,
    key_location: str | None = None,
    endpoints: Sequence[str] = DEFAULT_ENDPOINTS,
    url_filter: UrlFilter | None = None,
    urls: list[str] | None = None,
    dry_run: bool = False,
    normalizer: RouteNormalizer | None = None,
    client: httpx.AsyncClient | None = None,
) -> IndexNowResult:
    """Submit site URLs to IndexNow-compatible endpoints.

    Args:
        base_url: Fully qualified site URL (e.g., https://example.com)
        key: IndexNow key; the key file must be served by the site
        build_dir: Next.js build output directory
        key_location: Public key file URL (default: ``{base}/{key}.txt``)
        endpoints: Endpoints to notify
        url_filter: Optional predicate to drop URLs from the submission
        urls: Explicit absolute URLs that bypass route discovery
        dry_run: Collect URLs without submitting them
        normalizer: Route normalizer used for discovery
        client: HTTP client (a new one is created when omitted)

    Returns:
        Submitted URLs and one response per endpoint

    Raises:
        ValueError: If base_url, key, an explicit URL or a manifest is invalid
    """
    base = parse_base_url(base_url)
    if not key:
        raise ValueError("`key` must be provided.")

    url_list = resolve_urls(base, build_dir, urls, url_filter, normalizer)
    result = IndexNowResult(urls=url_list)

    if dry_run:
        logger.info(f"Dry run: skipping IndexNow submission of {len(url_list)} URLs")
        return result

    payload = build_payload(base, key, url_list, key_location)
    logger.info(f"Submitting {len(url_list)} URLs to {len(endpoints)} IndexNow endpoints")
    logger.debug(f"Payload: {payload}")

    if client is not None:
        result.responses = await submit_payload(client, endpoints, payload)
        return result

    async with httpx.AsyncClient() as http_client:
        result.responses = await submit_payload(http_client, endpoints, payload)
    return result
