"""Google Indexing API submission.

URLs are published one at a time with a single access token per run.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, get_args

import httpx

from nextjs_indexing_pack.indexnow import SubmissionResponse, SubmissionResponseDict
from nextjs_indexing_pack.oauth import fetch_access_token
from nextjs_indexing_pack.routes import (
    DEFAULT_BUILD_DIR,
    RouteNormalizer,
    UrlFilter,
    parse_base_url,
    resolve_urls,
)

logger = logging.getLogger(__name__)

GOOGLE_INDEXING_ENDPOINT = "https://indexing.googleapis.com/v3/urlNotifications:publish"

NotificationType = Literal["URL_UPDATED", "URL_DELETED"]
NOTIFICATION_TYPES: tuple[str, ...] = get_args(NotificationType)


class UrlSubmissionResponseDict(SubmissionResponseDict):
    """Serialized per-URL submission response."""

    url: str


@dataclass
class UrlSubmissionResponse:
    """Outcome of one URL notification."""

    url: str
    status: int
    ok: bool
    body: str | None = None

    def to_dict(self) -> UrlSubmissionResponseDict:
        data: UrlSubmissionResponseDict = {"url": self.url, "status": self.status, "ok": self.ok}
        if self.body is not None:
            data["body"] = self.body
        return data


@dataclass
class GoogleIndexingResult:
    """Result of a Google Indexing API submission."""

    urls: list[str]
    responses: list[UrlSubmissionResponse] = field(default_factory=list)


async def publish_url(
    client: httpx.AsyncClient,
    access_token: str,
    url: str,
    notification_type: NotificationType = "URL_UPDATED",
) -> UrlSubmissionResponse:
    """Publish a single URL notification.

    Transport failures are returned as a response with status 0.

    Args:
        client: HTTP client
        access_token: Bearer access token
        url: Absolute URL to notify about
        notification_type: URL_UPDATED or URL_DELETED

    Returns:
        Submission outcome for the URL
    """
    try:
        response = await client.post(
            GOOGLE_INDEXING_ENDPOINT,
            json={"url": url, "type": notification_type},
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {access_token}",
            },
        )
    except httpx.HTTPError as e:
        logger.warning(f"Google Indexing request for {url} failed: {e!r}")
        outcome = SubmissionResponse.from_error(e)
    else:
        if not response.is_success:
            logger.warning(f"Google Indexing returned {response.status_code} for {url}: {response.text}")
        outcome = SubmissionResponse.from_response(response)

    return UrlSubmissionResponse(
        url=url,
        status=outcome.status,
        ok=outcome.ok,
        body=outcome.body,
    )


async def _publish_all(
    client: httpx.AsyncClient,
    service_account_path: str | Path,
    urls: list[str],
    notification_type: NotificationType,
) -> list[UrlSubmissionResponse]:
    access_token = await fetch_access_token(service_account_path, client)

    responses: list[UrlSubmissionResponse] = []
    for url in urls:
        responses.append(await publish_url(client, access_token, url, notification_type))
    ok_count = sum(1 for response in responses if response.ok)
    logger.info(f"Google Indexing accepted {ok_count} of {len(responses)} URLs")
    return responses


async def submit_to_google_indexing(
    base_url: str,
    service_account_path: str | Path,
    *,
    build_dir: str | Path = DEFAULT_BUILD_DIR,
    url_filter: UrlFilter | None = None,
    dry_run: bool = False,
    notification_type: NotificationType = "URL_UPDATED",
    urls: list[str] | None = None,
    normalizer: RouteNormalizer | None = None,
    client: httpx.AsyncClient | None = None,
) -> GoogleIndexingResult:
    """Notify the Google Indexing API about site URLs.

    Args:
        base_url: Fully qualified site URL (e.g., https://example.com)
        service_account_path: Path to the service account JSON credentials
        build_dir: Next.js build output directory
        url_filter: Optional predicate to drop URLs from the submission
        dry_run: Collect URLs without reading credentials or submitting
        notification_type: URL_UPDATED (default) or URL_DELETED
        urls: Explicit absolute URLs that bypass route discovery
        normalizer: Route normalizer used for discovery
        client: HTTP client (a new one is created when omitted)

    Returns:
        Submitted URLs and one response per URL, in submission order

    Raises:
        ValueError: If an argument, explicit URL, manifest or credential is invalid
        FileNotFoundError: If the service account file doesn't exist
        TokenRequestError: If no access token could be obtained
    """
    base = parse_base_url(base_url)
    if not service_account_path:
        raise ValueError("`service_account_path` must be provided.")
    if notification_type not in NOTIFICATION_TYPES:
        raise ValueError(
            f"`notification_type` must be one of {', '.join(NOTIFICATION_TYPES)}. "
            f"Received: {notification_type}"
        )

    url_list = resolve_urls(base, build_dir, urls, url_filter, normalizer)
    result = GoogleIndexingResult(urls=url_list)

    if dry_run:
        logger.info(f"Dry run: skipping Google Indexing submission of {len(url_list)} URLs")
        return result

    logger.info(f"Submitting {len(url_list)} URLs to the Google Indexing API ({notification_type})")
    if client is not None:
        result.responses = await _publish_all(client, service_account_path, url_list, notification_type)
        return result

    async with httpx.AsyncClient() as http_client:
        result.responses = await _publish_all(
            http_client, service_account_path, url_list, notification_type
        )
    return result
