"""Tests for Google Indexing API submission."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from nextjs_indexing_pack.google import (
    GOOGLE_INDEXING_ENDPOINT,
    UrlSubmissionResponse,
    submit_to_google_indexing,
)
from nextjs_indexing_pack.oauth import TokenRequestError

TOKEN_URI = "https://oauth2.example.com/token"


def _google_handler(
    publish: Callable[[httpx.Request], httpx.Response],
) -> Callable[[httpx.Request], httpx.Response]:
    """Answer token requests with a fixed token and delegate the rest."""

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URI:
            return httpx.Response(200, json={"access_token": "ya29.test", "token_type": "Bearer"})
        return publish(request)

    return handler


class TestSubmitToGoogleIndexing:
    """Tests for submit_to_google_indexing()."""

    @pytest.fixture
    def site_build(self, write_manifests: Callable[..., Path]) -> Path:
        return write_manifests(static_routes=["/", "/about", "/blog/[slug]", "/_error"])

    @pytest.mark.asyncio
    async def test__missing_service_account_path__raises_error(self, site_build: Path) -> None:
        with pytest.raises(ValueError, match="`service_account_path` must be provided"):
            await submit_to_google_indexing("https://ex.com", "", build_dir=site_build)

    @pytest.mark.asyncio
    async def test__invalid_notification_type__raises_error(
        self, site_build: Path, service_account_file: Path
    ) -> None:
        with pytest.raises(ValueError, match="notification_type"):
            await submit_to_google_indexing(
                "https://ex.com",
                service_account_file,
                build_dir=site_build,
                notification_type="URL_CHANGED",  # type: ignore[arg-type]
            )

    @pytest.mark.asyncio
    async def test__dry_run__skips_credentials_and_network(
        self, site_build: Path, tmp_path: Path, make_transport: Any
    ) -> None:
        """Dry run never reads the credential file."""
        transport = make_transport(lambda request: httpx.Response(200))

        async with httpx.AsyncClient(transport=transport) as client:
            result = await submit_to_google_indexing(
                "https://ex.com",
                tmp_path / "does-not-exist.json",
                build_dir=site_build,
                dry_run=True,
                client=client,
            )

        assert result.urls == ["https://ex.com", "https://ex.com/about"]
        assert result.responses == []
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test__malformed_explicit_url__fails_before_network(
        self, service_account_file: Path, make_transport: Any
    ) -> None:
        transport = make_transport(lambda request: httpx.Response(200))

        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(ValueError, match="not-a-url"):
                await submit_to_google_indexing(
                    "https://ex.com",
                    service_account_file,
                    urls=["https://ex.com/a", "https://ex.com/a", "not-a-url"],
                    client=client,
                )

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test__submission__one_token_then_sequential_posts(
        self, site_build: Path, service_account_file: Path, make_transport: Any
    ) -> None:
        """Token is requested once and each URL is published in order."""
        transport = make_transport(_google_handler(lambda request: httpx.Response(200, json={})))

        async with httpx.AsyncClient(transport=transport) as client:
            result = await submit_to_google_indexing(
                "https://ex.com",
                service_account_file,
                build_dir=site_build,
                client=client,
            )

        token_request, *publish_requests = transport.requests
        assert str(token_request.url) == TOKEN_URI
        assert [str(request.url) for request in publish_requests] == [GOOGLE_INDEXING_ENDPOINT] * 2
        assert [json.loads(request.content) for request in publish_requests] == [
            {"url": "https://ex.com", "type": "URL_UPDATED"},
            {"url": "https://ex.com/about", "type": "URL_UPDATED"},
        ]
        assert all(
            request.headers["Authorization"] == "Bearer ya29.test" for request in publish_requests
        )
        assert result.responses == [
            UrlSubmissionResponse(url="https://ex.com", status=200, ok=True, body="{}"),
            UrlSubmissionResponse(url="https://ex.com/about", status=200, ok=True, body="{}"),
        ]

    @pytest.mark.asyncio
    async def test__url_deleted__sent_as_type(
        self, service_account_file: Path, make_transport: Any
    ) -> None:
        transport = make_transport(_google_handler(lambda request: httpx.Response(200)))

        async with httpx.AsyncClient(transport=transport) as client:
            await submit_to_google_indexing(
                "https://ex.com",
                service_account_file,
                urls=["https://ex.com/gone"],
                notification_type="URL_DELETED",
                client=client,
            )

        assert json.loads(transport.requests[-1].content) == {
            "url": "https://ex.com/gone",
            "type": "URL_DELETED",
        }

    @pytest.mark.asyncio
    async def test__mixed_failures__one_entry_per_url_in_order(
        self, service_account_file: Path, make_transport: Any
    ) -> None:
        """A failed URL never stops the following ones."""

        def publish(request: httpx.Request) -> httpx.Response:
            url = json.loads(request.content)["url"]
            if url.endswith("/down"):
                raise httpx.ReadError("connection reset", request=request)
            if url.endswith("/quota"):
                return httpx.Response(429, text="Quota exceeded")
            return httpx.Response(200, text="{}")

        urls = ["https://ex.com/a", "https://ex.com/down", "https://ex.com/quota", "https://ex.com/b"]
        async with httpx.AsyncClient(transport=make_transport(_google_handler(publish))) as client:
            result = await submit_to_google_indexing(
                "https://ex.com", service_account_file, urls=urls, client=client
            )

        assert result.urls == urls
        assert result.responses == [
            UrlSubmissionResponse(url="https://ex.com/a", status=200, ok=True, body="{}"),
            UrlSubmissionResponse(url="https://ex.com/down", status=0, ok=False, body="connection reset"),
            UrlSubmissionResponse(url="https://ex.com/quota", status=429, ok=False, body="Quota exceeded"),
            UrlSubmissionResponse(url="https://ex.com/b", status=200, ok=True, body="{}"),
        ]

    @pytest.mark.asyncio
    async def test__token_failure__propagates(
        self, service_account_file: Path, make_transport: Any
    ) -> None:
        """No URL is submitted without a token."""
        transport = make_transport(lambda request: httpx.Response(401, text="unauthorized_client"))

        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(TokenRequestError, match="unauthorized_client"):
                await submit_to_google_indexing(
                    "https://ex.com",
                    service_account_file,
                    urls=["https://ex.com/a"],
                    client=client,
                )

        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test__url_filter__applied_to_discovered_urls(
        self, site_build: Path, service_account_file: Path, make_transport: Any
    ) -> None:
        transport = make_transport(_google_handler(lambda request: httpx.Response(200)))

        async with httpx.AsyncClient(transport=transport) as client:
            result = await submit_to_google_indexing(
                "https://ex.com",
                service_account_file,
                build_dir=site_build,
                url_filter=lambda url: url != "https://ex.com",
                client=client,
            )

        assert result.urls == ["https://ex.com/about"]
        assert [response.url for response in result.responses] == ["https://ex.com/about"]

    def test__response_to_dict__omits_empty_body(self) -> None:
        response = UrlSubmissionResponse(url="https://ex.com", status=0, ok=False)

        assert response.to_dict() == {"url": "https://ex.com", "status": 0, "ok": False}
