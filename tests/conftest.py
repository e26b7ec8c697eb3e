"""Shared test fixtures."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey


@pytest.fixture
def build_dir(tmp_path: Path) -> Path:
    """Create an empty .next build directory."""
    path = tmp_path / ".next"
    (path / "server").mkdir(parents=True)
    return path


@pytest.fixture
def write_manifests(build_dir: Path) -> Callable[..., Path]:
    """Return a helper that writes manifests into the build directory.

    Each keyword argument is written only when provided, so tests can
    simulate any subset of manifests being present.
    """

    def write(
        static_routes: list[str] | None = None,
        prerender_routes: list[str] | None = None,
        pages: list[str] | None = None,
        app_paths: list[str] | None = None,
    ) -> Path:
        if static_routes is not None:
            data: Any = {"version": 3, "staticRoutes": [{"page": page} for page in static_routes]}
            (build_dir / "routes-manifest.json").write_text(json.dumps(data))
        if prerender_routes is not None:
            data = {"version": 4, "routes": {route: {} for route in prerender_routes}}
            (build_dir / "prerender-manifest.json").write_text(json.dumps(data))
        if pages is not None:
            data = {page: f"pages{page}.js" for page in pages}
            (build_dir / "server" / "pages-manifest.json").write_text(json.dumps(data))
        if app_paths is not None:
            data = {path: f"app{path}.js" for path in app_paths}
            (build_dir / "server" / "app-paths-manifest.json").write_text(json.dumps(data))
        return build_dir

    return write


@pytest.fixture(scope="session")
def rsa_key() -> RSAPrivateKey:
    """Generate an RSA key once for the test session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def private_key_pem(rsa_key: RSAPrivateKey) -> str:
    """PEM-encoded PKCS#8 private key, as found in service account files."""
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def service_account_file(tmp_path: Path, private_key_pem: str) -> Path:
    """Write a valid service account JSON file."""
    path = tmp_path / "service-account.json"
    path.write_text(
        json.dumps(
            {
                "type": "service_account",
                "client_email": "indexer@example.iam.gserviceaccount.com",
                "private_key": private_key_pem,
                "token_uri": "https://oauth2.example.com/token",
            }
        )
    )
    return path


class RecordingTransport(httpx.MockTransport):
    """Mock transport that records every request it handles."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def make_transport() -> Callable[[Callable[[httpx.Request], httpx.Response]], RecordingTransport]:
    """Return a factory for recording mock transports."""
    return RecordingTransport
