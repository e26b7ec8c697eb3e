"""OAuth 2.0 service account authentication for the Google Indexing API.

Implements the JWT bearer flow: a service account signs an RS256 assertion
which is exchanged for a short-lived access token.
"""

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path

import httpx
from authlib.jose import jwt
from cryptography.hazmat.primitives.serialization import load_pem_private_key

logger = logging.getLogger(__name__)

GOOGLE_INDEXING_SCOPE = "https://www.googleapis.com/auth/indexing"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME = 3600


class TokenRequestError(RuntimeError):
    """Access token could not be obtained from the token endpoint."""


@dataclass(frozen=True)
class ServiceAccount:
    """Google service account credentials."""

    client_email: str
    private_key: str
    token_uri: str = GOOGLE_TOKEN_URL


def read_service_account(path: str | Path) -> ServiceAccount:
    """Read service account credentials from a JSON key file.

    Args:
        path: Path to the service account JSON file

    Returns:
        ServiceAccount instance

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid JSON or a required field is missing
    """
    resolved_path = Path(path).resolve()
    if not resolved_path.exists():
        raise FileNotFoundError(f"Google service account file not found: {resolved_path}")

    try:
        data = json.loads(resolved_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(
            f"Failed to parse Google service account JSON at {resolved_path}: {e}"
        ) from e

    if not isinstance(data, dict):
        raise ValueError(f"Google service account JSON at {resolved_path} must be an object")

    client_email = data.get("client_email")
    private_key = data.get("private_key")
    token_uri = data.get("token_uri")
    if token_uri is None:
        token_uri = GOOGLE_TOKEN_URL

    for name, value in (
        ("client_email", client_email),
        ("private_key", private_key),
        ("token_uri", token_uri),
    ):
        if not isinstance(value, str) or not value:
            raise ValueError(
                f'Google service account JSON at {resolved_path} is missing "{name}".'
            )

    return ServiceAccount(client_email=client_email, private_key=private_key, token_uri=token_uri)


def create_assertion(account: ServiceAccount, now: int | None = None) -> str:
    """Create a signed JWT bearer assertion.

    Args:
        account: Service account credentials
        now: Issue time in seconds since the epoch (default: current time)

    Returns:
        Compact JWS ``header.payload.signature``

    Raises:
        ValueError: If the private key is not a valid PEM RSA key
    """
    try:
        load_pem_private_key(account.private_key.encode("utf-8"), password=None)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid private key format: {e}") from e

    issued_at = int(time.time()) if now is None else now
    header = {"alg": "RS256", "typ": "JWT"}
    claims = {
        "iss": account.client_email,
        "scope": GOOGLE_INDEXING_SCOPE,
        "aud": account.token_uri,
        "iat": issued_at,
        "exp": issued_at + ASSERTION_LIFETIME,
    }
    return jwt.encode(header, claims, account.private_key).decode("ascii")


async def request_access_token(account: ServiceAccount, client: httpx.AsyncClient) -> str:
    """Exchange a signed assertion for an access token.

    Args:
        account: Service account credentials
        client: HTTP client

    Returns:
        Bearer access token

    Raises:
        TokenRequestError: If the token endpoint rejects the request or returns
            no access token
    """
    assertion = create_assertion(account)
    logger.info(f"Requesting access token for {account.client_email}")
    response = await client.post(
        account.token_uri,
        data={"grant_type": JWT_BEARER_GRANT_TYPE, "assertion": assertion},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )

    text = response.text
    if not response.is_success:
        logger.error(f"Token request failed: {response.status_code} {text}")
        raise TokenRequestError(
            f"Google OAuth token request failed with status {response.status_code}: "
            f"{text or 'no response body'}"
        )

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise TokenRequestError(f"Failed to parse Google OAuth token response: {e}") from e

    access_token = data.get("access_token") if isinstance(data, dict) else None
    if not isinstance(access_token, str) or not access_token:
        raise TokenRequestError('Google OAuth token response did not include an "access_token".')

    return access_token


async def fetch_access_token(path: str | Path, client: httpx.AsyncClient) -> str:
    """Read a service account file and obtain an access token.

    Args:
        path: Path to the service account JSON file
        client: HTTP client

    Returns:
        Bearer access token
    """
    account = read_service_account(path)
    return await request_access_token(account, client)
