"""Remote state documents.

A fragment of the form ``#!<scheme>://...`` points at a JSON document
instead of carrying the state inline. This module turns such a URL into
an HTTP request and fetches it.

Supported schemes:
    - ``http://`` / ``https://`` — fetched as-is, no credentials
    - ``gs://bucket/path`` — Google Cloud Storage JSON API, ``"gcs"`` credentials
    - ``gs+xml://bucket/path`` — Google Cloud Storage XML API, ``"gcs"`` credentials
    - ``s3://bucket/path`` — public Amazon S3 object

Credentials are looked up by key in a ``CredentialsManager``. A missing
provider means the request is sent anonymously.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

import httpx

from hashsync.errors import RemoteLoadError

logger = logging.getLogger("hashsync.remote")

GCS_CREDENTIALS_KEY = "gcs"


@runtime_checkable
class CredentialsProvider(Protocol):
    async def get_token(self, *, refresh: bool = False) -> str | None:
        """Return a bearer token, or None for anonymous access.

        ``refresh=True`` is passed after the server rejected the previous
        token; providers should obtain a new one.
        """
        ...


class StaticCredentialsProvider:
    """Always returns the same token."""

    __slots__ = ("_token",)

    def __init__(self, token: str | None) -> None:
        self._token = token

    async def get_token(self, *, refresh: bool = False) -> str | None:
        return self._token


class CredentialsManager:
    """Registry of credentials providers by key (e.g. ``"gcs"``)."""

    __slots__ = ("_providers",)

    def __init__(self, providers: dict[str, CredentialsProvider] | None = None) -> None:
        self._providers: dict[str, CredentialsProvider] = dict(providers or {})

    def register(self, key: str, provider: CredentialsProvider) -> None:
        self._providers[key] = provider

    def get(self, key: str) -> CredentialsProvider | None:
        return self._providers.get(key)


@dataclass(frozen=True, slots=True)
class SpecialUrl:
    """A remote reference resolved to a fetchable HTTP(S) URL."""

    url: str
    credentials_provider: CredentialsProvider | None = None


def _split_bucket(url: str, prefix_len: int) -> tuple[str, str]:
    rest = url[prefix_len:]
    bucket, _, path = rest.partition("/")
    if not bucket:
        msg = "missing bucket name"
        raise RemoteLoadError(url, msg)
    return bucket, path


def parse_special_url(url: str, credentials_manager: CredentialsManager | None = None) -> SpecialUrl:
    """Resolve *url* to an HTTP(S) URL plus the credentials to send with it.

    Raises:
        RemoteLoadError: The scheme is not supported.
    """
    manager = credentials_manager or CredentialsManager()
    scheme, sep, _ = url.partition("://")
    if not sep:
        msg = "not a URL"
        raise RemoteLoadError(url, msg)

    if scheme in ("http", "https"):
        return SpecialUrl(url)

    if scheme == "gs":
        bucket, path = _split_bucket(url, len("gs://"))
        return SpecialUrl(
            f"https://www.googleapis.com/storage/v1/b/{bucket}/o/{quote(path, safe='')}?alt=media",
            manager.get(GCS_CREDENTIALS_KEY),
        )

    if scheme == "gs+xml":
        bucket, path = _split_bucket(url, len("gs+xml://"))
        return SpecialUrl(
            f"https://storage.googleapis.com/{bucket}/{path}",
            manager.get(GCS_CREDENTIALS_KEY),
        )

    if scheme == "s3":
        bucket, path = _split_bucket(url, len("s3://"))
        return SpecialUrl(f"https://{bucket}.s3.amazonaws.com/{path}")

    msg = f"unsupported URL scheme {scheme!r}. Supported: http, https, gs, gs+xml, s3"
    raise RemoteLoadError(url, msg)


async def _get(client: httpx.AsyncClient, url: str, token: str | None, timeout: float) -> httpx.Response:
    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    try:
        return await client.get(url, headers=headers, timeout=timeout, follow_redirects=True)
    except httpx.HTTPError as exc:
        raise RemoteLoadError(url, str(exc) or type(exc).__name__) from exc


async def fetch_json(
    special: SpecialUrl,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = 30.0,
) -> Any:
    """Fetch and parse the JSON document at *special*.

    Sends a bearer token when the provider yields one. A 401/403 response
    to an authenticated request asks the provider for a fresh token and
    retries once.

    Args:
        special: Resolved URL and credentials.
        client: Shared client to use. A short-lived client is created
            when omitted.
        timeout: Request timeout in seconds.

    Raises:
        RemoteLoadError: Transport failure, non-2xx status, or a body that
            is not valid JSON.
    """
    if client is None:
        async with httpx.AsyncClient() as owned:
            return await fetch_json(special, client=owned, timeout=timeout)

    provider = special.credentials_provider
    token = await provider.get_token() if provider is not None else None
    response = await _get(client, special.url, token, timeout)

    if response.status_code in (401, 403) and provider is not None:
        logger.debug("%d from %s, refreshing credentials", response.status_code, special.url)
        token = await provider.get_token(refresh=True)
        response = await _get(client, special.url, token, timeout)

    if not response.is_success:
        raise RemoteLoadError(special.url, response.reason_phrase or "request failed", status=response.status_code)

    try:
        return response.json()
    except ValueError as exc:
        msg = f"response is not valid JSON: {exc}"
        raise RemoteLoadError(special.url, msg) from exc
