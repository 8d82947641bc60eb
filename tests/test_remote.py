"""Tests for hashsync.remote — special URL resolution and JSON fetch."""

import httpx
import pytest

from hashsync.errors import RemoteLoadError
from hashsync.remote import (
    CredentialsManager,
    CredentialsProvider,
    SpecialUrl,
    StaticCredentialsProvider,
    fetch_json,
    parse_special_url,
)


class RotatingCredentials:
    """Hands out token-1, then token-2 after a refresh."""

    def __init__(self) -> None:
        self.refreshes = 0

    async def get_token(self, *, refresh: bool = False) -> str | None:
        if refresh:
            self.refreshes += 1
        return f"token-{self.refreshes + 1}"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestParseSpecialUrl:
    def test_https_passthrough(self) -> None:
        special = parse_special_url("https://host/state.json")
        assert special == SpecialUrl("https://host/state.json")

    def test_http_passthrough(self) -> None:
        assert parse_special_url("http://host/s.json").url == "http://host/s.json"

    def test_gs_json_api_quotes_path(self) -> None:
        special = parse_special_url("gs://bucket/dir/state.json")
        assert special.url == (
            "https://www.googleapis.com/storage/v1/b/bucket/o/dir%2Fstate.json?alt=media"
        )
        assert special.credentials_provider is None

    def test_gs_uses_registered_credentials(self) -> None:
        provider = StaticCredentialsProvider("abc")
        manager = CredentialsManager({"gcs": provider})
        assert parse_special_url("gs://bucket/s.json", manager).credentials_provider is provider

    def test_gs_xml(self) -> None:
        special = parse_special_url("gs+xml://bucket/dir/state.json")
        assert special.url == "https://storage.googleapis.com/bucket/dir/state.json"

    def test_s3(self) -> None:
        special = parse_special_url("s3://bucket/dir/state.json")
        assert special == SpecialUrl("https://bucket.s3.amazonaws.com/dir/state.json")

    def test_missing_bucket(self) -> None:
        with pytest.raises(RemoteLoadError, match="missing bucket"):
            parse_special_url("gs:///state.json")

    def test_unsupported_scheme(self) -> None:
        with pytest.raises(RemoteLoadError, match="unsupported URL scheme 'ftp'"):
            parse_special_url("ftp://host/state.json")


class TestCredentials:
    def test_static_provider_satisfies_protocol(self) -> None:
        assert isinstance(StaticCredentialsProvider("t"), CredentialsProvider)

    def test_manager_register_and_get(self) -> None:
        manager = CredentialsManager()
        provider = StaticCredentialsProvider("t")
        manager.register("gcs", provider)
        assert manager.get("gcs") is provider
        assert manager.get("other") is None


@pytest.mark.anyio
class TestFetchJson:
    async def test_returns_parsed_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert "authorization" not in request.headers
            return httpx.Response(200, json={"layout": "xy"})

        async with _client(handler) as client:
            data = await fetch_json(SpecialUrl("https://host/s.json"), client=client)
        assert data == {"layout": "xy"}

    async def test_sends_bearer_token(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["authorization"])
            return httpx.Response(200, json={})

        special = SpecialUrl("https://host/s.json", StaticCredentialsProvider("abc"))
        async with _client(handler) as client:
            await fetch_json(special, client=client)
        assert seen == ["Bearer abc"]

    async def test_refreshes_credentials_once_on_401(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["authorization"])
            if request.headers["authorization"] == "Bearer token-1":
                return httpx.Response(401)
            return httpx.Response(200, json={"ok": True})

        provider = RotatingCredentials()
        async with _client(handler) as client:
            data = await fetch_json(SpecialUrl("https://host/s.json", provider), client=client)
        assert data == {"ok": True}
        assert seen == ["Bearer token-1", "Bearer token-2"]
        assert provider.refreshes == 1

    async def test_error_status_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        async with _client(handler) as client:
            with pytest.raises(RemoteLoadError) as exc_info:
                await fetch_json(SpecialUrl("https://host/s.json"), client=client)
        assert exc_info.value.status == 404
        assert exc_info.value.url == "https://host/s.json"

    async def test_invalid_json_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        async with _client(handler) as client:
            with pytest.raises(RemoteLoadError, match="not valid JSON"):
                await fetch_json(SpecialUrl("https://host/s.json"), client=client)

    async def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(RemoteLoadError, match="connection refused"):
                await fetch_json(SpecialUrl("https://host/s.json"), client=client)
