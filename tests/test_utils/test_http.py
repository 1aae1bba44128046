from __future__ import annotations

import httpx
import pytest
from typing import Any, Generator
from unittest.mock import AsyncMock, patch

from depatlas.utils.http import HTTPClient
from depatlas.exceptions import NetworkError, RegistryError


URL = "https://registry.example.com/react/latest"


@pytest.fixture
def client() -> Generator[HTTPClient, None, None]:
    """HTTP client with retry sleeps patched out.

    Requests go through a patched ``_send``, so no connection is opened.
    """
    with patch("depatlas.utils.http.asyncio.sleep", new=AsyncMock()):
        yield HTTPClient(max_retries=2)


def _response(status: int, **kwargs: Any) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("GET", URL), **kwargs)


@pytest.mark.unit
class TestHTTPClientInit:
    """Tests for client construction."""

    def test_default_user_agent(self) -> None:
        from depatlas.__version__ import __version__

        assert HTTPClient().user_agent == f"depatlas/{__version__}"

    def test_custom_settings(self) -> None:
        http = HTTPClient(timeout=5, max_retries=1, verify_ssl=False, user_agent="tests/1.0")

        assert (http.timeout, http.max_retries, http.verify_ssl) == (5, 1, False)
        assert http.user_agent == "tests/1.0"

    @pytest.mark.asyncio
    async def test_context_manager_opens_and_closes(self) -> None:
        async with HTTPClient() as http:
            assert http._client is not None
        assert http._client is None


@pytest.mark.unit
class TestHTTPClientGet:
    """Tests for status handling and retries."""

    @pytest.mark.asyncio
    async def test_success(self, client: HTTPClient) -> None:
        with patch.object(client, "_send", new=AsyncMock(return_value=_response(200, json={}))) as send:
            response = await client.get(f"  {URL} ")

        assert response.status_code == 200
        send.assert_awaited_once_with(URL)

    @pytest.mark.asyncio
    async def test_not_found_is_registry_error(self, client: HTTPClient) -> None:
        with patch.object(client, "_send", new=AsyncMock(return_value=_response(404))):
            with pytest.raises(RegistryError) as exc_info:
                await client.get(URL)

        assert exc_info.value.details["status_code"] == 404

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, client: HTTPClient) -> None:
        send = AsyncMock(return_value=_response(403, text="denied"))
        with patch.object(client, "_send", new=send):
            with pytest.raises(NetworkError, match="HTTP 403"):
                await client.get(URL)

        assert send.await_count == 1

    @pytest.mark.asyncio
    async def test_server_error_retried_then_succeeds(self, client: HTTPClient) -> None:
        send = AsyncMock(side_effect=[_response(503), _response(200, json={"ok": True})])
        with patch.object(client, "_send", new=send):
            response = await client.get(URL)

        assert response.status_code == 200
        assert send.await_count == 2

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, client: HTTPClient) -> None:
        send = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch.object(client, "_send", new=send):
            with pytest.raises(NetworkError, match="after 3 attempts"):
                await client.get(URL)

        assert send.await_count == 3

    @pytest.mark.asyncio
    async def test_rate_limit_honours_retry_after(self, client: HTTPClient) -> None:
        limited = _response(429, headers={"Retry-After": "7"})
        send = AsyncMock(side_effect=[limited, _response(200, json={})])

        with patch.object(client, "_send", new=send):
            with patch("depatlas.utils.http.asyncio.sleep", new=AsyncMock()) as sleep:
                await client.get(URL)

        sleep.assert_awaited_once_with(7.0)

    @pytest.mark.asyncio
    async def test_rate_limit_gives_up(self, client: HTTPClient) -> None:
        send = AsyncMock(return_value=_response(429))
        with patch.object(client, "_send", new=send):
            with pytest.raises(NetworkError, match="Rate limit exceeded"):
                await client.get(URL)


@pytest.mark.unit
class TestHTTPClientGetJson:
    """Tests for JSON decoding."""

    @pytest.mark.asyncio
    async def test_object_body(self, client: HTTPClient) -> None:
        body = {"name": "react", "version": "18.3.1"}
        with patch.object(client, "_send", new=AsyncMock(return_value=_response(200, json=body))):
            assert await client.get_json(URL) == body

    @pytest.mark.asyncio
    async def test_invalid_json(self, client: HTTPClient) -> None:
        with patch.object(client, "_send", new=AsyncMock(return_value=_response(200, text="<html>"))):
            with pytest.raises(NetworkError, match="Invalid JSON"):
                await client.get_json(URL)

    @pytest.mark.asyncio
    async def test_non_object_json(self, client: HTTPClient) -> None:
        with patch.object(client, "_send", new=AsyncMock(return_value=_response(200, json=[1, 2]))):
            with pytest.raises(NetworkError, match="Expected JSON object"):
                await client.get_json(URL)
