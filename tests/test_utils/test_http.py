from __future__ import annotations

import json
from typing import Any, Callable, Dict, List
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from docweaver.exceptions import NetworkError
from docweaver.utils.http import HTTPClient, _decode_object, _retry_after_seconds

URL = "https://llm.example.test/v1/chat/completions"


def _client_with(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> HTTPClient:
    """Build an HTTPClient whose transport is served by ``handler``."""
    client = HTTPClient(**kwargs)
    client._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        headers={"User-Agent": client.user_agent, **client.headers},
    )
    return client


@pytest.mark.unit
class TestHTTPClientInit:
    """Tests for HTTPClient initialization and configuration."""

    def test_default_values(self) -> None:
        """Test HTTPClient initializes with correct default values."""
        client = HTTPClient()

        assert client.timeout == 120
        assert client.max_retries == 3
        assert client.rate_limit_delay == 0.0
        assert client.verify_ssl is True
        assert client.max_concurrency == 10
        assert client.user_agent.startswith("docweaver/")
        assert client.headers == {}
        assert client._max_429_retries == 5

    def test_custom_values(self) -> None:
        client = HTTPClient(
            timeout=10,
            max_retries=0,
            user_agent="CustomAgent/1.0",
            max_concurrency=2,
            headers={"Authorization": "Bearer k"},
        )

        assert client.timeout == 10
        assert client.max_retries == 0
        assert client.user_agent == "CustomAgent/1.0"
        assert client.headers == {"Authorization": "Bearer k"}
        assert client._semaphore._value == 2

    def test_client_created_lazily(self) -> None:
        assert HTTPClient()._client is None


@pytest.mark.unit
class TestHTTPClientLifecycle:
    """Tests for the async context manager protocol."""

    @pytest.mark.asyncio
    async def test_context_manager_creates_and_closes(self) -> None:
        async with HTTPClient() as client:
            assert isinstance(client._client, httpx.AsyncClient)
            assert client._client.headers["User-Agent"] == client.user_agent

        assert client._client is None

    @pytest.mark.asyncio
    async def test_extra_headers_sent(self) -> None:
        async with HTTPClient(headers={"Authorization": "Bearer secret"}) as client:
            assert client._client is not None
            assert client._client.headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_close_twice(self) -> None:
        client = HTTPClient()
        await client._ensure_client()

        await client.close()
        await client.close()

        assert client._client is None


@pytest.mark.unit
class TestRequestWithRetry:
    """Tests for retry and error handling."""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        client = _client_with(lambda request: httpx.Response(200, text="ok"))

        response = await client.get(URL)

        assert response.text == "ok"
        await client.close()

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self) -> None:
        """4xx responses fail on the first attempt."""
        calls: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(401, text='{"error": "bad key"}')

        client = _client_with(handler)

        with pytest.raises(NetworkError, match="HTTP 401 error") as exc_info:
            await client.post(URL)

        assert exc_info.value.status_code == 401
        assert exc_info.value.response_body == '{"error": "bad key"}'
        assert len(calls) == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_server_error_retried_then_succeeds(self) -> None:
        statuses = [503, 500, 200]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(statuses.pop(0), text="done")

        client = _client_with(handler, max_retries=3)

        with patch("docweaver.utils.http.asyncio.sleep", new_callable=AsyncMock) as sleep:
            response = await client.get(URL)

        assert response.status_code == 200
        assert sleep.await_count == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_gives_up_after_all_attempts(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = _client_with(handler, max_retries=2)

        with patch("docweaver.utils.http.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(NetworkError, match="Request failed after 3 attempts"):
                await client.get(URL)

        await client.close()

    @pytest.mark.asyncio
    async def test_timeout_retried(self) -> None:
        attempts = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            attempts["count"] += 1
            if attempts["count"] == 1:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200)

        client = _client_with(handler)

        with patch("docweaver.utils.http.asyncio.sleep", new_callable=AsyncMock):
            response = await client.get(URL)

        assert response.status_code == 200
        assert attempts["count"] == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_rate_limited_honours_retry_after(self) -> None:
        """429 waits for the Retry-After delay before trying again."""
        statuses = [429, 200]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(statuses.pop(0), headers={"Retry-After": "7"})

        client = _client_with(handler, max_retries=1)

        with patch("docweaver.utils.http.asyncio.sleep", new_callable=AsyncMock) as sleep:
            response = await client.get(URL)

        assert response.status_code == 200
        sleep.assert_awaited_once_with(7)
        await client.close()

    @pytest.mark.asyncio
    async def test_rate_limit_exhausted(self) -> None:
        client = _client_with(lambda request: httpx.Response(429), max_retries=10)

        with patch("docweaver.utils.http.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(NetworkError, match="Rate limit exceeded after 5 retries") as exc_info:
                await client.get(URL)

        assert exc_info.value.status_code == 429
        await client.close()

    @pytest.mark.asyncio
    async def test_url_quotes_stripped(self) -> None:
        seen: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200)

        client = _client_with(handler)

        await client.get(f'  "{URL}" ')

        assert seen == [URL]
        await client.close()


@pytest.mark.unit
class TestPostJson:
    """Tests for post_json."""

    @pytest.mark.asyncio
    async def test_sends_payload_and_headers(self) -> None:
        captured: Dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            captured["auth"] = request.headers.get("Authorization")
            captured["agent"] = request.headers.get("User-Agent")
            return httpx.Response(200, json={"choices": []})

        client = _client_with(handler)

        result = await client.post_json(
            URL,
            {"model": "gpt-4o-mini", "temperature": 0.2},
            headers={"Authorization": "Bearer k"},
        )

        assert result == {"choices": []}
        assert captured["body"] == {"model": "gpt-4o-mini", "temperature": 0.2}
        assert captured["auth"] == "Bearer k"
        assert captured["agent"].startswith("docweaver/")
        await client.close()

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        client = _client_with(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(NetworkError, match="Invalid JSON response from"):
            await client.post_json(URL, {})

        await client.close()

    @pytest.mark.asyncio
    async def test_non_object_json(self) -> None:
        client = _client_with(lambda request: httpx.Response(200, json=[1, 2]))

        with pytest.raises(NetworkError, match="Expected JSON object from"):
            await client.post_json(URL, {})

        await client.close()


@pytest.mark.unit
class TestHelpers:
    """Tests for module-level helpers."""

    @pytest.mark.parametrize(
        "headers, expected",
        [({"Retry-After": "30"}, 30), ({}, 1), ({"Retry-After": "soon"}, 1), ({"Retry-After": "-5"}, 0)],
    )
    def test_retry_after_seconds(self, headers: Dict[str, str], expected: int) -> None:
        assert _retry_after_seconds(httpx.Response(429, headers=headers)) == expected

    def test_decode_object(self) -> None:
        response = httpx.Response(200, json={"id": "x"})

        assert _decode_object(response, URL) == {"id": "x"}

    def test_decode_error_keeps_body(self) -> None:
        response = httpx.Response(200, text="not json")

        with pytest.raises(NetworkError) as exc_info:
            _decode_object(response, URL)

        assert exc_info.value.response_body == "not json"
        assert exc_info.value.url == URL
