"""
远程计数（AI21）单元测试。

使用 httpx.MockTransport 代替真实网络。

覆盖范围:
- tokenizer/remote.py: RemoteTokenCounter
"""

from __future__ import annotations

import json

import httpx
import pytest

from token_forge.config.schema import RemoteCountConfig
from token_forge.tokenizer.remote import RemoteTokenCounter

API_KEY_ENV = "TOKEN_FORGE_TEST_AI21_KEY"


def make_counter(handler: httpx.MockTransport, enabled: bool = True) -> RemoteTokenCounter:
    client = httpx.AsyncClient(transport=handler)
    config = RemoteCountConfig(enabled=enabled, api_key_env=API_KEY_ENV)
    return RemoteTokenCounter(config, client=client)


class TestRemoteTokenCounter:
    """RemoteTokenCounter 测试。"""

    @pytest.mark.asyncio
    async def test_counts_tokens(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(API_KEY_ENV, "secret")
        seen: dict[str, object] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"tokens": [{"token": "▁Hi"}, {"token": "!"}]})

        counter = make_counter(httpx.MockTransport(handler))
        assert await counter.count("Hi!") == 2
        assert seen["auth"] == "Bearer secret"
        assert seen["body"] == {"text": "Hi!"}
        assert seen["url"] == "https://api.ai21.com/studio/v1/tokenize"

    @pytest.mark.asyncio
    async def test_http_error_returns_zero(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(API_KEY_ENV, "secret")
        counter = make_counter(httpx.MockTransport(lambda request: httpx.Response(500)))
        assert await counter.count("Hi") == 0

    @pytest.mark.asyncio
    async def test_transport_error_returns_zero(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(API_KEY_ENV, "secret")

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        counter = make_counter(httpx.MockTransport(handler))
        assert await counter.count("Hi") == 0

    @pytest.mark.asyncio
    async def test_invalid_json_returns_zero(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(API_KEY_ENV, "secret")
        counter = make_counter(
            httpx.MockTransport(lambda request: httpx.Response(200, content=b"not json"))
        )
        assert await counter.count("Hi") == 0

    @pytest.mark.asyncio
    async def test_missing_tokens_field_returns_zero(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(API_KEY_ENV, "secret")
        counter = make_counter(
            httpx.MockTransport(lambda request: httpx.Response(200, json={"detail": "quota"}))
        )
        assert await counter.count("Hi") == 0

    @pytest.mark.asyncio
    async def test_missing_api_key_returns_zero(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(API_KEY_ENV, raising=False)
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"tokens": []})

        counter = make_counter(httpx.MockTransport(handler))
        assert await counter.count("Hi") == 0
        assert calls == []

    @pytest.mark.asyncio
    async def test_disabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(API_KEY_ENV, "secret")
        counter = make_counter(
            httpx.MockTransport(lambda request: httpx.Response(200, json={"tokens": [1]})),
            enabled=False,
        )
        assert not counter.enabled
        assert await counter.count("Hi") == 0
