"""
Tests for request_builder.py
Logic testing: Decision/Branch, Equivalence partitioning
"""
import io

import pytest
from unittest.mock import AsyncMock

import httpx

from fetch_call.auth.token_store import TokenStore
from fetch_call.core.request_builder import (
    apply_token,
    build_body,
    build_headers,
    build_url,
    is_replayable_body,
    mask_headers,
    resolve_token,
)


class TestBuildUrl:
    """Tests for build_url."""

    def test_joins_base_and_path(self):
        assert build_url("https://api.example.com", "/users") == "https://api.example.com/users"

    def test_keeps_base_path(self):
        """Should never drop the base path, with or without slashes."""
        assert build_url("https://api.example.com/v1", "users") == "https://api.example.com/v1/users"
        assert build_url("https://api.example.com/v1/", "/users") == "https://api.example.com/v1/users"

    def test_absolute_path_is_kept(self):
        assert build_url("https://api.example.com", "https://other.example.org/x") == "https://other.example.org/x"

    def test_default_origin(self):
        assert build_url(None, "/ping", default_origin="https://app.example.com") == "https://app.example.com/ping"

    def test_relative_without_base_raises(self):
        with pytest.raises(ValueError, match="Relative URL"):
            build_url(None, "/users")

    def test_params_skip_none_and_render_bools(self):
        url = build_url("https://api.example.com", "/s", {"q": "a b", "skip": None, "flag": False, "n": 3})
        assert url == "https://api.example.com/s?q=a+b&flag=false&n=3"

    def test_params_replace_existing_query(self):
        url = build_url("https://api.example.com", "/s?page=1&sort=asc", {"page": 2})
        assert url == "https://api.example.com/s?page=2&sort=asc"


class TestBuildHeaders:
    """Tests for build_headers."""

    def test_call_headers_override_case_insensitively(self):
        headers = build_headers({"X-Trace": "config", "Accept": "text/plain"}, {"x-trace": "call"})
        assert headers["x-trace"] == "call"
        assert headers["accept"] == "text/plain"

    def test_json_sets_content_type(self):
        headers = build_headers({}, {}, has_json=True)
        assert headers["content-type"] == "application/json"

    def test_json_keeps_explicit_content_type(self):
        headers = build_headers({}, {"Content-Type": "application/vnd.api+json"}, has_json=True)
        assert headers["content-type"] == "application/vnd.api+json"

    def test_returns_httpx_headers(self):
        assert isinstance(build_headers(None, None), httpx.Headers)


class TestBuildBody:
    """Tests for build_body."""

    def test_serializes_json(self):
        assert build_body({"a": 1}) == '{"a": 1}'

    def test_json_wins_over_body(self):
        assert build_body([1], "raw") == "[1]"

    def test_passes_raw_body_through(self):
        assert build_body(None, b"raw") == b"raw"


class TestIsReplayableBody:
    """Tests for is_replayable_body."""

    @pytest.mark.parametrize("body", [None, "text", b"bytes", {"form": "field"}])
    def test_replayable(self, body):
        assert is_replayable_body(body) is True

    def test_generators_are_not_replayable(self):
        assert is_replayable_body(iter([b"a"])) is False

    def test_async_iterables_are_not_replayable(self):
        async def stream():
            yield b"a"

        assert is_replayable_body(stream()) is False

    def test_file_objects_are_not_replayable(self):
        assert is_replayable_body(io.BytesIO(b"abc")) is False


class TestTokens:
    """Tests for token resolution."""

    @pytest.mark.asyncio
    async def test_precedence(self):
        """Should prefer the per-call token, then the stored one, then config."""
        store = TokenStore()
        assert await resolve_token(None, store, "config") == "config"
        store.set("stored")
        assert await resolve_token(None, store, "config") == "stored"
        assert await resolve_token("call", store, "config") == "call"

    @pytest.mark.asyncio
    async def test_async_provider(self):
        provider = AsyncMock(return_value="from-provider")
        assert await resolve_token(provider, TokenStore(), None) == "from-provider"

    @pytest.mark.asyncio
    async def test_apply_token_sets_bearer(self):
        headers = httpx.Headers()
        await apply_token(headers, None, TokenStore("abc"), None)
        assert headers["authorization"] == "Bearer abc"

    @pytest.mark.asyncio
    async def test_apply_token_keeps_existing_authorization(self):
        headers = httpx.Headers({"Authorization": "Basic xyz"})
        await apply_token(headers, "abc", TokenStore(), None)
        assert headers["authorization"] == "Basic xyz"

    @pytest.mark.asyncio
    async def test_apply_token_ignores_provider_errors(self):
        def broken():
            raise RuntimeError("vault offline")

        headers = httpx.Headers()
        await apply_token(headers, broken, TokenStore(), None)
        assert "authorization" not in headers


class TestMaskHeaders:
    """Tests for mask_headers."""

    def test_masks_credentials(self):
        masked = mask_headers({"Authorization": "Bearer abcdefghijklmnop", "Accept": "*/*"})
        assert masked["Authorization"] == "Bearer abcdefgh" + "*" * 8
        assert masked["Accept"] == "*/*"
