"""Tests for redirect resolution."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from errors import (
    MalformedURL,
    RateLimited,
    ResolveTimeout,
    TooManyRedirects,
    UpstreamError,
    UpstreamUnreachable,
)
from redirects import MAX_REDIRECTS, resolve_redirects


def _chain(hops: int, final_status: int = 200):
    """Handler redirecting /0 -> /1 -> ... -> /hops, which answers final_status."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        step = int(request.url.path.strip("/"))
        if step < hops:
            return httpx.Response(302, headers={"Location": f"https://short.example/{step + 1}"})
        return httpx.Response(final_status)

    return handler, seen


def _resolve(handler, url: str = "https://short.example/0") -> str:
    async def run() -> str:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await resolve_redirects(url, client=client)

    return asyncio.run(run())


class TestResolveRedirects:

    def test_no_redirect_returns_input(self) -> None:
        handler, seen = _chain(0)
        assert _resolve(handler) == "https://short.example/0"
        assert len(seen) == 1

    def test_follows_chain(self) -> None:
        handler, _ = _chain(3)
        assert _resolve(handler) == "https://short.example/3"

    def test_exactly_max_redirects_allowed(self) -> None:
        handler, seen = _chain(MAX_REDIRECTS)
        assert _resolve(handler) == f"https://short.example/{MAX_REDIRECTS}"
        assert len(seen) == MAX_REDIRECTS + 1

    def test_one_more_than_max_fails(self) -> None:
        handler, seen = _chain(MAX_REDIRECTS + 1)
        with pytest.raises(TooManyRedirects):
            _resolve(handler)
        assert len(seen) == MAX_REDIRECTS + 1

    def test_relative_location(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/abcd1234/":
                return httpx.Response(302, headers={"Location": "/share/video/7123456789/?region=CN"})
            return httpx.Response(200)

        result = _resolve(handler, "https://v.douyin.com/abcd1234/")
        assert result == "https://v.douyin.com/share/video/7123456789/?region=CN"

    def test_cross_host_location(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "v.douyin.com":
                return httpx.Response(
                    301,
                    headers={"Location": "https://www.iesdouyin.com/share/video/7123456789/"},
                )
            return httpx.Response(200)

        result = _resolve(handler, "https://v.douyin.com/abcd1234/")
        assert result == "https://www.iesdouyin.com/share/video/7123456789/"

    def test_redirect_without_location_is_final(self) -> None:
        result = _resolve(lambda request: httpx.Response(304))
        assert result == "https://short.example/0"

    def test_rate_limited(self) -> None:
        handler, _ = _chain(1, final_status=429)
        with pytest.raises(RateLimited):
            _resolve(handler)

    def test_not_found(self) -> None:
        handler, _ = _chain(1, final_status=404)
        with pytest.raises(UpstreamError, match="HTTP 404"):
            _resolve(handler)

    def test_connect_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamUnreachable):
            _resolve(handler)

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ResolveTimeout):
            _resolve(handler)

    def test_malformed_start_url(self) -> None:
        with pytest.raises(MalformedURL):
            _resolve(lambda request: httpx.Response(200), "https://short.example:abc/0")

    def test_sends_browser_headers(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["user-agent"] = request.headers["user-agent"]
            return httpx.Response(200)

        _resolve(handler)
        assert "iPhone" in captured["user-agent"]
