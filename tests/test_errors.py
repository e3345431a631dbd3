"""Tests for errors module."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from errors import (
    ErrorKind,
    InvalidInput,
    RateLimited,
    ResolveCancelled,
    ResolveError,
    ResolveTimeout,
    UpstreamError,
    UpstreamUnreachable,
    map_http_error,
    map_status,
)


class TestResolveError:

    def test_str_includes_stage(self) -> None:
        exc = InvalidInput("bad text", stage="input")
        assert str(exc) == "[input] bad text"
        assert exc.kind is ErrorKind.INVALID_INPUT

    def test_str_without_stage(self) -> None:
        assert str(UpstreamError("boom")) == "boom"

    def test_first_stage_wins(self) -> None:
        exc = RateLimited("slow down")
        exc.with_stage("fetch").with_stage("resolve")
        assert exc.stage == "fetch"

    def test_rate_limited_is_upstream_error(self) -> None:
        assert isinstance(RateLimited("x"), UpstreamError)
        assert isinstance(UpstreamUnreachable("x"), UpstreamError)

    def test_cancelled_is_asyncio_cancelled(self) -> None:
        exc = ResolveCancelled("stop")
        assert isinstance(exc, asyncio.CancelledError)
        assert isinstance(exc, ResolveError)
        assert exc.kind is ErrorKind.CANCELLED


class TestMapStatus:

    def test_429_is_rate_limited(self) -> None:
        assert isinstance(map_status(429, what="douyin api"), RateLimited)

    @pytest.mark.parametrize("code", [403, 404, 500, 502])
    def test_other_status(self, code: int) -> None:
        exc = map_status(code, what="douyin api")
        assert type(exc) is UpstreamError
        assert f"HTTP {code}" in exc.message


class TestMapHttpError:

    def test_timeout(self) -> None:
        exc = map_http_error(httpx.ReadTimeout("slow"), what="x")
        assert isinstance(exc, ResolveTimeout)

    def test_connect_error(self) -> None:
        exc = map_http_error(httpx.ConnectError("refused"), what="x")
        assert isinstance(exc, UpstreamUnreachable)

    def test_status_error(self) -> None:
        request = httpx.Request("GET", "https://example.com")
        response = httpx.Response(429, request=request)
        exc = map_http_error(
            httpx.HTTPStatusError("429", request=request, response=response), what="x"
        )
        assert isinstance(exc, RateLimited)

    def test_other_http_error(self) -> None:
        exc = map_http_error(httpx.DecodingError("bad gzip"), what="x")
        assert type(exc) is UpstreamError
