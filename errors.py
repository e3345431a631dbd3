"""Structured resolution errors shared by every stage of the pipeline."""

from __future__ import annotations

import asyncio
import enum
from typing import Optional

import httpx


class ErrorKind(enum.Enum):
    INVALID_INPUT = "invalid_input"
    UNSUPPORTED_SOURCE = "unsupported_source"
    MALFORMED_URL = "malformed_url"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    UPSTREAM_UNREACHABLE = "upstream_unreachable"
    UPSTREAM_ERROR = "upstream_error"
    RATE_LIMITED = "rate_limited"
    SCHEMA_MISMATCH = "schema_mismatch"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class ResolveError(Exception):
    """Base class for every failure the resolver surfaces to callers."""

    kind: ErrorKind = ErrorKind.UPSTREAM_ERROR

    def __init__(self, message: str, *, stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def with_stage(self, stage: str) -> "ResolveError":
        """Record the originating stage. The first stage recorded wins."""
        if self.stage is None:
            self.stage = stage
        return self

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class InvalidInput(ResolveError):
    """Empty or malformed share text / video id."""

    kind = ErrorKind.INVALID_INPUT


class UnsupportedSource(ResolveError):
    """No platform claims the input, or the platform is not registered."""

    kind = ErrorKind.UNSUPPORTED_SOURCE


class MalformedURL(ResolveError):
    """URL belongs to a platform but lacks the expected id shape."""

    kind = ErrorKind.MALFORMED_URL


class TooManyRedirects(ResolveError):
    kind = ErrorKind.TOO_MANY_REDIRECTS


class UpstreamError(ResolveError):
    """Non-success response, malformed body, or network failure upstream."""

    kind = ErrorKind.UPSTREAM_ERROR


class UpstreamUnreachable(UpstreamError):
    kind = ErrorKind.UPSTREAM_UNREACHABLE


class RateLimited(UpstreamError):
    """Upstream signalled throttling; callers may retry later."""

    kind = ErrorKind.RATE_LIMITED


class SchemaMismatch(ResolveError):
    """Upstream payload no longer has the shape the adapter expects."""

    kind = ErrorKind.SCHEMA_MISMATCH


class ResolveTimeout(ResolveError):
    kind = ErrorKind.TIMEOUT


class ResolveCancelled(ResolveError, asyncio.CancelledError):
    """Resolution was cancelled.

    Also an ``asyncio.CancelledError`` so task cancellation keeps propagating.
    """

    kind = ErrorKind.CANCELLED


def map_http_error(exc: httpx.HTTPError, *, what: str) -> ResolveError:
    """Translate an httpx exception into the matching ResolveError."""
    if isinstance(exc, httpx.TimeoutException):
        return ResolveTimeout(f"{what} timed out: {exc}")
    if isinstance(exc, httpx.HTTPStatusError):
        return map_status(exc.response.status_code, what=what)
    if isinstance(exc, httpx.TransportError):
        return UpstreamUnreachable(f"{what} unreachable: {exc}")
    return UpstreamError(f"{what} failed: {exc}")


def map_status(status_code: int, *, what: str) -> ResolveError:
    """Translate a non-success HTTP status into a ResolveError."""
    if status_code == 429:
        return RateLimited(f"{what} rate limited (HTTP 429)")
    return UpstreamError(f"{what} returned HTTP {status_code}")
