"""Tests for envelope module."""

from __future__ import annotations

from envelope import CODE_FAILED, CODE_OK, MSG_OK, failure, success
from errors import RateLimited, UnsupportedSource
from models import Author, ResolvedMedia


class TestSuccess:

    def test_media(self) -> None:
        media = ResolvedMedia(title="t", video_url="https://v", author=Author(name="a"))
        payload = success(media)
        assert payload["code"] == CODE_OK
        assert payload["msg"] == MSG_OK
        assert payload["data"]["video_url"] == "https://v"
        assert payload["data"]["images"] == []
        assert payload["data"]["author"]["name"] == "a"

    def test_plain_data(self) -> None:
        assert success([1, 2], msg="ok") == {"code": CODE_OK, "msg": "ok", "data": [1, 2]}


class TestFailure:

    def test_resolve_error(self) -> None:
        exc = UnsupportedSource("share url [x] does not belong to a supported platform")
        exc.with_stage("match")
        payload = failure(exc)
        assert payload == {
            "code": CODE_FAILED,
            "msg": "[match] share url [x] does not belong to a supported platform",
            "data": None,
            "error": "unsupported_source",
            "stage": "match",
        }

    def test_rate_limited_kind(self) -> None:
        assert failure(RateLimited("slow down"))["error"] == "rate_limited"

    def test_unexpected_exception(self) -> None:
        payload = failure(RuntimeError("boom"))
        assert payload["code"] == CODE_FAILED
        assert payload["msg"] == "boom"
        assert payload["error"] == "upstream_error"
        assert payload["stage"] is None
