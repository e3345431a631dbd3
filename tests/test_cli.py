"""Tests for the command-line entry point."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from cli import build_parser, main, run
from errors import RateLimited
from models import ResolvedMedia


class TestBuildParser:

    def test_share_text(self) -> None:
        args = build_parser().parse_args(["复制打开抖音 https://v.douyin.com/a/"])
        assert args.text == "复制打开抖音 https://v.douyin.com/a/"
        assert args.source is None
        assert args.timeout is None

    def test_source_and_id(self) -> None:
        args = build_parser().parse_args(["--source", "bilibili", "--id", "BV1xx411c7mD", "--timeout", "5"])
        assert args.source == "bilibili"
        assert args.id == "BV1xx411c7mD"
        assert args.timeout == 5.0


class TestRun:

    def test_share_text_success(self) -> None:
        args = build_parser().parse_args(["https://b23.tv/xYz123"])
        mock = AsyncMock(return_value=ResolvedMedia(title="t", video_url="https://v"))
        with patch("cli.resolve_by_share_text", mock):
            payload = asyncio.run(run(args))
        mock.assert_awaited_once_with("https://b23.tv/xYz123", timeout=None)
        assert payload["code"] == 200
        assert payload["data"]["title"] == "t"

    def test_by_id_failure(self) -> None:
        args = build_parser().parse_args(["--source", "kuaishou", "--id", "3x"])
        error = RateLimited("captcha").with_stage("fetch")
        with patch("cli.resolve_by_id", AsyncMock(side_effect=error)):
            payload = asyncio.run(run(args))
        assert payload["code"] == 201
        assert payload["error"] == "rate_limited"
        assert payload["stage"] == "fetch"


class TestMainArguments:

    @pytest.mark.parametrize("argv", [
        [],
        ["--source", "douyin"],
        ["--id", "7123"],
        ["text", "--source", "douyin", "--id", "7123"],
    ])
    def test_invalid_combinations_exit(self, argv: list) -> None:
        with patch("cli.sys"), patch("cli.io"):
            with pytest.raises(SystemExit) as exc_info:
                main(argv)
        assert exc_info.value.code == 2
