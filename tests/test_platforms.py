"""Tests for platform matching."""

from __future__ import annotations

import pytest

from errors import InvalidInput, UnsupportedSource
from platforms import (
    Platform,
    PlatformMatch,
    extract_candidate_url,
    is_short_link,
    match_platform,
    parse_platform,
)

DOUYIN_SHARE = (
    "08/12 我在抖音，看到一个很有趣的视频，快来看吧！ "
    "https://v.douyin.com/abcd1234/ 复制此链接"
)


class TestExtractCandidateUrl:

    def test_strips_surrounding_caption(self) -> None:
        assert extract_candidate_url(DOUYIN_SHARE) == "https://v.douyin.com/abcd1234/"

    def test_stops_at_adjacent_chinese_text(self) -> None:
        text = "看看这个https://v.kuaishou.com/Ab12Cd复制打开快手"
        assert extract_candidate_url(text) == "https://v.kuaishou.com/Ab12Cd"

    def test_trailing_punctuation_trimmed(self) -> None:
        text = "链接: https://b23.tv/xYz123."
        assert extract_candidate_url(text) == "https://b23.tv/xYz123"

    def test_keeps_query_string(self) -> None:
        url = "https://www.xiaohongshu.com/discovery/item/64a1b2c3d4e5f6a7b8c9d0e1?xsec_token=AB%3D"
        assert extract_candidate_url(f"{url} 🥰") == url

    @pytest.mark.parametrize("text", ["", "   ", "no link here", None, 42])
    def test_invalid(self, text) -> None:
        with pytest.raises(InvalidInput):
            extract_candidate_url(text)


class TestMatchPlatform:

    @pytest.mark.parametrize("text,expected", [
        (DOUYIN_SHARE, Platform.DOUYIN),
        ("https://www.iesdouyin.com/share/video/7123456789012345678/", Platform.DOUYIN),
        ("https://www.douyin.com/video/7123456789012345678", Platform.DOUYIN),
        ("https://v.kuaishou.com/Ab12Cd 复制打开快手", Platform.KUAISHOU),
        ("https://v.m.chenzhongtech.com/fw/photo/3xabc123", Platform.KUAISHOU),
        ("https://www.kuaishou.com/short-video/3xabc123", Platform.KUAISHOU),
        ("https://h5.pipix.com/s/AbCdEf/", Platform.PIPIXIA),
        ("https://h5.pipix.com/item/7000000000000000000", Platform.PIPIXIA),
        ("https://video.weibo.com/show?fid=1034:4872642523250710", Platform.WEIBO),
        ("https://weibo.com/tv/show/1034:4872642523250710", Platform.WEIBO),
        ("http://xhslink.com/a/AbCd123 复制本条信息", Platform.REDBOOK),
        ("https://www.xiaohongshu.com/explore/64a1b2c3d4e5f6a7b8c9d0e1", Platform.REDBOOK),
        ("【标题】 https://b23.tv/xYz123", Platform.BILIBILI),
        ("https://www.bilibili.com/video/BV1xx411c7mD", Platform.BILIBILI),
        ("https://m.bilibili.com/video/BV1xx411c7mD", Platform.BILIBILI),
        ("https://vm.tiktok.com/ZMrABC123/", Platform.TIKTOK),
        ("https://www.tiktok.com/@user/video/7234567890123456789", Platform.TIKTOK),
    ])
    def test_selects_platform(self, text: str, expected: Platform) -> None:
        result = match_platform(text)
        assert isinstance(result, PlatformMatch)
        assert result.platform == expected

    def test_returns_url_without_caption(self) -> None:
        assert match_platform(DOUYIN_SHARE).url == "https://v.douyin.com/abcd1234/"

    def test_matches_host_not_query(self) -> None:
        result = match_platform("https://www.douyin.com/video/1?from=tiktok.com/share")
        assert result.platform == Platform.DOUYIN

    def test_lookalike_domain_rejected(self) -> None:
        with pytest.raises(UnsupportedSource):
            match_platform("https://notdouyin.com.evil.example/video/1")

    @pytest.mark.parametrize("text", [
        "https://www.google.com",
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "看这里 https://example.com/video/1",
    ])
    def test_unsupported(self, text: str) -> None:
        with pytest.raises(UnsupportedSource):
            match_platform(text)

    def test_no_url_is_invalid_input(self) -> None:
        with pytest.raises(InvalidInput):
            match_platform("复制此链接，打开抖音")


class TestIsShortLink:

    @pytest.mark.parametrize("url", [
        "https://v.douyin.com/abcd1234/",
        "https://v.kuaishou.com/Ab12Cd",
        "https://h5.pipix.com/s/AbCdEf/",
        "http://xhslink.com/a/AbCd123",
        "https://b23.tv/xYz123",
        "https://vm.tiktok.com/ZMrABC123/",
        "https://t.cn/A6abcdEf",
    ])
    def test_short(self, url: str) -> None:
        assert is_short_link(url) is True

    @pytest.mark.parametrize("url", [
        "https://www.douyin.com/video/7123456789012345678",
        "https://h5.pipix.com/item/7000000000000000000",
        "https://www.bilibili.com/video/BV1xx411c7mD",
    ])
    def test_canonical(self, url: str) -> None:
        assert is_short_link(url) is False


class TestParsePlatform:

    def test_value(self) -> None:
        assert parse_platform("douyin") is Platform.DOUYIN

    def test_case_and_whitespace(self) -> None:
        assert parse_platform("  BiliBili ") is Platform.BILIBILI

    def test_alias(self) -> None:
        assert parse_platform("xiaohongshu") is Platform.REDBOOK

    def test_enum_passthrough(self) -> None:
        assert parse_platform(Platform.WEIBO) is Platform.WEIBO

    @pytest.mark.parametrize("value", ["", "youtube", None])
    def test_unknown(self, value) -> None:
        with pytest.raises(UnsupportedSource):
            parse_platform(value)
