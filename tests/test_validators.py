"""Tests for validators module."""

import pytest

from errors import InvalidInput
from validators import MAX_SHARE_TEXT_LENGTH, validate_native_id, validate_share_text


class TestValidateShareText:

    def test_returns_stripped_text(self) -> None:
        assert validate_share_text("  复制打开抖音 https://v.douyin.com/a/ \n") == (
            "复制打开抖音 https://v.douyin.com/a/"
        )

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None, 123])
    def test_empty_or_not_a_string(self, text) -> None:
        with pytest.raises(InvalidInput):
            validate_share_text(text)

    def test_too_long(self) -> None:
        with pytest.raises(InvalidInput, match="longer than"):
            validate_share_text("a" * (MAX_SHARE_TEXT_LENGTH + 1))

    def test_limit_is_inclusive(self) -> None:
        text = "a" * MAX_SHARE_TEXT_LENGTH
        assert validate_share_text(text) == text


class TestValidateNativeId:

    @pytest.mark.parametrize("native_id", [
        "7123456789012345678",
        "BV1xx411c7mD",
        "3xabc123-def",
        "1034:4872642523250710",
        "64a1b2c3d4e5f6a7b8c9d0e1:ABcd=",
        "64a1b2c3d4e5f6a7b8c9d0e1:AB+cd/ef==",
    ])
    def test_valid(self, native_id: str) -> None:
        assert validate_native_id(f" {native_id} ") == native_id

    @pytest.mark.parametrize("native_id", [
        "",
        "   ",
        None,
        "../etc/passwd",
        "id with space",
        "https://v.douyin.com/x",
        "视频",
    ])
    def test_invalid(self, native_id) -> None:
        with pytest.raises(InvalidInput):
            validate_native_id(native_id)
