"""Input validation for share texts and native video ids."""

from __future__ import annotations

import re

from errors import InvalidInput

MAX_SHARE_TEXT_LENGTH = 4096

# Native ids across supported platforms: digits, BV ids, hex note ids,
# Weibo "1034:4xxx" oids and Xiaohongshu "id:token" pairs. Share tokens are
# base64 and may carry "+" and "/"; a pasted URL ("scheme://") is still rejected.
_NATIVE_ID_RE = re.compile(r"^[A-Za-z0-9_\-=.]+(?::[A-Za-z0-9_\-:=.+/%]+)?$")


def validate_share_text(text: str) -> str:
    """Return the stripped share text.

    Raises:
        InvalidInput: If the text is not a non-empty string or is unreasonably long.
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidInput("share text must be a non-empty string")
    stripped = text.strip()
    if len(stripped) > MAX_SHARE_TEXT_LENGTH:
        raise InvalidInput(f"share text longer than {MAX_SHARE_TEXT_LENGTH} characters")
    return stripped


def validate_native_id(native_id: str) -> str:
    """Return the stripped native id.

    Raises:
        InvalidInput: If the id is empty or contains characters no platform uses.
    """
    if not isinstance(native_id, str) or not native_id.strip():
        raise InvalidInput("video id must be a non-empty string")
    stripped = native_id.strip()
    if not _NATIVE_ID_RE.match(stripped) or "://" in stripped:
        raise InvalidInput(f"video id {stripped!r} contains invalid characters")
    return stripped
