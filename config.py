"""Configuration loader: reads proxy, cookie and timeout settings from environment variables.

Supports per-platform overrides with global fallback:
    SHARELENS_{PLATFORM}_{SUFFIX} → SHARELENS_{SUFFIX} → default
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_SQLITE_PATH = "data/parse.db"

# iPhone Safari; most short-video share pages only serve the mobile layout to it.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_6 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1"
)


def _env(key: str, platform_key: Optional[str] = None) -> str:
    """Resolve an env var with optional platform-specific override.

    Checks SHARELENS_{PLATFORM}_{SUFFIX} first, then SHARELENS_{SUFFIX}.
    """
    if platform_key:
        val = os.environ.get(f"SHARELENS_{platform_key}_{key}", "").strip()
        if val:
            return val
    return os.environ.get(f"SHARELENS_{key}", "").strip()


@dataclass(frozen=True)
class HttpConfig:
    """Settings for httpx-based adapters."""

    proxy: Optional[str] = None
    cookie: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT


def _parse_timeout(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_TIMEOUT_SECONDS


def load_http_config(platform_key: Optional[str] = None) -> HttpConfig:
    """Build the HTTP settings for one platform.

    Environment variables (global, each overridable per platform):
        SHARELENS_PROXY      proxy URL (e.g. http://127.0.0.1:7897)
        SHARELENS_COOKIE     raw Cookie header sent to the platform API
        SHARELENS_TIMEOUT    per-request timeout in seconds (default 15)
        SHARELENS_USER_AGENT client identity override
    """
    timeout_raw = _env("TIMEOUT", platform_key)
    return HttpConfig(
        proxy=_env("PROXY", platform_key) or None,
        cookie=_env("COOKIE", platform_key) or None,
        timeout=_parse_timeout(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_SECONDS,
        user_agent=_env("USER_AGENT", platform_key) or DEFAULT_USER_AGENT,
    )


def load_config(platform_key: Optional[str] = None) -> dict:
    """Build a yt-dlp options dict from environment variables.

    Args:
        platform_key: Optional platform identifier (e.g. "TIKTOK").
                      When set, platform-specific env vars take priority over global ones.

    Environment variables (global):
        SHARELENS_PROXY         proxy URL
        SHARELENS_COOKIE_SOURCE browser name (e.g. edge, chrome, firefox)
        SHARELENS_COOKIE_FILE   path to a Netscape cookies.txt file

    Priority: platform-specific > global; cookie_file > cookie_source.
    Only non-empty values are included in the returned dict.
    """
    opts: dict = {}

    proxy = _env("PROXY", platform_key)
    if proxy:
        opts["proxy"] = proxy

    cookie_file = _env("COOKIE_FILE", platform_key)
    cookie_source = _env("COOKIE_SOURCE", platform_key)

    if cookie_file:
        opts["cookiefile"] = cookie_file
    elif cookie_source:
        opts["cookiesfrombrowser"] = (cookie_source,)

    return opts


def load_sqlite_path() -> str:
    """Return the audit database path (SHARELENS_SQLITE_PATH, default data/parse.db)."""
    return _env("SQLITE_PATH") or DEFAULT_SQLITE_PATH
