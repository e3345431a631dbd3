"""Platform enum, share-link signature registry, and platform matching."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Union
from urllib.parse import urlsplit

from errors import InvalidInput, UnsupportedSource


class Platform(enum.Enum):
    DOUYIN = "douyin"
    KUAISHOU = "kuaishou"
    PIPIXIA = "pipixia"
    WEIBO = "weibo"
    REDBOOK = "redbook"
    BILIBILI = "bilibili"
    TIKTOK = "tiktok"

    @property
    def config_key(self) -> str:
        """Suffix used for per-platform SHARELENS_{KEY}_* overrides."""
        return self.name


@dataclass(frozen=True)
class PlatformMatch:
    platform: Platform
    url: str


# Share texts are pasted from apps and surrounded by captions, emoji and
# full-width punctuation; only URL-safe ASCII belongs to the link itself.
_URL_RE = re.compile(r"https?://[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]+", re.IGNORECASE)
_TRAILING_PUNCT = ".,;:!?)]'\""

# (Platform, pattern over "host/path"). Order is load-bearing: the first match
# wins, short-link hosts come before the full domains of the same platform.
_PLATFORM_SIGNATURES: tuple[tuple[Platform, re.Pattern[str]], ...] = (
    # Douyin
    (Platform.DOUYIN, re.compile(r"^v\.douyin\.com/")),
    (Platform.DOUYIN, re.compile(r"^(?:www\.)?iesdouyin\.com/")),
    (Platform.DOUYIN, re.compile(r"^(?:[\w-]+\.)*douyin\.com/")),
    # TikTok
    (Platform.TIKTOK, re.compile(r"^v[mt]\.tiktok\.com/")),
    (Platform.TIKTOK, re.compile(r"^(?:[\w-]+\.)*tiktok\.com/")),
    # Kuaishou
    (Platform.KUAISHOU, re.compile(r"^v\.kuaishou\.com/")),
    (Platform.KUAISHOU, re.compile(r"^(?:[\w-]+\.)*chenzhongtech\.com/")),
    (Platform.KUAISHOU, re.compile(r"^(?:[\w-]+\.)*gifshow\.com/")),
    (Platform.KUAISHOU, re.compile(r"^(?:[\w-]+\.)*kuaishou\.com/")),
    # Pipixia
    (Platform.PIPIXIA, re.compile(r"^h5\.pipix\.com/")),
    # Weibo
    (Platform.WEIBO, re.compile(r"^(?:[\w-]+\.)*weibo\.(?:com|cn)/")),
    # Xiaohongshu
    (Platform.REDBOOK, re.compile(r"^xhslink\.com/")),
    (Platform.REDBOOK, re.compile(r"^(?:[\w-]+\.)*xiaohongshu\.com/")),
    # Bilibili
    (Platform.BILIBILI, re.compile(r"^b23\.tv/")),
    (Platform.BILIBILI, re.compile(r"^(?:[\w-]+\.)*bilibili\.com/")),
)

_SHORT_LINK_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^v\.douyin\.com/"),
    re.compile(r"^v\.kuaishou\.com/"),
    re.compile(r"^h5\.pipix\.com/s/"),
    re.compile(r"^xhslink\.com/"),
    re.compile(r"^b23\.tv/"),
    re.compile(r"^v[mt]\.tiktok\.com/"),
    re.compile(r"^t\.cn/"),
)

_ALIASES: dict[str, Platform] = {
    "xiaohongshu": Platform.REDBOOK,
    "xhs": Platform.REDBOOK,
    "ppx": Platform.PIPIXIA,
    "ks": Platform.KUAISHOU,
    "dy": Platform.DOUYIN,
}


def extract_candidate_url(text: str) -> str:
    """Return the first http(s) URL embedded in *text*.

    Raises:
        InvalidInput: If the text is empty or contains no URL.
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidInput("share text must be a non-empty string")
    match = _URL_RE.search(text)
    if not match:
        raise InvalidInput("share text does not contain a valid url")
    return match.group(0).rstrip(_TRAILING_PUNCT)


def _host_path(url: str) -> str:
    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    return f"{host}{parts.path or '/'}"


def is_short_link(url: str) -> bool:
    """True when *url* is a known share short link that must be expanded."""
    target = _host_path(url)
    return any(pattern.search(target) for pattern in _SHORT_LINK_PATTERNS)


def match_platform(text: str) -> PlatformMatch:
    """Find the platform owning the URL embedded in *text*.

    Raises:
        InvalidInput: If no URL can be found in the text.
        UnsupportedSource: If the URL matches no known platform signature.
    """
    url = extract_candidate_url(text)
    target = _host_path(url)
    for platform, pattern in _PLATFORM_SIGNATURES:
        if pattern.search(target):
            return PlatformMatch(platform=platform, url=url)
    raise UnsupportedSource(f"share url [{url}] does not belong to a supported platform")


def parse_platform(value: Union[str, Platform]) -> Platform:
    """Convert a boundary string (e.g. "douyin") to a Platform.

    Raises:
        UnsupportedSource: If the value names no known platform.
    """
    if isinstance(value, Platform):
        return value
    if not isinstance(value, str) or not value.strip():
        raise UnsupportedSource("source must be a non-empty platform name")
    key = value.strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return Platform(key)
    except ValueError:
        raise UnsupportedSource(f"source {value!r} is not supported") from None
