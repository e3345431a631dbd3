"""TikTok adapter: delegates signing and extraction to yt-dlp."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional
from urllib.parse import urlsplit

import httpx

from config import load_config
from errors import MalformedURL, RateLimited, SchemaMismatch, UpstreamError
from models import ProvisionalRecord
from platforms import Platform

from .base import PlatformAdapter, first_str

logger = logging.getLogger(__name__)

VIDEO_PAGE = "https://www.tiktok.com/@/video/{id}"

_ID_RE = re.compile(r"/(?:@[^/]*/)?(?:video|photo)/(\d+)")

_YDL_OPTS = {
    "skip_download": True,
    "noplaylist": True,
    "quiet": True,
    "no_warnings": True,
}


def _map_error(msg: str) -> Exception:
    """Return the ResolveError matching a yt-dlp error message."""
    lower = msg.lower()
    if "429" in lower or "rate limit" in lower or "too many requests" in lower:
        return RateLimited(msg)
    return UpstreamError(msg)


def _sync_extract(url: str, socket_timeout: float) -> dict:
    """Run yt-dlp synchronously and return the info dict."""
    opts = {
        **_YDL_OPTS,
        "socket_timeout": socket_timeout,
        **load_config(Platform.TIKTOK.config_key),
    }

    import yt_dlp
    try:
        with yt_dlp.YoutubeDL(opts) as ydl:
            info = ydl.extract_info(url, download=False)
    except yt_dlp.utils.DownloadError as exc:
        raise _map_error(str(exc)) from exc
    if info is None:
        raise UpstreamError(f"No info returned for {url}")
    return info


def _has_video(fmt: dict) -> bool:
    return fmt.get("vcodec", "none") not in ("none", None)


def _select_clean_format(formats: list[dict]) -> Optional[dict]:
    """Pick the tallest video format that is not the watermarked download."""
    best = None
    for fmt in formats:
        if not _has_video(fmt) or not fmt.get("url"):
            continue
        note = (fmt.get("format_note") or "").lower()
        if "watermark" in note:
            continue
        if best is None or (fmt.get("height") or 0) > (best.get("height") or 0):
            best = fmt
    return best


class TikTokAdapter(PlatformAdapter):
    platform = Platform.TIKTOK

    def extract_id(self, canonical_url: str) -> str:
        match = _ID_RE.search(urlsplit(canonical_url).path)
        if not match:
            raise MalformedURL(f"tiktok url has no video id: {canonical_url}")
        return match.group(1)

    async def fetch(self, client: httpx.AsyncClient, native_id: str) -> dict:
        """Extract the video page with yt-dlp in a worker thread.

        yt-dlp manages its own session; the shared client is unused here.
        A worker thread cannot be interrupted, so after cancellation its
        request may still run for up to one socket timeout
        (SHARELENS_TIKTOK_TIMEOUT or SHARELENS_TIMEOUT) before it is dropped.
        """
        url = VIDEO_PAGE.format(id=native_id)
        timeout = self.http_config().timeout
        logger.debug("extracting %s with yt-dlp (socket timeout %ss)", url, timeout)
        return await asyncio.to_thread(_sync_extract, url, timeout)

    def parse(self, raw: dict) -> ProvisionalRecord:
        if not raw.get("id"):
            raise SchemaMismatch("yt-dlp info for tiktok has no id")
        best = _select_clean_format(raw.get("formats") or [])
        video_url = best["url"] if best else first_str(raw, "url")
        return ProvisionalRecord(
            title=first_str(raw, "title", "description"),
            video_url=video_url,
            cover_url=first_str(raw, "thumbnail"),
            author_uid=first_str(raw, "uploader_id", "channel_id"),
            author_name=first_str(raw, "uploader", "channel", "creator"),
        )
