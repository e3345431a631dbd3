"""Bilibili video adapter."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

import httpx

from errors import MalformedURL, RateLimited, SchemaMismatch, UpstreamError
from models import ProvisionalRecord
from platforms import Platform

from .base import PlatformAdapter, dig, first_str, request_json

VIDEO_INFO_API = "https://api.bilibili.com/x/web-interface/view"
PLAY_URL_API = "https://api.bilibili.com/x/player/playurl"

_BVID_RE = re.compile(r"(BV[0-9A-Za-z]{10})")
# -412: request intercepted by risk control, -509: too frequent, -799: too frequent
_THROTTLE_CODES = (-412, -509, -799)


def extract_bvid(url: str) -> str:
    """Extract BV ID from a Bilibili URL."""
    match = _BVID_RE.search(urlsplit(url).path)
    if not match:
        raise MalformedURL(f"Cannot extract BV ID from URL: {url}")
    return match.group(1)


def _check_code(data: dict, what: str) -> None:
    code = data.get("code")
    if code == 0:
        return
    message = data.get("message", "")
    if code in _THROTTLE_CODES:
        raise RateLimited(f"{what} throttled: {code} {message}")
    raise UpstreamError(f"Failed to get {what}: {code} {message}")


class BilibiliAdapter(PlatformAdapter):
    platform = Platform.BILIBILI

    def extract_id(self, canonical_url: str) -> str:
        return extract_bvid(canonical_url)

    async def fetch(self, client: httpx.AsyncClient, native_id: str) -> dict:
        headers = self.headers(Referer="https://www.bilibili.com")
        view = await request_json(
            client, "GET", VIDEO_INFO_API,
            what="bilibili video info", params={"bvid": native_id}, headers=headers,
        )
        _check_code(view, "video info")
        cid = dig(view, "data.cid")
        if not cid:
            raise SchemaMismatch("bilibili video info has no cid")

        play = await request_json(
            client, "GET", PLAY_URL_API,
            what="bilibili play url",
            params={
                "otype": "json",
                "fnver": "0",
                "fnval": "0",
                "qn": "80",
                "bvid": native_id,
                "cid": str(cid),
                "platform": "html5",
            },
            headers=headers,
        )
        _check_code(play, "play url")
        return {"view": view.get("data"), "play": play.get("data")}

    def parse(self, raw: dict) -> ProvisionalRecord:
        view = raw.get("view")
        if not isinstance(view, dict) or "title" not in view:
            raise SchemaMismatch("bilibili video info has no title")
        return ProvisionalRecord(
            title=first_str(view, "title"),
            video_url=first_str(raw, "play.durl.0.url"),
            cover_url=first_str(view, "pic"),
            author_uid=first_str(view, "owner.mid"),
            author_name=first_str(view, "owner.name"),
            author_avatar=first_str(view, "owner.face"),
        )
