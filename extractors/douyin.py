"""Douyin (抖音) adapter: reads the iesdouyin share page's router data."""

from __future__ import annotations

import re
from urllib.parse import parse_qs, urlsplit

import httpx

from errors import MalformedURL, RateLimited, SchemaMismatch, UpstreamError
from models import ProvisionalRecord
from platforms import Platform

from .base import PlatformAdapter, dig, extract_embedded_json, first_str, looks_like_captcha, send

SHARE_PAGE = "https://www.iesdouyin.com/share/video/{id}/"

_ID_RE = re.compile(r"/(?:share/)?(?:video|note|slides)/(\d+)")
_ROUTER_DATA_RE = re.compile(r"window\._ROUTER_DATA\s*=\s*(.*?)</script>", re.DOTALL)


class DouyinAdapter(PlatformAdapter):
    platform = Platform.DOUYIN

    def extract_id(self, canonical_url: str) -> str:
        parts = urlsplit(canonical_url)
        modal_id = parse_qs(parts.query).get("modal_id", [""])[0]
        if modal_id.isdigit():
            return modal_id
        match = _ID_RE.search(parts.path)
        if not match:
            raise MalformedURL(f"douyin url has no video id: {canonical_url}")
        return match.group(1)

    async def fetch(self, client: httpx.AsyncClient, native_id: str) -> dict:
        response = await send(
            client,
            "GET",
            SHARE_PAGE.format(id=native_id),
            what="douyin share page",
            headers=self.headers(Referer="https://www.douyin.com/"),
        )
        html = response.text
        if "_ROUTER_DATA" not in html and looks_like_captcha(html):
            raise RateLimited("douyin served a verification page")
        return {"id": native_id, "html": html}

    def parse(self, raw: dict) -> ProvisionalRecord:
        page = extract_embedded_json(raw["html"], _ROUTER_DATA_RE, what="douyin share page")
        info = _find_video_info(page)
        item = dig(info, "item_list.0")
        if not isinstance(item, dict):
            for entry in info.get("filter_list") or []:
                if str(entry.get("aweme_id")) == str(raw["id"]):
                    raise UpstreamError(
                        "get video info fail: "
                        f"{entry.get('filter_reason', '')} - {entry.get('detail_msg', '')}"
                    )
            raise SchemaMismatch("douyin item_list is empty")

        images = []
        for image in item.get("images") or []:
            url = first_str(image, "url_list.0")
            if url:
                images.append(url)

        video_url = first_str(item, "video.play_addr.url_list.0").replace("playwm", "play")
        if images:
            # Gallery posts carry a placeholder play address that does not resolve.
            video_url = ""

        return ProvisionalRecord(
            title=first_str(item, "desc"),
            video_url=video_url,
            music_url=first_str(item, "music.play_url.uri", "music.play_url.url_list.0"),
            cover_url=first_str(item, "video.cover.url_list.0", "video.origin_cover.url_list.0"),
            images=images,
            author_uid=first_str(item, "author.sec_uid", "author.uid"),
            author_name=first_str(item, "author.nickname"),
            author_avatar=first_str(item, "author.avatar_thumb.url_list.0"),
        )


def _find_video_info(page: dict) -> dict:
    """Locate ``videoInfoRes`` under whichever loader route the page used."""
    loader = page.get("loaderData")
    if isinstance(loader, dict):
        for route in ("video_(id)/page", "note_(id)/page"):
            info = dig(loader, (route, "videoInfoRes"))
            if isinstance(info, dict):
                return info
        for value in loader.values():
            info = dig(value, "videoInfoRes")
            if isinstance(info, dict):
                return info
    raise SchemaMismatch("douyin router data has no videoInfoRes")
