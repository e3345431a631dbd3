"""Pipixia (皮皮虾) adapter."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

import httpx

from errors import MalformedURL, SchemaMismatch, UpstreamError
from models import ProvisionalRecord
from platforms import Platform

from .base import PlatformAdapter, dig, first_str, request_json

CELL_COMMENT_API = "https://api.pipix.com/bds/cell/cell_comment/"

_ID_RE = re.compile(r"/item/(\d+)")


class PipixiaAdapter(PlatformAdapter):
    platform = Platform.PIPIXIA

    def extract_id(self, canonical_url: str) -> str:
        match = _ID_RE.search(urlsplit(canonical_url).path)
        if not match:
            raise MalformedURL(f"pipixia url has no item id: {canonical_url}")
        return match.group(1)

    async def fetch(self, client: httpx.AsyncClient, native_id: str) -> dict:
        params = {
            "offset": "0",
            "cell_type": "1",
            "api_version": "1",
            "cell_id": native_id,
            "ac": "wifi",
            "channel": "huawei_1319_64",
            "aid": "1319",
            "app_name": "super",
        }
        data = await request_json(
            client,
            "GET",
            CELL_COMMENT_API,
            what="pipixia cell api",
            params=params,
            headers=self.headers(Referer=f"https://h5.pipix.com/item/{native_id}"),
        )
        status = data.get("status_code", 0)
        if status != 0:
            raise UpstreamError(f"pipixia cell api failed: {status} {data.get('prompt', '')}".rstrip())
        return data

    def parse(self, raw: dict) -> ProvisionalRecord:
        item = dig(raw, "data.cell_comments.0.comment_info.item")
        if not isinstance(item, dict):
            raise SchemaMismatch("pipixia response has no comment_info.item")

        images = []
        for image in dig(item, "note.multi_image") or []:
            url = first_str(image, "url_list.0.url")
            if url:
                images.append(url)

        return ProvisionalRecord(
            title=first_str(item, "content"),
            video_url=first_str(
                item,
                "video.video_high.url_list.0.url",
                "origin_video_download.url_list.0.url",
                "video.video_download.url_list.0.url",
            ),
            cover_url=first_str(item, "cover.url_list.0.url", "video.cover_image.url_list.0.url"),
            images=images,
            author_uid=first_str(item, "author.id"),
            author_name=first_str(item, "author.name"),
            author_avatar=first_str(item, "author.avatar.download_list.0.url", "author.avatar.url_list.0.url"),
        )
