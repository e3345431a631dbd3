"""Weibo (微博) video adapter backed by the h5 video component API."""

from __future__ import annotations

import json
import re
from urllib.parse import parse_qs, urlsplit

import httpx

from errors import MalformedURL, RateLimited, SchemaMismatch, UpstreamError
from models import ProvisionalRecord
from platforms import Platform

from .base import PlatformAdapter, dig, first_str, request_json

COMPONENT_API = "https://h5.video.weibo.com/api/component"

_SHOW_RE = re.compile(r"/show/([\w:]+)")
_SUCCESS_CODE = "100000"


class WeiboAdapter(PlatformAdapter):
    platform = Platform.WEIBO

    def extract_id(self, canonical_url: str) -> str:
        parts = urlsplit(canonical_url)
        match = _SHOW_RE.search(parts.path)
        if match:
            return match.group(1)
        fid = parse_qs(parts.query).get("fid", [""])[0].strip()
        if fid:
            return fid
        raise MalformedURL(f"weibo url has no video id: {canonical_url}")

    async def fetch(self, client: httpx.AsyncClient, native_id: str) -> dict:
        payload = json.dumps({"Component_Play_Playinfo": {"oid": native_id}})
        data = await request_json(
            client,
            "POST",
            COMPONENT_API,
            what="weibo video component",
            params={"page": f"/show/{native_id}"},
            data={"data": payload},
            headers=self.headers(Referer=f"https://h5.video.weibo.com/show/{native_id}"),
        )
        code = str(data.get("code", ""))
        if code != _SUCCESS_CODE:
            message = str(data.get("msg") or "")
            if "频繁" in message or code == "100010":
                raise RateLimited(f"weibo throttled the request: {message}")
            raise UpstreamError(f"weibo video component failed: {code} {message}".rstrip())
        return data

    def parse(self, raw: dict) -> ProvisionalRecord:
        info = dig(raw, "data.Component_Play_Playinfo")
        if not isinstance(info, dict):
            raise SchemaMismatch("weibo response has no Component_Play_Playinfo")

        # Quality labels are listed best first.
        video_url = ""
        urls = info.get("urls")
        if isinstance(urls, dict):
            for url in urls.values():
                if isinstance(url, str) and url:
                    video_url = url
                    break

        return ProvisionalRecord(
            title=first_str(info, "title", "text"),
            video_url=video_url or first_str(info, "stream_url_hd", "stream_url"),
            cover_url=first_str(info, "cover_image"),
            author_uid=first_str(info, "author_id", "user.id"),
            author_name=first_str(info, "author", "nickname"),
            author_avatar=first_str(info, "avatar"),
        )
