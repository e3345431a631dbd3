"""Kuaishou (快手) adapter: queries the share viewer's photo info API."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

import httpx

from errors import MalformedURL, RateLimited, SchemaMismatch, UpstreamError
from models import ProvisionalRecord
from platforms import Platform

from .base import PlatformAdapter, dig, first_str, looks_like_captcha, request_json

PHOTO_INFO_API = "https://v.m.chenzhongtech.com/rest/wd/photo/info?kpn=KUAISHOU&captchaToken="
SHARE_PAGE = "https://m.gifshow.com/fw/photo/{id}"

_ID_RE = re.compile(r"/(?:fw/(?:photo|long-video)|short-video|photo)/([\w-]+)")


class KuaishouAdapter(PlatformAdapter):
    platform = Platform.KUAISHOU

    def extract_id(self, canonical_url: str) -> str:
        match = _ID_RE.search(urlsplit(canonical_url).path)
        if not match:
            raise MalformedURL(f"kuaishou url has no photo id: {canonical_url}")
        return match.group(1)

    async def fetch(self, client: httpx.AsyncClient, native_id: str) -> dict:
        body = {
            "fid": "0",
            "shareResourceType": "PHOTO_OTHER",
            "shareChannel": "share_copylink",
            "kpn": "KUAISHOU",
            "subBiz": "BROWSE_SLIDE_PHOTO",
            "env": "SHARE_VIEWER_ENV_TX_TRICK",
            "h5Domain": "m.gifshow.com",
            "photoId": native_id,
            "isLongVideo": False,
        }
        data = await request_json(
            client,
            "POST",
            PHOTO_INFO_API,
            what="kuaishou photo info",
            json=body,
            headers=self.headers(
                Origin="https://v.m.chenzhongtech.com",
                Referer=SHARE_PAGE.format(id=native_id),
            ),
        )
        result = data.get("result")
        if result != 1:
            message = str(data.get("error_msg") or "")
            if data.get("captchaConfig") or looks_like_captcha(message):
                raise RateLimited(f"kuaishou requires captcha verification (result {result})")
            raise UpstreamError(f"kuaishou photo info failed: result {result} {message}".rstrip())
        return data

    def parse(self, raw: dict) -> ProvisionalRecord:
        photo = raw.get("photo")
        if not isinstance(photo, dict):
            raise SchemaMismatch("kuaishou response has no photo object")

        images = []
        cdn = first_str(raw, "atlas.cdn.0")
        for path in dig(raw, "atlas.list") or []:
            if cdn and isinstance(path, str) and path:
                images.append(f"https://{cdn}{path}")

        music_url = first_str(raw, "atlas.music", "photo.music.audioUrls.0.url")
        if cdn and music_url.startswith("/"):
            music_url = f"https://{cdn}{music_url}"

        return ProvisionalRecord(
            title=first_str(photo, "caption"),
            video_url=first_str(photo, "mainMvUrls.0.url"),
            music_url=music_url,
            cover_url=first_str(photo, "coverUrls.0.url"),
            images=images,
            author_uid=first_str(photo, "userEid", "userId"),
            author_name=first_str(photo, "userName"),
            author_avatar=first_str(photo, "headUrl"),
        )
