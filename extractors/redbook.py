"""Xiaohongshu (小红书) adapter: reads the note page's initial state.

Note pages only render for anonymous visitors when the share token is
present, so the native id is ``<note_id>`` or ``<note_id>:<xsec_token>``.
"""

from __future__ import annotations

import re
from urllib.parse import unquote, urlsplit

import httpx

from errors import MalformedURL, RateLimited, SchemaMismatch
from models import ProvisionalRecord
from platforms import Platform

from .base import PlatformAdapter, dig, extract_embedded_json, first_str, send

NOTE_PAGE = "https://www.xiaohongshu.com/explore/{id}"

_ID_RE = re.compile(r"/(?:explore|discovery/item|item)/([0-9a-fA-F]{16,32})")
_INITIAL_STATE_RE = re.compile(r"window\.__INITIAL_STATE__\s*=\s*(.*?)</script>", re.DOTALL)


def split_native_id(native_id: str) -> tuple[str, str]:
    note_id, _, token = native_id.partition(":")
    return note_id, token


def _query_value(query: str, name: str) -> str:
    """Percent-decode one query value, keeping a literal "+" (tokens are base64)."""
    for pair in query.split("&"):
        key, _, value = pair.partition("=")
        if key == name:
            return unquote(value)
    return ""


class RedbookAdapter(PlatformAdapter):
    platform = Platform.REDBOOK

    def extract_id(self, canonical_url: str) -> str:
        parts = urlsplit(canonical_url)
        match = _ID_RE.search(parts.path)
        if not match:
            raise MalformedURL(f"xiaohongshu url has no note id: {canonical_url}")
        token = _query_value(parts.query, "xsec_token")
        return f"{match.group(1)}:{token}" if token else match.group(1)

    async def fetch(self, client: httpx.AsyncClient, native_id: str) -> dict:
        note_id, token = split_native_id(native_id)
        params = {"xsec_token": token, "xsec_source": "pc_share"} if token else None
        response = await send(
            client,
            "GET",
            NOTE_PAGE.format(id=note_id),
            what="xiaohongshu note page",
            params=params,
            headers=self.headers(Referer="https://www.xiaohongshu.com/"),
        )
        final_path = response.url.path
        if "captcha" in final_path or "website-login" in final_path:
            raise RateLimited("xiaohongshu redirected to a verification page")
        return {"id": note_id, "html": response.text}

    def parse(self, raw: dict) -> ProvisionalRecord:
        state = extract_embedded_json(raw["html"], _INITIAL_STATE_RE, what="xiaohongshu note page")
        note_id = first_str(state, "note.currentNoteId", "note.firstNoteId") or raw["id"]
        note = dig(state, ("note", "noteDetailMap", note_id, "note"))
        if not isinstance(note, dict):
            raise SchemaMismatch(f"xiaohongshu state has no note {note_id}")

        video_url = first_str(
            note,
            "video.media.stream.h264.0.masterUrl",
            "video.media.stream.h265.0.masterUrl",
        )
        image_urls = []
        for image in note.get("imageList") or []:
            url = first_str(image, "urlDefault", "url", "infoList.1.url")
            if url:
                image_urls.append(url)

        return ProvisionalRecord(
            title=first_str(note, "title", "desc"),
            video_url=video_url,
            cover_url=image_urls[0] if image_urls else "",
            # Video notes list only their cover in imageList.
            images=[] if video_url else image_urls,
            author_uid=first_str(note, "user.userId"),
            author_name=first_str(note, "user.nickname", "user.nickName"),
            author_avatar=first_str(note, "user.avatar"),
        )
