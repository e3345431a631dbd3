"""ShareLens MCP Server: watermark-free media resolution for short-video share links."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from config import load_sqlite_path
from envelope import failure, success
from errors import ResolveCancelled, ResolveError
from health import check_health
from models import ResolvedMedia
from resolver import resolve_by_id, resolve_by_share_text
from storage import AuditRecord, AuditStore, QueryOptions, StorageError, parse_time

logger = logging.getLogger(__name__)

SHARE_URL_ENDPOINT = "/video/share/url/parse"
VIDEO_ID_ENDPOINT = "/video/id/parse"
CLIENT_USER_AGENT = "mcp"

mcp = FastMCP("sharelens")

_store: Optional[AuditStore] = None


def _get_store() -> Optional[AuditStore]:
    """Open the audit log lazily; None when it cannot be opened."""
    global _store
    if _store is None:
        try:
            _store = AuditStore(load_sqlite_path())
        except StorageError as exc:
            logger.warning("audit log disabled: %s", exc)
            return None
    return _store


async def _record(record: AuditRecord) -> None:
    """Append to the audit log. Failures are logged, never returned to the caller."""
    store = _get_store()
    if store is None:
        return
    try:
        await asyncio.to_thread(store.append, record)
    except StorageError as exc:
        logger.warning("failed to record %s attempt: %s", record.endpoint, exc)


def _dump(payload: dict) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


@mcp.tool()
async def parse_share_url(url: str) -> str:
    """Resolve a share text copied from a short-video app.

    Supports Douyin (抖音), Kuaishou (快手), Pipixia (皮皮虾), Weibo (微博),
    Xiaohongshu (小红书), Bilibili and TikTok. The text may contain captions
    and emoji around the link; short links are expanded automatically.

    Args:
        url: Share text or URL, e.g. "复制打开抖音 https://v.douyin.com/abcd1234/".

    Returns:
        JSON envelope {code, msg, data}; code 200 carries the resolved media.
    """
    result: Optional[ResolvedMedia] = None
    try:
        result = await resolve_by_share_text(url)
        payload = success(result)
    except ResolveCancelled:
        raise
    except ResolveError as exc:
        payload = failure(exc)
    except Exception as exc:
        logger.exception("unexpected failure resolving share text")
        payload = failure(exc)

    await _record(AuditRecord(
        endpoint=SHARE_URL_ENDPOINT,
        share_url=url,
        user_agent=CLIENT_USER_AGENT,
        result=result,
        error="" if result else payload["msg"],
    ))
    return _dump(payload)


@mcp.tool()
async def parse_video_id(source: str, video_id: str) -> str:
    """Resolve a post from its platform name and native id.

    Args:
        source: Platform name: douyin, kuaishou, pipixia, weibo, redbook,
                bilibili or tiktok.
        video_id: The platform's own id for the post (e.g. a Douyin aweme id
                  or a Bilibili BV id).

    Returns:
        JSON envelope {code, msg, data}; code 200 carries the resolved media.
    """
    result: Optional[ResolvedMedia] = None
    try:
        result = await resolve_by_id(source, video_id)
        payload = success(result)
    except ResolveCancelled:
        raise
    except ResolveError as exc:
        payload = failure(exc)
    except Exception as exc:
        logger.exception("unexpected failure resolving %s/%s", source, video_id)
        payload = failure(exc)

    await _record(AuditRecord(
        endpoint=VIDEO_ID_ENDPOINT,
        source=source,
        video_id=video_id,
        user_agent=CLIENT_USER_AGENT,
        result=result,
        error="" if result else payload["msg"],
    ))
    return _dump(payload)


@mcp.tool()
async def query_logs(
    start: str = "",
    end: str = "",
    source: str = "",
    endpoint: str = "",
    contains: str = "",
    client_ip: str = "",
    limit: int = 50,
    offset: int = 0,
) -> str:
    """Query the resolution audit log, newest first.

    Args:
        start: Lower time bound, unix seconds or RFC 3339.
        end: Upper time bound, unix seconds or RFC 3339.
        source: Exact platform name filter.
        endpoint: Exact endpoint filter (/video/share/url/parse or /video/id/parse).
        contains: Substring of the original share text or video id.
        client_ip: Exact client IP filter.
        limit: Page size, 1-200 (default 50).
        offset: Rows to skip (default 0).

    Returns:
        JSON envelope whose data is a list of records.
    """
    store = _get_store()
    if store is None:
        return _dump({"code": 201, "msg": "audit log unavailable", "data": None})
    options = QueryOptions(
        start=parse_time(start),
        end=parse_time(end),
        source=source,
        endpoint=endpoint,
        contains=contains,
        client_ip=client_ip,
        limit=limit,
        offset=offset,
    )
    try:
        records = await asyncio.to_thread(store.query, options)
    except StorageError as exc:
        return _dump({"code": 201, "msg": str(exc), "data": None})
    return _dump(success([r.to_dict() for r in records], msg="ok"))


@mcp.tool()
async def health_check() -> str:
    """Check ShareLens environment health (yt-dlp, audit database).

    Returns:
        JSON string with health status details.
    """
    return json.dumps(dataclasses.asdict(check_health()), ensure_ascii=False, indent=2)


if __name__ == "__main__":
    mcp.run()
