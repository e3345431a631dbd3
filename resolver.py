"""Resolution facade: share text or (platform, id) in, ResolvedMedia out."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Awaitable, Iterator, Optional, TypeVar, Union

import httpx

from config import load_http_config
from errors import InvalidInput, ResolveCancelled, ResolveError, ResolveTimeout, UnsupportedSource
from extractors import get_adapter
from models import ResolvedMedia
from normalizer import normalize
from platforms import Platform, extract_candidate_url, is_short_link, match_platform, parse_platform
from redirects import resolve_redirects
from validators import validate_native_id, validate_share_text

logger = logging.getLogger(__name__)

T = TypeVar("T")


@contextmanager
def _stage(name: str) -> Iterator[None]:
    """Annotate any ResolveError raised inside the block with *name*."""
    try:
        yield
    except ResolveError as exc:
        exc.with_stage(name)
        logger.debug("stage %s failed: %s", name, exc.message)
        raise


@asynccontextmanager
async def _client_scope(
    client: Optional[httpx.AsyncClient], platform: Optional[Platform] = None
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the caller's client, or a short-lived one built from config."""
    if client is not None:
        yield client
        return
    config = load_http_config(platform.config_key if platform else None)
    async with httpx.AsyncClient(timeout=config.timeout, proxy=config.proxy) as owned:
        yield owned


async def _with_deadline(work: Awaitable[T], timeout: Optional[float]) -> T:
    try:
        if timeout is None:
            return await work
        return await asyncio.wait_for(work, timeout)
    except asyncio.TimeoutError as exc:
        raise ResolveTimeout(f"resolution exceeded {timeout}s deadline", stage="deadline") from exc
    except ResolveCancelled:
        raise
    except asyncio.CancelledError as exc:
        raise ResolveCancelled("resolution cancelled") from exc


async def _run_pipeline(
    platform: Platform, native_id: str, client: Optional[httpx.AsyncClient]
) -> ResolvedMedia:
    """fetch → parse → normalize for an already resolved (platform, id) pair."""
    adapter = get_adapter(platform)
    async with _client_scope(client, platform) as http:
        with _stage("fetch"):
            raw = await adapter.fetch(http, native_id)
    with _stage("parse"):
        record = adapter.parse(raw)
    with _stage("normalize"):
        media = normalize(record)
    logger.info("resolved %s/%s", platform.value, native_id)
    return media


async def _identify(
    text: str, client: Optional[httpx.AsyncClient]
) -> tuple[Platform, str]:
    """Derive (platform, native id) from free-form share text."""
    with _stage("input"):
        url = extract_candidate_url(validate_share_text(text))
    if is_short_link(url):
        # Most short-link hosts already name their platform; t.cn does not.
        try:
            provisional: Optional[Platform] = match_platform(url).platform
        except UnsupportedSource:
            provisional = None
        config = load_http_config(provisional.config_key if provisional else None)
        async with _client_scope(client, provisional) as http:
            with _stage("redirect"):
                url = await resolve_redirects(
                    url, client=http, headers={"User-Agent": config.user_agent}
                )
        logger.debug("short link expanded to %s", url)
    with _stage("match"):
        match = match_platform(url)
        adapter = get_adapter(match.platform)
    with _stage("extract_id"):
        native_id = adapter.extract_id(match.url)
    return match.platform, native_id


async def resolve_by_share_text(
    text: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
) -> ResolvedMedia:
    """Resolve a share text copied from a short-video app.

    Args:
        text: Share text containing a (possibly shortened) post URL.
        client: Optional shared httpx client; one is created per call otherwise.
        timeout: Deadline in seconds for the whole resolution.

    Raises:
        ResolveError: Any stage failure, annotated with the failing stage.
    """

    async def run() -> ResolvedMedia:
        platform, native_id = await _identify(text, client)
        return await _run_pipeline(platform, native_id, client)

    return await _with_deadline(run(), timeout)


async def resolve_by_id(
    platform: Union[str, Platform],
    native_id: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
    source_url: Optional[str] = None,
) -> ResolvedMedia:
    """Resolve a post from its platform and native id.

    Unknown platforms fail before any network access. When *source_url* is
    also given it must belong to the same platform.

    Raises:
        ResolveError: Any stage failure, annotated with the failing stage.
    """
    with _stage("input"):
        resolved = parse_platform(platform)
        native_id = validate_native_id(native_id)
        get_adapter(resolved)
        if source_url:
            owner = match_platform(source_url).platform
            if owner is not resolved:
                raise InvalidInput(
                    f"source url belongs to {owner.value}, not {resolved.value}"
                )

    return await _with_deadline(_run_pipeline(resolved, native_id, client), timeout)
