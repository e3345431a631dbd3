"""Manual redirect following for share short links."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from config import DEFAULT_USER_AGENT
from errors import MalformedURL, TooManyRedirects, map_http_error, map_status

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 10

_REDIRECT_HEADERS = {
    "User-Agent": DEFAULT_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9",
}


async def resolve_redirects(
    url: str,
    *,
    client: httpx.AsyncClient,
    max_redirects: int = MAX_REDIRECTS,
    headers: Optional[dict] = None,
) -> str:
    """Follow redirects on *url* one hop at a time and return the final URL.

    Transport-level redirect following is disabled so every Location can be
    inspected and the hop ceiling enforced. Response bodies are never read.

    Raises:
        TooManyRedirects: More than *max_redirects* hops.
        UpstreamUnreachable: Network failure.
        RateLimited: A hop answered HTTP 429.
        UpstreamError: A hop answered another 4xx/5xx status.
        ResolveTimeout: A hop timed out.
    """
    request_headers = {**_REDIRECT_HEADERS, **(headers or {})}
    current = url
    for hop in range(max_redirects + 1):
        try:
            async with client.stream(
                "GET", current, headers=request_headers, follow_redirects=False
            ) as response:
                status = response.status_code
                location = response.headers.get("location")
        except httpx.InvalidURL as exc:
            raise MalformedURL(f"cannot request {current}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise map_http_error(exc, what=f"redirect hop {hop} ({current})") from exc

        if 300 <= status < 400 and location:
            next_url = str(httpx.URL(current).join(location))
            logger.debug("redirect hop %d: %s -> %s", hop + 1, current, next_url)
            current = next_url
            continue
        if status < 400:
            return current
        raise map_status(status, what=f"redirect target {current}")

    raise TooManyRedirects(f"stopped after {max_redirects} redirects starting at {url}")
