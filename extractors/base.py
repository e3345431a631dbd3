"""Base class and HTTP helpers shared by platform adapters."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence, Union

import httpx

from config import HttpConfig, load_http_config
from errors import SchemaMismatch, UpstreamError, map_http_error, map_status
from models import ProvisionalRecord
from platforms import Platform

logger = logging.getLogger(__name__)

# A quoted string is matched whole so that "undefined" inside text is left alone.
_UNDEFINED_RE = re.compile(r'("(?:[^"\\]|\\.)*")|\bundefined\b')


class PlatformAdapter(ABC):
    """One implementation per platform: id extraction, fetch and parse.

    Adapters are stateless; a single instance per platform is shared by every
    request.
    """

    platform: Platform

    @abstractmethod
    def extract_id(self, canonical_url: str) -> str:
        """Return the native id embedded in *canonical_url*.

        Raises:
            MalformedURL: If the URL lacks the platform's id shape.
        """

    @abstractmethod
    async def fetch(self, client: httpx.AsyncClient, native_id: str) -> dict:
        """Query the platform and return its raw payload.

        Raises:
            UpstreamError: Non-success response, malformed body or network failure.
            RateLimited: The platform signalled throttling.
        """

    @abstractmethod
    def parse(self, raw: dict) -> ProvisionalRecord:
        """Map the raw payload to a provisional record.

        Raises:
            SchemaMismatch: Required fields are missing from the payload.
        """

    @property
    def name(self) -> str:
        return self.platform.value

    def http_config(self) -> HttpConfig:
        return load_http_config(self.platform.config_key)

    def headers(self, **extra: str) -> dict:
        """Mobile client identity plus the configured cookie, if any."""
        config = self.http_config()
        headers = {
            "User-Agent": config.user_agent,
            "Accept-Language": "zh-CN,zh;q=0.9",
        }
        if config.cookie:
            headers["Cookie"] = config.cookie
        headers.update(extra)
        return headers


async def send(
    client: httpx.AsyncClient, method: str, url: str, *, what: str, **kwargs: Any
) -> httpx.Response:
    """Issue a request and raise a ResolveError for any non-success outcome."""
    kwargs.setdefault("follow_redirects", True)
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        logger.warning("%s request failed: %s", what, exc)
        raise map_http_error(exc, what=what) from exc
    if response.status_code >= 400:
        logger.warning("%s returned HTTP %d", what, response.status_code)
        raise map_status(response.status_code, what=what)
    return response


async def request_json(
    client: httpx.AsyncClient, method: str, url: str, *, what: str, **kwargs: Any
) -> dict:
    """Like :func:`send` but decode a JSON object body."""
    response = await send(client, method, url, what=what, **kwargs)
    try:
        data = response.json()
    except ValueError as exc:
        raise UpstreamError(f"{what} returned a malformed body") from exc
    if not isinstance(data, dict):
        raise UpstreamError(f"{what} returned {type(data).__name__}, expected an object")
    return data


def dig(data: Any, path: Union[str, Sequence[Union[str, int]]], default: Any = None) -> Any:
    """Look up a dotted path ("a.b.0.c") through nested dicts and lists."""
    keys = path.split(".") if isinstance(path, str) else path
    current = data
    for key in keys:
        if isinstance(current, dict):
            if key not in current:
                return default
            current = current[key]
        elif isinstance(current, list):
            try:
                current = current[int(key)]
            except (ValueError, IndexError):
                return default
        else:
            return default
    return current


def first_str(data: Any, *paths: str) -> str:
    """Return the first non-empty string (or number) found at *paths*."""
    for path in paths:
        value = dig(data, path)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def extract_embedded_json(html: str, pattern: re.Pattern[str], *, what: str) -> dict:
    """Decode a JSON object assigned to a script global inside an HTML page.

    Raises:
        SchemaMismatch: If the global is missing or not valid JSON.
    """
    match = pattern.search(html)
    if not match:
        raise SchemaMismatch(f"{what}: embedded page data not found")
    blob = match.group(1).strip().rstrip(";")
    blob = _UNDEFINED_RE.sub(lambda m: m.group(1) or "null", blob)
    try:
        data = json.loads(blob)
    except ValueError as exc:
        raise SchemaMismatch(f"{what}: embedded page data is not valid JSON") from exc
    if not isinstance(data, dict):
        raise SchemaMismatch(f"{what}: embedded page data is not an object")
    return data


def looks_like_captcha(text: Optional[str]) -> bool:
    """Heuristic for anti-bot verification pages served instead of content."""
    if not text:
        return False
    lowered = text.lower()
    return any(marker in lowered for marker in ("captcha", "verify_page", "验证码", "人机验证"))
