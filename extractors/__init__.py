"""Read-only platform adapter registry."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from errors import UnsupportedSource
from platforms import Platform

from .base import PlatformAdapter
from .bilibili import BilibiliAdapter
from .douyin import DouyinAdapter
from .kuaishou import KuaishouAdapter
from .pipixia import PipixiaAdapter
from .redbook import RedbookAdapter
from .tiktok import TikTokAdapter
from .weibo import WeiboAdapter

ADAPTERS: Mapping[Platform, PlatformAdapter] = MappingProxyType({
    adapter.platform: adapter
    for adapter in (
        DouyinAdapter(),
        KuaishouAdapter(),
        PipixiaAdapter(),
        WeiboAdapter(),
        RedbookAdapter(),
        BilibiliAdapter(),
        TikTokAdapter(),
    )
})


def get_adapter(platform: Platform) -> PlatformAdapter:
    """Return the adapter registered for *platform*.

    Raises:
        UnsupportedSource: If no adapter is registered.
    """
    adapter = ADAPTERS.get(platform)
    if adapter is None:
        raise UnsupportedSource(f"source {getattr(platform, 'value', platform)} has no adapter")
    return adapter


__all__ = ["ADAPTERS", "PlatformAdapter", "get_adapter"]
