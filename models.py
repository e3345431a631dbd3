"""Data structures for resolved media and adapter output."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Author:
    """Post author identity. Every field is optional."""

    uid: Optional[str] = None
    name: Optional[str] = None
    avatar: Optional[str] = None


@dataclass(frozen=True)
class ResolvedMedia:
    """Canonical, watermark-free metadata for one post.

    ``images`` is empty for video posts and holds the gallery in the author's
    display order for image posts.
    """

    title: Optional[str] = None
    video_url: Optional[str] = None
    music_url: Optional[str] = None
    cover_url: Optional[str] = None
    images: tuple[str, ...] = ()
    author: Author = field(default_factory=Author)

    @property
    def is_gallery(self) -> bool:
        return bool(self.images)

    def to_dict(self) -> dict:
        """Convert to plain dictionary."""
        data = dataclasses.asdict(self)
        data["images"] = list(self.images)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ResolvedMedia":
        author = data.get("author") or {}
        return cls(
            title=data.get("title") or None,
            video_url=data.get("video_url"),
            music_url=data.get("music_url"),
            cover_url=data.get("cover_url"),
            images=tuple(data.get("images") or ()),
            author=Author(
                uid=author.get("uid"),
                name=author.get("name"),
                avatar=author.get("avatar"),
            ),
        )


@dataclass
class ProvisionalRecord:
    """Adapter output before normalization; may hold blanks and platform quirks."""

    title: str = ""
    video_url: str = ""
    music_url: str = ""
    cover_url: str = ""
    images: list[str] = field(default_factory=list)
    author_uid: str = ""
    author_name: str = ""
    author_avatar: str = ""
