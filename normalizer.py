"""Map adapter output into the canonical ResolvedMedia shape."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

from errors import SchemaMismatch
from models import Author, ProvisionalRecord, ResolvedMedia

_AUDIO_EXTENSIONS = (".mp3", ".m4a", ".aac", ".ogg", ".wav", ".flac")


def _clean(value: Optional[str]) -> Optional[str]:
    """Trim whitespace; blank strings collapse to None."""
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def _clean_url(value: Optional[str]) -> Optional[str]:
    url = _clean(value)
    if url and url.startswith("//"):
        url = "https:" + url
    return url


def _is_audio(url: Optional[str]) -> bool:
    if not url:
        return False
    return urlsplit(url).path.lower().endswith(_AUDIO_EXTENSIONS)


def normalize(record: ProvisionalRecord) -> ResolvedMedia:
    """Build a ResolvedMedia from a provisional record.

    Gallery ordering is preserved; it is the author's display sequence.

    Raises:
        SchemaMismatch: If neither a video URL nor any image survives cleaning.
    """
    video_url = _clean_url(record.video_url)
    music_url = _clean_url(record.music_url)

    # Some payloads put the soundtrack in the video slot and vice versa.
    if _is_audio(video_url) and not _is_audio(music_url):
        video_url, music_url = music_url, video_url

    images = []
    for image in record.images or ():
        url = _clean_url(image)
        if url:
            images.append(url)

    if not video_url and not images:
        raise SchemaMismatch("payload contains neither a video url nor gallery images")

    return ResolvedMedia(
        title=_clean(record.title),
        video_url=video_url,
        music_url=music_url,
        cover_url=_clean_url(record.cover_url),
        images=tuple(images),
        author=Author(
            uid=_clean(record.author_uid),
            name=_clean(record.author_name),
            avatar=_clean_url(record.author_avatar),
        ),
    )
