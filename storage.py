"""Append-only SQLite audit log of resolution attempts.

One ``records`` table, one row per attempt, indexed by timestamp, source,
endpoint and client IP. Rows are never updated or deleted.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from models import Author, ResolvedMedia

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 200

_SCHEMA = """
CREATE TABLE IF NOT EXISTS records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    ts TEXT NOT NULL,
    endpoint TEXT,
    source TEXT,
    share_url TEXT,
    video_id TEXT,
    client_ip TEXT,
    user_agent TEXT,
    title TEXT,
    video_url TEXT,
    music_url TEXT,
    cover_url TEXT,
    images_json TEXT,
    author_uid TEXT,
    author_name TEXT,
    author_avatar TEXT,
    error TEXT
);
CREATE INDEX IF NOT EXISTS idx_records_ts ON records(ts);
CREATE INDEX IF NOT EXISTS idx_records_source ON records(source);
CREATE INDEX IF NOT EXISTS idx_records_endpoint ON records(endpoint);
CREATE INDEX IF NOT EXISTS idx_records_client_ip ON records(client_ip);
"""

_COLUMNS = (
    "id, ts, endpoint, source, share_url, video_id, client_ip, user_agent, "
    "title, video_url, music_url, cover_url, images_json, "
    "author_uid, author_name, author_avatar, error"
)


class StorageError(Exception):
    """Raised when the audit database cannot be opened, written or read."""


@dataclass(frozen=True)
class AuditRecord:
    """One resolution attempt as seen by the boundary layer."""

    endpoint: str
    source: str = ""
    share_url: str = ""
    video_id: str = ""
    client_ip: str = ""
    user_agent: str = ""
    result: Optional[ResolvedMedia] = None
    error: str = ""
    id: Optional[int] = None
    ts: str = ""

    def to_dict(self) -> dict:
        data = dataclasses.asdict(self)
        data["result"] = self.result.to_dict() if self.result else None
        return data


@dataclass(frozen=True)
class QueryOptions:
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    source: str = ""
    endpoint: str = ""
    contains: str = ""  # substring of share_url or video_id
    client_ip: str = ""
    limit: int = 0
    offset: int = 0


def clamp_limit(limit: int) -> int:
    """Non-positive limits fall back to 50; anything above 200 is capped."""
    if limit <= 0:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


def clamp_offset(offset: int) -> int:
    return max(offset, 0)


def format_ts(moment: datetime) -> str:
    """RFC 3339 in UTC, second precision. Naive datetimes are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="seconds")


def parse_time(value: Optional[str]) -> Optional[datetime]:
    """Parse unix seconds or an RFC 3339 string; anything else yields None."""
    if not value:
        return None
    value = value.strip()
    if value.isdigit():
        try:
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        except (OverflowError, ValueError, OSError):
            return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _flatten(result: Optional[ResolvedMedia]) -> tuple:
    if result is None:
        return ("",) * 8
    images_json = json.dumps(list(result.images), ensure_ascii=False) if result.images else ""
    return (
        result.title or "",
        result.video_url or "",
        result.music_url or "",
        result.cover_url or "",
        images_json,
        result.author.uid or "",
        result.author.name or "",
        result.author.avatar or "",
    )


def _rehydrate(row: sqlite3.Row) -> Optional[ResolvedMedia]:
    fields = (
        "title", "video_url", "music_url", "cover_url", "images_json",
        "author_uid", "author_name", "author_avatar",
    )
    if not any(row[name] for name in fields):
        return None
    images: tuple[str, ...] = ()
    if row["images_json"]:
        try:
            images = tuple(json.loads(row["images_json"]))
        except ValueError:
            logger.warning("record %s has unreadable images_json", row["id"])
    return ResolvedMedia(
        title=row["title"] or None,
        video_url=row["video_url"] or None,
        music_url=row["music_url"] or None,
        cover_url=row["cover_url"] or None,
        images=images,
        author=Author(
            uid=row["author_uid"] or None,
            name=row["author_name"] or None,
            avatar=row["author_avatar"] or None,
        ),
    )


class AuditStore:
    """SQLite-backed audit log. Safe to share across threads."""

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA busy_timeout = 5000")
            self._conn.execute("PRAGMA journal_mode = WAL")
            self._conn.execute("PRAGMA synchronous = NORMAL")
            self._conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Failed to open audit log {self.db_path}: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "AuditStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def append(self, record: AuditRecord, *, now: Optional[datetime] = None) -> int:
        """Insert one record and return its row id."""
        ts = format_ts(now or datetime.now(timezone.utc))
        params = (
            ts, record.endpoint, record.source, record.share_url, record.video_id,
            record.client_ip, record.user_agent,
            *_flatten(record.result),
            record.error.strip(),
        )
        with self._lock:
            try:
                cursor = self._conn.execute(
                    """
                    INSERT INTO records(
                        ts, endpoint, source, share_url, video_id,
                        client_ip, user_agent, title, video_url, music_url, cover_url,
                        images_json, author_uid, author_name, author_avatar, error
                    ) VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?)
                    """,
                    params,
                )
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise StorageError(f"Failed to append audit record: {exc}") from exc
        return cursor.lastrowid

    def query(self, options: QueryOptions) -> list[AuditRecord]:
        """Return matching records, newest first."""
        where = ["1=1"]
        args: list = []
        if options.start is not None:
            where.append("ts >= ?")
            args.append(format_ts(options.start))
        if options.end is not None:
            where.append("ts <= ?")
            args.append(format_ts(options.end))
        if options.source:
            where.append("source = ?")
            args.append(options.source)
        if options.endpoint:
            where.append("endpoint = ?")
            args.append(options.endpoint)
        if options.client_ip:
            where.append("client_ip = ?")
            args.append(options.client_ip)
        if options.contains:
            where.append("(share_url LIKE ? OR video_id LIKE ?)")
            pattern = f"%{options.contains}%"
            args.extend([pattern, pattern])
        args.extend([clamp_limit(options.limit), clamp_offset(options.offset)])

        sql = (
            f"SELECT {_COLUMNS} FROM records WHERE {' AND '.join(where)} "
            "ORDER BY id DESC LIMIT ? OFFSET ?"
        )
        with self._lock:
            try:
                rows = self._conn.execute(sql, args).fetchall()
            except sqlite3.Error as exc:
                raise StorageError(f"Failed to query audit log: {exc}") from exc

        return [
            AuditRecord(
                id=row["id"],
                ts=row["ts"],
                endpoint=row["endpoint"] or "",
                source=row["source"] or "",
                share_url=row["share_url"] or "",
                video_id=row["video_id"] or "",
                client_ip=row["client_ip"] or "",
                user_agent=row["user_agent"] or "",
                result=_rehydrate(row),
                error=row["error"] or "",
            )
            for row in rows
        ]
