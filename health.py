"""Environment health checks for yt-dlp and the audit database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import load_sqlite_path


@dataclass(frozen=True)
class HealthStatus:
    ytdlp_available: bool
    ytdlp_version: Optional[str]
    audit_db_path: str
    audit_db_writable: bool
    audit_db_message: str


def _ytdlp_version() -> tuple[bool, Optional[str]]:
    try:
        import yt_dlp
    except ImportError:
        return False, None
    version = getattr(yt_dlp, "version", None)
    if version is not None and hasattr(version, "__version__"):
        return True, str(version.__version__)
    return True, None


def _writable_dir(path: Path) -> bool:
    """True if *path*'s directory exists and is writable, or could be created."""
    for candidate in (path.parent, *path.parent.parents):
        if candidate.exists():
            return os.access(candidate, os.W_OK)
    return False


def check_health() -> HealthStatus:
    """Check environment health. Never raises."""
    ytdlp_available, ytdlp_version = _ytdlp_version()

    db_path = load_sqlite_path()
    try:
        writable = _writable_dir(Path(db_path))
    except OSError:
        writable = False
    if writable:
        message = "audit database location is writable"
    else:
        message = (
            f"cannot write audit database at {db_path}. "
            "Set SHARELENS_SQLITE_PATH to a writable location."
        )

    return HealthStatus(
        ytdlp_available=ytdlp_available,
        ytdlp_version=ytdlp_version,
        audit_db_path=db_path,
        audit_db_writable=writable,
        audit_db_message=message,
    )
