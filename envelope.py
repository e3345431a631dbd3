"""``{code, msg, data}`` response envelope used at the service boundary."""

from __future__ import annotations

from typing import Any

from errors import ErrorKind, ResolveError

CODE_OK = 200
CODE_FAILED = 201
MSG_OK = "解析成功"


def success(data: Any, msg: str = MSG_OK) -> dict:
    if hasattr(data, "to_dict"):
        data = data.to_dict()
    return {"code": CODE_OK, "msg": msg, "data": data}


def failure(exc: BaseException) -> dict:
    """Render an error. Unexpected exceptions are reported as upstream errors."""
    if isinstance(exc, ResolveError):
        kind, stage = exc.kind, exc.stage
    else:
        kind, stage = ErrorKind.UPSTREAM_ERROR, None
    return {
        "code": CODE_FAILED,
        "msg": str(exc),
        "data": None,
        "error": kind.value,
        "stage": stage,
    }
