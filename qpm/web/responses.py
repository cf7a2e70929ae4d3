"""Web 层统一响应辅助函数"""

from __future__ import annotations

from flask import Response, jsonify

from qpm.core.exceptions import (
    CacheCorruptionError,
    QpmError,
    VersionConflictError,
)

_STATUS_BY_ERROR: dict[type[QpmError], int] = {
    VersionConflictError: 409,
    CacheCorruptionError: 500,
}


def not_found(resource: str) -> tuple[Response, int]:
    return jsonify(error=f"{resource}不存在"), 404


def from_error(exc: QpmError) -> tuple[Response, int]:
    """业务异常 -> JSON 错误，默认 400"""
    status = next(
        (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)), 400,
    )
    return jsonify(error=str(exc), code=exc.code), status
