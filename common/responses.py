"""Standardized JSON response envelopes."""

from __future__ import annotations

from typing import Any, Mapping

from flask import Response, g, has_request_context, jsonify

from .errors import AppError
from .logging import get_logger


def _request_id() -> str | None:
    if not has_request_context():
        return None
    return getattr(g, "request_id", None)


def ok(data: Any, *, status: int = 200) -> Response:
    """Return a success envelope."""

    response = jsonify({"success": True, "data": data})
    response.status_code = status
    return response


def fail(error: AppError | Mapping[str, Any], *, status: int | None = None) -> Response:
    """Return a standardized failure envelope."""

    if isinstance(error, AppError):
        body = dict(error.to_dict())
        status = status or error.status_code
    else:
        body = dict(error)
        status = status or 400

    request_id = _request_id()
    if request_id:
        body["request_id"] = request_id
    get_logger().info("request failed with %s: %s", body.get("code", "error"), body.get("message", ""))

    response = jsonify({"success": False, "error": body})
    response.status_code = status
    return response


__all__ = ["ok", "fail"]
