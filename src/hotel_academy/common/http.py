from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.exceptions import AuthenticationError, DomainError, ValidationError

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


def error_response(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return error_response(str(e), e.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.path)
        if app.config.get("DEBUG"):
            return error_response(f"Internal error: {e}", 500)
        return error_response("Internal error", 500)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if SESSION_USER_KEY not in session:
            raise AuthenticationError("Please sign in to continue")
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> str:
    user_id = session.get(SESSION_USER_KEY)
    if not user_id:
        raise AuthenticationError("Please sign in to continue")
    return user_id


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object")
    return data


def ok(data: Any = None, status: int = 200, **extra: Any):
    payload = {"success": True}
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return jsonify(payload), status


def int_arg(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number")
