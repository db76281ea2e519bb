from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, session

from ..core.exceptions import (
    AuthenticationError,
    DomainError,
    InvalidFormat,
    LockedOut,
    NotFound,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ADMIN_SESSION_KEY = "is_admin"


def json_error(message: str, status: int, **extra):
    return jsonify({"success": False, "message": message, **extra}), status


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not session.get(ADMIN_SESSION_KEY):
            return json_error("Admin login required", 401)
        return view(*args, **kwargs)

    return wrapper


def register_error_handlers(app: Flask) -> None:
    """Translate domain exceptions raised by any view into JSON error responses."""

    @app.errorhandler(ValidationError)
    @app.errorhandler(InvalidFormat)
    def handle_bad_request(e: DomainError):
        return json_error(str(e), 400)

    @app.errorhandler(NotFound)
    def handle_not_found(e: NotFound):
        return json_error(str(e), 404)

    @app.errorhandler(AuthenticationError)
    def handle_auth(e: AuthenticationError):
        if isinstance(e, LockedOut):
            return json_error(str(e), 423, remainingMinutes=e.remaining_minutes)
        return json_error(str(e), 401, remainingAttempts=getattr(e, "remaining_attempts", None))

    @app.errorhandler(StorageError)
    def handle_storage(e: StorageError):
        logger.error(f"Storage failure while serving request: {e}")
        return json_error(str(e), 507)
