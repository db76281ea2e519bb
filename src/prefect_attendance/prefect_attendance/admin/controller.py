from __future__ import annotations

import logging

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import to_iso_utc
from ..common.http import ADMIN_SESSION_KEY
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/login", methods=["POST"], endpoint="admin_login")
    def admin_login():
        data = request.get_json(silent=True) or {}
        pin = str(data.get("pin", "") or request.form.get("pin", ""))

        # InvalidPin / LockedOut propagate to the JSON error handlers (401 / 423)
        container.admin_service.check_access(pin)

        session.clear()
        session[ADMIN_SESSION_KEY] = True
        logger.info("Admin session opened")
        return jsonify({"success": True, "message": "Admin access granted"}), 200

    @app.route("/api/admin/logout", methods=["POST"], endpoint="admin_logout")
    def admin_logout():
        session.clear()
        return jsonify({"success": True, "message": "Logged out"}), 200

    @app.route("/api/admin/status", methods=["GET"], endpoint="admin_status")
    def admin_status():
        state = container.admin_service.state()
        return jsonify(
            {
                "loggedIn": bool(session.get(ADMIN_SESSION_KEY)),
                "failedAttempts": state.failed_attempts,
                "lockedUntil": to_iso_utc(state.lockout_until) if state.lockout_until else None,
            }
        ), 200
