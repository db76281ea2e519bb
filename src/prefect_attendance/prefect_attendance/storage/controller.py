from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import admin_required
from ..core.exceptions import InvalidFormat
from ..container import Container
from .model import StorageInfo


def storage_info_json(info: StorageInfo) -> dict:
    return {
        "quota": {
            "available": info.quota.available,
            "used": info.quota.used,
            "percentage": round(info.quota.percentage, 2),
        },
        "recordCount": info.record_count,
        "lastBackup": info.last_backup,
        "version": info.version,
        "integrity": info.integrity,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/storage/info", methods=["GET"], endpoint="storage_info")
    @admin_required
    def storage_info():
        return jsonify(storage_info_json(container.store.get_storage_info())), 200

    @app.route("/api/storage/verify", methods=["POST"], endpoint="storage_verify")
    @admin_required
    def storage_verify():
        ok = container.store.verify_integrity()
        return jsonify({"success": ok, "integrity": ok}), 200

    @app.route("/api/storage/backup", methods=["GET"], endpoint="storage_backup")
    @admin_required
    def storage_backup():
        """Download a manual snapshot of every record as pretty-printed JSON."""
        body = container.gateway.export_backup()
        stamp = container.attendance_service.today().replace("/", "-")
        return app.response_class(
            body.encode("utf-8"),
            mimetype="application/json",
            headers={"Content-Disposition": f"attachment; filename=attendance_backup_{stamp}.json"},
        )

    @app.route("/api/storage/restore", methods=["POST"], endpoint="storage_restore")
    @admin_required
    def storage_restore():
        upload = request.files.get("file")
        if upload is not None:
            serialized = upload.read().decode("utf-8-sig", errors="replace")
        else:
            serialized = request.get_data(as_text=True)
        if not serialized.strip():
            raise InvalidFormat("Invalid backup format")

        container.gateway.import_backup(serialized)
        count = len(container.gateway.list_all())
        return jsonify({"success": True, "recordCount": count}), 200
