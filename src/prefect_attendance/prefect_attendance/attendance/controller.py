from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import admin_required
from ..core.exceptions import ValidationError
from ..container import Container
from .model import AttendanceRecord, DailyStats, PrefectStats

# JSON field name -> record attribute accepted by PUT /api/attendance/<id>
UPDATE_FIELD_NAMES = {
    "prefectNumber": "prefect_number",
    "role": "role",
    "timestamp": "timestamp",
    "date": "date",
}


def record_json(record: AttendanceRecord) -> dict:
    return record.to_dict()


def daily_stats_json(stats: DailyStats) -> dict:
    return {
        "total": stats.total,
        "onTime": stats.on_time,
        "late": stats.late,
        "attendanceRate": round(stats.attendance_rate, 1),
        "byRole": {role.value: count for role, count in stats.by_role.items()},
    }


def prefect_stats_json(stats: PrefectStats) -> dict:
    return {
        "totalDays": stats.total_days,
        "onTimeDays": stats.on_time_days,
        "lateDays": stats.late_days,
        "attendanceRate": round(stats.attendance_rate, 1),
        "roles": {role.value: count for role, count in stats.roles.items() if count},
        "recentRecords": [record_json(r) for r in stats.recent_records],
    }


def register(app: Flask, container: Container) -> None:
    def _json_body() -> dict:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    def _date_arg() -> str:
        return request.args.get("date") or container.attendance_service.today()

    def _csv_response(body: str, filename: str):
        return app.response_class(
            body.encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename.replace('/', '-')}"},
        )

    @app.route("/api/attendance", methods=["POST"], endpoint="mark_attendance")
    def mark_attendance():
        data = _json_body()
        record = container.gateway.mark_attendance(
            str(data.get("prefectNumber", data.get("prefect_number", "")) or ""),
            data.get("role"),
        )
        return jsonify({"success": True, "record": record_json(record)}), 201

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="mark_attendance_bulk")
    def mark_attendance_bulk():
        """Mark several prefects in one request; per-entry failures are reported, not raised."""
        data = _json_body()
        entries = data.get("entries")
        if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
            raise ValidationError("entries must be a list of objects")

        result = container.attendance_service.save_bulk(entries)
        return jsonify(
            {
                "success": [record_json(r) for r in result.success],
                "errors": [
                    {"prefectNumber": e.prefect_number, "role": e.role, "error": e.error} for e in result.errors
                ],
            }
        ), 200

    @app.route("/api/attendance", methods=["GET"], endpoint="list_attendance")
    def list_attendance():
        prefect = request.args.get("prefect")
        if prefect:
            records = container.attendance_service.search_prefect_records(prefect)
        else:
            records = container.gateway.list_by_date(_date_arg())
        return jsonify({"records": [record_json(r) for r in records]}), 200

    @app.route("/api/attendance/<record_id>", methods=["PUT"], endpoint="update_attendance")
    @admin_required
    def update_attendance(record_id: str):
        data = _json_body()
        updates = {}
        for key, value in data.items():
            name = UPDATE_FIELD_NAMES.get(key, key)
            if name == "timestamp":
                try:
                    value = parse_iso_datetime(str(value))
                except ValueError as e:
                    raise ValidationError(f"Invalid timestamp: {value}") from e
            updates[name] = value

        record = container.attendance_service.update(record_id, updates)
        return jsonify({"success": True, "record": record_json(record)}), 200

    @app.route("/api/attendance/<record_id>", methods=["DELETE"], endpoint="delete_attendance")
    @admin_required
    def delete_attendance(record_id: str):
        container.attendance_service.delete(record_id)
        return "", 204

    @app.route("/api/stats/daily", methods=["GET"], endpoint="daily_stats")
    def daily_stats():
        date = _date_arg()
        stats = container.attendance_service.daily_stats(date)
        return jsonify({"date": date, **daily_stats_json(stats)}), 200

    @app.route("/api/stats/prefect/<prefect_number>", methods=["GET"], endpoint="prefect_stats")
    def prefect_stats(prefect_number: str):
        stats = container.attendance_service.prefect_stats(prefect_number)
        return jsonify({"prefectNumber": prefect_number, **prefect_stats_json(stats)}), 200

    @app.route("/api/reports/daily.csv", methods=["GET"], endpoint="daily_report_csv")
    @admin_required
    def daily_report_csv():
        date = _date_arg()
        body = container.report_service.export_daily_report(date)
        return _csv_response(body, f"daily_report_{date}.csv")

    @app.route("/api/reports/prefect/<prefect_number>.csv", methods=["GET"], endpoint="prefect_report_csv")
    @admin_required
    def prefect_report_csv(prefect_number: str):
        body = container.report_service.export_prefect_report(prefect_number)
        stamp = container.attendance_service.today()
        return _csv_response(body, f"prefect_{prefect_number}_report_{stamp}.csv")
