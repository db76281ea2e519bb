"""Example: drive the service layer directly (no Flask).

Marks a few prefects in an in-memory store and prints the day's CSV report.
"""

from prefect_attendance.container import build_container


def main():
    container = build_container(storage_config={"backend": "memory"}, admin_pin="apple")

    container.gateway.mark_attendance("P-101", "Head")
    container.gateway.mark_attendance("P-102", "Deputy")
    result = container.attendance_service.save_bulk(
        [
            {"prefectNumber": "P-103", "role": "Junior"},
            {"prefectNumber": "P-101", "role": "Head"},
        ]
    )
    for error in result.errors:
        print(f"skipped {error.prefect_number}: {error.error}")

    print(container.report_service.export_daily_report(container.attendance_service.today()))
    container.close()


if __name__ == "__main__":
    main()
