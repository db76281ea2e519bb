"""Export or restore the attendance records.

Without arguments a manual backup is written to `backups/`. With
`--restore FILE` the live records are replaced by the ones in FILE.
Run from the project root: `python -m scripts.backup [--restore FILE]`.
"""

from __future__ import annotations

import argparse
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from config import load_settings
from prefect_attendance.common.logging_config import setup_logging
from prefect_attendance.container import build_container
from prefect_attendance.core.exceptions import DomainError


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--restore", metavar="FILE", help="replace all records with the ones in this backup file")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = load_settings()
    setup_logging(settings.get("LOG_LEVEL") or "INFO", None)

    container = build_container(
        storage_config=dict(settings["STORAGE_CONFIG"]),
        admin_pin=settings["ADMIN_PIN"],
        retention_days=settings.get("RETENTION_DAYS"),
        date_format=settings.get("DATE_FORMAT") or "%Y-%m-%d",
    )
    try:
        if args.restore:
            serialized = Path(args.restore).read_text(encoding="utf-8-sig")
            container.gateway.import_backup(serialized)
            print(f"OK: Restored {len(container.gateway.list_all())} records from {args.restore}")
            return

        out_dir = Path(__file__).resolve().parents[1] / "backups"
        out_dir.mkdir(parents=True, exist_ok=True)

        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        out_file = out_dir / f"attendance_backup_{ts}.json"
        out_file.write_text(container.gateway.export_backup(), encoding="utf-8")
        print(f"OK: Backup created: {out_file}")
    except (DomainError, OSError) as e:
        raise SystemExit(f"Backup failed: {e}")
    finally:
        container.close()


if __name__ == "__main__":
    main()
