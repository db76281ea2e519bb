from __future__ import annotations

from datetime import datetime, timezone

from ..core.constants import DEFAULT_DATE_FORMAT


def now_local() -> datetime:
    """Current local time (timezone-aware).

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now().astimezone()


def ensure_aware(value: datetime) -> datetime:
    """Naive datetimes are taken to be local wall-clock time."""
    if value.tzinfo is None:
        return value.astimezone()
    return value


def truncate_to_millis(value: datetime) -> datetime:
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def to_epoch_millis(value: datetime) -> int:
    return int(ensure_aware(value).timestamp() * 1000)


def from_epoch_millis(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def to_iso_utc(value: datetime) -> str:
    """Render as ISO-8601 UTC with millisecond precision, e.g. 2026-01-05T06:30:00.000Z."""
    utc = ensure_aware(value).astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_datetime(value: str) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"Expected ISO string, got {type(value)!r}")
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    return ensure_aware(parsed)


def format_record_date(value: datetime, date_format: str = DEFAULT_DATE_FORMAT) -> str:
    """Calendar-day string of the local rendering of `value`."""
    return ensure_aware(value).astimezone().strftime(date_format)


def parse_record_date(value: str, date_format: str = DEFAULT_DATE_FORMAT) -> datetime:
    return datetime.strptime(value, date_format)
