from __future__ import annotations

from enum import Enum


class PrefectRole(str, Enum):
    """The fixed roster of role categories a prefect can check in under."""

    HEAD = "Head"
    DEPUTY = "Deputy"
    SENIOR_EXECUTIVE = "Senior Executive"
    EXECUTIVE = "Executive"
    SUPER_SENIOR = "Super Senior"
    SENIOR = "Senior"
    JUNIOR = "Junior"
    SUB = "Sub"
    APPRENTICE = "Apprentice"
    GAMES_CAPTAIN = "Games Captain"


class AttendanceStatus(str, Enum):
    """Punctuality of a check-in, as printed in reports."""

    ON_TIME = "On Time"
    LATE = "Late"


class BackupType(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"
    EMERGENCY = "emergency"
