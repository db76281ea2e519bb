from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class AdminLockoutState:
    """Persisted failure counter and lockout expiry of the admin PIN guard."""

    failed_attempts: int = 0
    lockout_until: Optional[datetime] = None
