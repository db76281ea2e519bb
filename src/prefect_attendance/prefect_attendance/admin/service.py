from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Callable

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..core.constants import LOCKOUT_DURATION, MAX_FAILED_ATTEMPTS
from ..core.exceptions import InvalidPin, LockedOut, ValidationError
from .model import AdminLockoutState
from .repository import LockoutRepository

logger = logging.getLogger(__name__)


class AdminAuthService:
    """Use case: unlock the admin area with the shared PIN.

    Repeated failures lock the guard for a while; during a lockout every attempt
    is refused without being counted.
    """

    def __init__(
        self,
        lockouts: LockoutRepository,
        *,
        pin: str,
        max_attempts: int = MAX_FAILED_ATTEMPTS,
        lockout_duration: timedelta = LOCKOUT_DURATION,
        clock: Callable[[], datetime] = now_local,
    ):
        if not pin:
            raise ValidationError("Admin PIN is not configured")
        self._lockouts = lockouts
        self._pin_hash = generate_password_hash(pin)
        self._max_attempts = int(max_attempts)
        self._lockout_duration = lockout_duration
        self._clock = clock

    def _remaining_minutes(self, until: datetime, now: datetime) -> int:
        return max(1, math.ceil((until - now).total_seconds() / 60))

    def check_access(self, pin: str) -> bool:
        now = self._clock()
        state = self._lockouts.get_state()

        if state.lockout_until is not None and now < state.lockout_until:
            raise LockedOut(self._remaining_minutes(state.lockout_until, now))

        if pin and check_password_hash(self._pin_hash, pin):
            self._lockouts.reset()
            return True

        failed_attempts = state.failed_attempts + 1
        if failed_attempts >= self._max_attempts:
            lockout_until = now + self._lockout_duration
            self._lockouts.save_state(AdminLockoutState(failed_attempts=failed_attempts, lockout_until=lockout_until))
            minutes = int(self._lockout_duration.total_seconds() // 60)
            logger.warning(f"Admin PIN locked after {failed_attempts} failed attempts")
            raise LockedOut(minutes, f"Too many failed attempts. Account locked for {minutes} minutes.")

        self._lockouts.save_state(AdminLockoutState(failed_attempts=failed_attempts, lockout_until=state.lockout_until))
        raise InvalidPin(self._max_attempts - failed_attempts)

    def state(self) -> AdminLockoutState:
        return self._lockouts.get_state()
