from __future__ import annotations

from typing import Protocol

from ..common.datetime_utils import from_epoch_millis, to_epoch_millis
from ..core.constants import FAILED_ATTEMPTS_KEY, LOCKOUT_TIME_KEY
from ..storage.backend import KeyValueBackend
from .model import AdminLockoutState


class LockoutRepository(Protocol):
    def get_state(self) -> AdminLockoutState:
        raise NotImplementedError

    def save_state(self, state: AdminLockoutState) -> None:
        raise NotImplementedError

    def reset(self) -> None:
        raise NotImplementedError


class KeyValueLockoutRepository(LockoutRepository):
    """Keeps the lockout state next to the records, in the same backend."""

    def __init__(self, backend: KeyValueBackend):
        self._backend = backend

    def get_state(self) -> AdminLockoutState:
        attempts = self._backend.get(FAILED_ATTEMPTS_KEY)
        lockout = self._backend.get(LOCKOUT_TIME_KEY)
        try:
            failed_attempts = int(attempts or 0)
        except ValueError:
            failed_attempts = 0
        try:
            lockout_until = from_epoch_millis(int(lockout)) if lockout else None
        except ValueError:
            lockout_until = None
        return AdminLockoutState(failed_attempts=failed_attempts, lockout_until=lockout_until)

    def save_state(self, state: AdminLockoutState) -> None:
        self._backend.set(FAILED_ATTEMPTS_KEY, str(int(state.failed_attempts)))
        if state.lockout_until is None:
            self._backend.delete(LOCKOUT_TIME_KEY)
        else:
            self._backend.set(LOCKOUT_TIME_KEY, str(to_epoch_millis(state.lockout_until)))

    def reset(self) -> None:
        self._backend.delete(FAILED_ATTEMPTS_KEY)
        self._backend.delete(LOCKOUT_TIME_KEY)
