from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class DuplicateAttendance(ValidationError):
    """Raised when a (prefect number, role, date) triple is already recorded."""


class NotFound(DomainError):
    """Raised when a referenced record id does not exist."""


class InvalidFormat(DomainError):
    """Raised when a backup payload cannot be parsed or lacks a records list."""


class StorageError(DomainError):
    """Base exception for persistence failures."""


class StorageLimitExceeded(StorageError):
    """Raised when a serialized payload is larger than the storage limit."""


class UnderlyingWriteFailure(StorageError):
    """Raised when the host storage rejects a write."""


class QuotaExceeded(UnderlyingWriteFailure):
    """Raised when the host storage is out of space."""


class AuthenticationError(DomainError):
    """Raised when admin credentials are rejected."""


class InvalidPin(AuthenticationError):
    def __init__(self, remaining_attempts: int):
        self.remaining_attempts = remaining_attempts
        noun = "attempt" if remaining_attempts == 1 else "attempts"
        super().__init__(f"Invalid PIN. {remaining_attempts} {noun} remaining.")


class LockedOut(AuthenticationError):
    def __init__(self, remaining_minutes: int, message: str | None = None):
        self.remaining_minutes = remaining_minutes
        super().__init__(message or f"Account is locked. Please try again in {remaining_minutes} minutes.")


class IntegrityMismatch(UserWarning):
    """Warning emitted when stored records no longer match their fingerprint."""
