"""Custom exception classes for serial allocation errors."""

from __future__ import annotations


class SerialError(Exception):
    """Base serialization error.

    ``retryable`` tells the caller whether the whole allocation can be
    attempted again from scratch. ``drawn``/``serial`` are set when the
    error left a number drawn from the queue but not cached.
    """

    retryable: bool = False
    drawn: int | None = None
    serial: str | None = None

    def __init__(self, message: str = "Serialization failed") -> None:
        super().__init__(message)


class NotFoundError(SerialError):
    """The part has no provisioned queue entry."""


class StorageUnavailableError(SerialError):
    retryable = True


class LockTimeoutError(StorageUnavailableError):
    pass


class ConflictingReservationError(SerialError):
    """The cache already holds a different number for the part."""

    def __init__(self, part: str, reserved: int, requested: int) -> None:
        super().__init__(
            f"Part {part} already has serial {reserved} reserved (requested {requested})"
        )
        self.part = part
        self.reserved = reserved
        self.requested = requested
