"""
Exception types raised by the pulse storage layer.

Scans over many files skip records that raise InvalidFormat or
StorageIOError. Targeted operations let them propagate.
"""


class PulseError(Exception):
    """Base class for all pulse storage errors."""


class NotFound(PulseError):
    """The requested record or identity does not exist."""


class InvalidFormat(PulseError):
    """A record file has a missing or corrupt metadata block."""


class PathViolation(PulseError):
    """A read path resolves outside the configured store roots."""


class StorageIOError(PulseError):
    """A filesystem read, write or directory creation failed."""


class RemoteError(PulseError):
    """The remote sync API failed or returned a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
