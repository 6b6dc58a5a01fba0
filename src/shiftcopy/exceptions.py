"""Domain-specific exception types."""


class ShiftCopyError(Exception):
    """Base error for the shift copy engine."""


class InvalidIntervalError(ShiftCopyError, ValueError):
    """Raised when a time or interval cannot be constructed (e.g. end <= start)."""


class RepositoryError(ShiftCopyError):
    """Raised by shift repositories when a read or write fails."""


class SnapshotError(RepositoryError):
    """Raised when a JSON shift snapshot cannot be read or written."""


class SessionStateError(ShiftCopyError):
    """Raised when a copy session operation is invoked in the wrong state."""
