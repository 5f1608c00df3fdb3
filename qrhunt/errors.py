"""Exception types raised by the qrhunt services."""

from __future__ import annotations


class QRHuntError(Exception):
    """Base class for qrhunt service errors."""


class DataUnavailableError(QRHuntError):
    """The store could not be read (unreachable, missing schema, ...)."""


class MalformedRecordError(QRHuntError, ValueError):
    """A single user or scan record could not be interpreted."""


class PersistenceFailureError(QRHuntError):
    """A batch write failed and none of its records were applied."""


class ConcurrentDrawingError(PersistenceFailureError):
    """Another drawing committed between this drawing's read and its commit.

    The round was rolled back; the caller may retry with fresh inputs.
    """


__all__ = [
    "ConcurrentDrawingError",
    "DataUnavailableError",
    "MalformedRecordError",
    "PersistenceFailureError",
    "QRHuntError",
]
