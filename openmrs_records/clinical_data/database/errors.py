"""Exceptions raised by the local records store."""


class RecordsError(Exception):
    """Base class for local records store errors."""
    pass


class StorageError(RecordsError):
    """Raised when the embedded database rejects or fails an operation."""
    pass
