"""Exceptions raised by the note storage layer."""


class StorageError(Exception):
    """Base class for storage backend failures."""


class StorageReadError(StorageError):
    """The persisted collection could not be read or decoded."""


class StorageWriteError(StorageError):
    """The collection could not be written back to the backend."""
