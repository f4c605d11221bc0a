"""Error types raised by the storage layer."""


class LibAIError(Exception):
    """Base class for all LibAI storage errors."""


class StorageIOError(LibAIError):
    """The storage directory could not be created or accessed."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class StoreError(LibAIError):
    """The key-value engine could not be opened or used.

    Raised when the store is locked by another process, its files are
    corrupt, a namespace cannot be opened, or a closed handle is used.
    """


class RepoError(LibAIError):
    """Base class for repository operation failures."""


class SerializeError(RepoError):
    """An entity could not be encoded to bytes."""


class DeserializeError(RepoError):
    """Stored bytes do not match the expected entity schema."""


class RepoStoreError(RepoError):
    """The engine failed during a put, get, delete, iterate or flush."""
