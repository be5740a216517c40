"""Custom exception classes for text storage."""
from typing import Optional


class TextStoreError(Exception):
    """Base exception for text storage errors."""
    pass


class ReadError(TextStoreError):
    """Raised when a source file cannot be read."""
    pass


class DocumentEmptyError(ReadError):
    """Raised when a source file has no content."""
    pass


class ParseError(TextStoreError):
    """Raised when the markup reader cannot interpret its input."""
    pass


class BackendError(TextStoreError):
    """Base exception for failures reported by the search backend."""
    pass


class StorageError(BackendError):
    """Raised when writing a record to the backend fails."""

    def __init__(self, message: str, collection: Optional[str] = None):
        super().__init__(message)
        self.collection = collection


class RecordConflictError(StorageError):
    """Raised when a create-only write targets an id that already exists."""
    pass


class QueryError(BackendError):
    """Raised when a backend search fails."""
    pass


class UnknownRecordKindError(TextStoreError):
    """Raised when a search hit carries a record type no collection knows about."""

    def __init__(self, kind: str):
        super().__init__(f"Unknown result type! '{kind}'.")
        self.kind = kind


class RecordNotFoundError(TextStoreError):
    """Raised when a requested record does not exist."""
    pass
