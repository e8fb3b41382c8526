"""Exception hierarchy for cms-transfer.

All exceptions raised by this package derive from CmsTransferError so
callers can catch everything with a single except clause, or target a
specific failure tier:

- ImportExportError: fatal transfer failures (the whole call aborts)
- PersistenceError: a repository rejected a single write
- MediaError: an image could not be attached
- StorageError: the blob store could not be reached or answered badly
"""

from typing import Any


class CmsTransferError(Exception):
    """Base exception for all cms-transfer errors.

    Args:
        message: Human readable error message
        details: Optional structured context (field names, keys, status codes)
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigurationError(CmsTransferError):
    """Raised when transfer settings are invalid."""


# Transfer tier


class ImportExportError(CmsTransferError):
    """Raised when an export or import fails as a whole."""


class ArchiveError(ImportExportError):
    """Raised when a ZIP archive is oversized or not a readable container."""


class FormatError(ImportExportError):
    """Raised when content.json is missing, unparseable or has the wrong shape."""


# Persistence tier


class PersistenceError(CmsTransferError):
    """Raised when the content store rejects an operation."""


class ValidationError(PersistenceError):
    """Raised when a record fails model validation."""


class ConflictError(PersistenceError):
    """Raised when a write would violate a uniqueness constraint."""


class NotFoundError(PersistenceError):
    """Raised when a referenced record does not exist."""


# Media and storage tier


class MediaError(CmsTransferError):
    """Raised when an image cannot be attached or read."""


class StorageError(CmsTransferError):
    """Raised when a blob store operation fails."""


class StorageConnectionError(StorageError):
    """Raised when the blob store cannot be reached."""


class StorageServerError(StorageError):
    """Raised when the blob store answers with a 5xx status.

    Args:
        message: Error message
        status_code: HTTP status code returned by the store
        details: Optional structured context
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status_code = status_code
