"""cms-transfer: Portable export and import of CMS content.

This package moves content groups, elements, images and focal points
between CMS installations as a single ZIP archive, including:
- Deterministic export of all active content
- Idempotent import that restores soft-deleted records
- In-memory and SQLAlchemy content repositories
- In-memory and HTTP blob stores for image data
- Type-safe data models with Pydantic
"""

from .__version__ import __version__
from .cache import ContentCache
from .config_factory import ConfigFactory, load_config
from .exceptions import (
    ArchiveError,
    CmsTransferError,
    ConfigurationError,
    ConflictError,
    FormatError,
    ImportExportError,
    MediaError,
    NotFoundError,
    PersistenceError,
    StorageConnectionError,
    StorageError,
    StorageServerError,
    ValidationError,
)
from .export import ContentExporter, ContentImporter
from .models import (
    ContentElement,
    ContentElementVersion,
    ContentGroup,
    ContentType,
    ExportResult,
    FocalPoint,
    ImportResult,
    RetryConfig,
    TransferConfig,
)
from .protocols import BlobStore, ContentRepository, HasFocalPoint
from .repository import InMemoryContentRepository, SqlAlchemyContentRepository
from .storage import HttpBlobStore, InMemoryBlobStore

__all__ = [
    "__version__",
    # Export/Import
    "ContentExporter",
    "ContentImporter",
    "ExportResult",
    "ImportResult",
    # Configuration
    "TransferConfig",
    "RetryConfig",
    "ConfigFactory",
    "load_config",
    # Content model
    "ContentGroup",
    "ContentElement",
    "ContentElementVersion",
    "ContentType",
    "FocalPoint",
    # Repositories and storage
    "InMemoryContentRepository",
    "SqlAlchemyContentRepository",
    "InMemoryBlobStore",
    "HttpBlobStore",
    "ContentCache",
    # Protocols (for dependency injection)
    "ContentRepository",
    "BlobStore",
    "HasFocalPoint",
    # Exceptions
    "CmsTransferError",
    "ConfigurationError",
    "ImportExportError",
    "ArchiveError",
    "FormatError",
    "PersistenceError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "MediaError",
    "StorageError",
    "StorageConnectionError",
    "StorageServerError",
]
