"""Data models for cms-transfer."""

from .config import RetryConfig, TransferConfig
from .content import (
    ContentElement,
    ContentElementVersion,
    ContentGroup,
    ContentType,
    FocalPoint,
    ImageAttachment,
    LifecycleState,
)
from .manifest import (
    MANIFEST_FILENAME,
    MANIFEST_VERSION,
    FocalPointData,
    Manifest,
    ManifestElement,
    ManifestEnvelope,
    ManifestGroup,
)
from .transfer_result import ExportResult, ImportResult

__all__ = [
    # Configuration
    "TransferConfig",
    "RetryConfig",
    # Content
    "ContentGroup",
    "ContentElement",
    "ContentElementVersion",
    "ContentType",
    "FocalPoint",
    "ImageAttachment",
    "LifecycleState",
    # Manifest
    "MANIFEST_FILENAME",
    "MANIFEST_VERSION",
    "Manifest",
    "ManifestGroup",
    "ManifestElement",
    "ManifestEnvelope",
    "FocalPointData",
    # Results
    "ExportResult",
    "ImportResult",
]
