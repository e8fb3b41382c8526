"""Attachment blob storage backends."""

from .blob_store import HttpBlobStore, InMemoryBlobStore

__all__ = ["HttpBlobStore", "InMemoryBlobStore"]
