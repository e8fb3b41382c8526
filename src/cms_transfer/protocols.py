"""Protocols for dependency injection.

The exporter and importer never touch a database directly; they talk to a
ContentRepository. Any object with matching methods can be injected, which
keeps the services testable against in-memory fakes.
"""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from .models.content import (
    ContentElement,
    ContentElementVersion,
    ContentGroup,
    FocalPoint,
)


@runtime_checkable
class HasFocalPoint(Protocol):
    """Capability of entities whose image attachments carry focal points.

    Focal points are addressed by ``(*focal_owner_key, attachment_name)``.
    """

    @property
    def focal_owner_key(self) -> tuple[str, int]:
        """``(owner_type, owner_id)`` half of the focal point key."""
        ...

    @property
    def focal_point_attachments(self) -> tuple[str, ...]:
        """Attachment names that support focal points."""
        ...


@runtime_checkable
class BlobStore(Protocol):
    """Key-addressed storage for attachment bytes."""

    def put(self, key: str, data: bytes, content_type: str) -> None:
        """Store bytes under a key, replacing any previous value."""
        ...

    def get(self, key: str) -> bytes:
        """Return the bytes stored under a key.

        Raises:
            StorageError: If the key is unknown or the store fails
        """
        ...

    def delete(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        ...


@runtime_checkable
class ContentRepository(Protocol):
    """Persistence API consumed by the content exporter and importer.

    Lookups default to active records; pass ``include_deleted=True`` to
    search soft-deleted rows as well. Writes raise ValidationError or
    ConflictError (both PersistenceError) when a record is rejected.
    """

    # Groups

    def find_group_by_name(
        self, name: str, *, include_deleted: bool = False
    ) -> ContentGroup | None:
        ...

    def create_group(self, name: str, description: str | None = None) -> ContentGroup:
        ...

    def update_group(self, group: ContentGroup, attrs: Mapping[str, Any]) -> ContentGroup:
        ...

    def restore_group(self, group: ContentGroup) -> ContentGroup:
        ...

    def soft_delete_group(self, group: ContentGroup) -> ContentGroup:
        ...

    def list_active_groups_ordered(self) -> list[ContentGroup]:
        """Active groups ordered by name."""
        ...

    # Elements

    def find_element_by_group_and_name(
        self, group: ContentGroup, name: str, *, include_deleted: bool = False
    ) -> ContentElement | None:
        ...

    def create_element(self, group: ContentGroup, attrs: Mapping[str, Any]) -> ContentElement:
        ...

    def update_element(
        self, element: ContentElement, attrs: Mapping[str, Any]
    ) -> ContentElement:
        ...

    def restore_element(self, element: ContentElement) -> ContentElement:
        ...

    def soft_delete_element(self, element: ContentElement) -> ContentElement:
        ...

    def list_active_elements_ordered(self, group: ContentGroup) -> list[ContentElement]:
        """Active elements of a group by position (nulls last), newest first."""
        ...

    # Versions

    def list_versions(self, element: ContentElement) -> list[ContentElementVersion]:
        """Versions of an element, newest first."""
        ...

    def restore_to_version(
        self, element: ContentElement, version_number: int
    ) -> ContentElement:
        ...

    # Images and focal points

    def attach_image(
        self, element: ContentElement, data: bytes, filename: str, content_type: str
    ) -> ContentElement:
        ...

    def download_image_bytes(self, element: ContentElement) -> bytes:
        ...

    def get_focal_point(
        self, owner: HasFocalPoint, attachment_name: str = "image"
    ) -> FocalPoint | None:
        ...

    def set_focal_point(
        self, owner: HasFocalPoint, x: float, y: float, attachment_name: str = "image"
    ) -> FocalPoint:
        ...

    # Cache

    def clear_request_cache(self) -> None:
        ...
