"""In-memory content repository.

Implements the full ContentRepository protocol over plain dictionaries,
including the uniqueness rules a database would enforce:

- group names are unique across active and soft-deleted groups
- element names are unique per group among active elements
- version numbers are unique and increasing per element

Returned entities are the stored instances, so callers observe later
writes through references they already hold.
"""

import itertools
import logging
import uuid
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..cache.content_cache import ContentCache
from ..exceptions import ConflictError, MediaError, NotFoundError, ValidationError
from ..models.content import (
    ContentElement,
    ContentElementVersion,
    ContentGroup,
    FocalPoint,
    ImageAttachment,
    utc_now,
)
from ..protocols import BlobStore, HasFocalPoint
from ..storage.blob_store import InMemoryBlobStore
from ..versioning import next_version_number, should_record_version
from . import validation

logger = logging.getLogger(__name__)


def element_sort_key(element: ContentElement) -> tuple[bool, int, float, int]:
    """Natural element order: position ascending (nulls last), newest first."""
    return (
        element.position is None,
        element.position or 0,
        -element.created_at.timestamp(),
        -element.id,
    )


class InMemoryContentRepository:
    """Dictionary-backed ContentRepository.

    Example:
        >>> repo = InMemoryContentRepository()
        >>> group = repo.create_group("Headers")
        >>> repo.create_element(group, {"name": "H1", "content_type": "text", "text_content": "Hi"})
    """

    def __init__(
        self,
        blob_store: BlobStore | None = None,
        cache: ContentCache | None = None,
    ) -> None:
        """Initialize an empty store.

        Args:
            blob_store: Storage for image bytes (in-memory by default)
            cache: Content cache cleared by clear_request_cache()
        """
        self.blob_store: BlobStore = blob_store or InMemoryBlobStore()
        self.cache = cache or ContentCache()
        self._groups: dict[int, ContentGroup] = {}
        self._elements: dict[int, ContentElement] = {}
        self._versions: dict[int, list[ContentElementVersion]] = {}
        self._focal_points: dict[tuple[str, int, str], FocalPoint] = {}
        self._group_ids = itertools.count(1)
        self._element_ids = itertools.count(1)
        self._version_ids = itertools.count(1)

    # Groups

    def find_group_by_name(
        self, name: str, *, include_deleted: bool = False
    ) -> ContentGroup | None:
        for group in self._groups.values():
            if group.name == name and (include_deleted or not group.is_deleted):
                return group
        return None

    def get_group(self, group_id: int) -> ContentGroup:
        try:
            return self._groups[group_id]
        except KeyError:
            raise NotFoundError(f"Content group {group_id} not found") from None

    def create_group(
        self,
        name: str,
        description: str | None = None,
        author_id: int | None = None,
    ) -> ContentGroup:
        name = validation.validate_name(name)
        if self.find_group_by_name(name, include_deleted=True) is not None:
            raise ConflictError(
                f"Name '{name}' has already been taken", details={"field": "name"}
            )

        group = ContentGroup(
            id=next(self._group_ids),
            name=name,
            description=description,
            author_id=author_id,
        )
        self._groups[group.id] = group
        logger.debug(f"Created content group '{name}' (id={group.id})")
        return group

    def update_group(self, group: ContentGroup, attrs: Mapping[str, Any]) -> ContentGroup:
        stored = self.get_group(group.id)
        values = validation.prepare_group_update(attrs)

        new_name = values.get("name")
        if new_name is not None and new_name != stored.name:
            if self.find_group_by_name(new_name, include_deleted=True) is not None:
                raise ConflictError(
                    f"Name '{new_name}' has already been taken", details={"field": "name"}
                )

        for key, value in values.items():
            setattr(stored, key, value)
        stored.updated_at = utc_now()
        return stored

    def restore_group(self, group: ContentGroup) -> ContentGroup:
        stored = self.get_group(group.id)
        stored.deleted_at = None
        stored.updated_at = utc_now()
        return stored

    def soft_delete_group(self, group: ContentGroup) -> ContentGroup:
        """Soft-delete a group and its active elements.

        Raises:
            ValidationError: If the group holds an active required element
        """
        stored = self.get_group(group.id)
        active = self._active_elements_of(stored.id)
        if any(element.required for element in active):
            raise ValidationError("Cannot delete group containing required content elements")

        now = utc_now()
        for element in active:
            element.deleted_at = now
        stored.deleted_at = now
        return stored

    def destroy_group(self, group: ContentGroup) -> None:
        """Permanently delete a group with its elements, versions and blobs."""
        stored = self.get_group(group.id)
        for element in [e for e in self._elements.values() if e.group_id == stored.id]:
            self.destroy_element(element)
        del self._groups[stored.id]

    def list_active_groups_ordered(self) -> list[ContentGroup]:
        active = [group for group in self._groups.values() if not group.is_deleted]
        return sorted(active, key=lambda group: group.name)

    # Elements

    def find_element_by_group_and_name(
        self, group: ContentGroup, name: str, *, include_deleted: bool = False
    ) -> ContentElement | None:
        matches = [
            element
            for element in self._elements.values()
            if element.group_id == group.id and element.name == name
        ]
        for element in matches:
            if not element.is_deleted:
                return element
        if include_deleted and matches:
            return max(matches, key=lambda element: element.id)
        return None

    def get_element(self, element_id: int) -> ContentElement:
        try:
            return self._elements[element_id]
        except KeyError:
            raise NotFoundError(f"Content element {element_id} not found") from None

    def create_element(self, group: ContentGroup, attrs: Mapping[str, Any]) -> ContentElement:
        stored_group = self.get_group(group.id)
        values = validation.prepare_element_create(attrs)
        self._check_element_name_free(stored_group.id, values["name"])

        element = ContentElement(id=next(self._element_ids), group_id=stored_group.id, **values)
        self._elements[element.id] = element
        self._versions[element.id] = []
        logger.debug(f"Created content element '{element.name}' in '{stored_group.name}'")
        return element

    def update_element(
        self, element: ContentElement, attrs: Mapping[str, Any]
    ) -> ContentElement:
        """Apply attribute changes, snapshotting the previous text if it changed."""
        stored = self.get_element(element.id)
        changes = validation.prepare_element_update(stored, attrs)
        if not changes:
            return stored

        if "name" in changes and not stored.is_deleted:
            self._check_element_name_free(stored.group_id, changes["name"], exclude_id=stored.id)

        # Validate the whole updated record before touching the stored one
        try:
            updated = ContentElement.model_validate({**stored.model_dump(), **changes})
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid content element: {e}") from e

        previous_text = stored.text_content
        if should_record_version(previous_text, updated.text_content, persisted=True):
            self._record_version(stored, previous_text)

        for key in changes:
            setattr(stored, key, getattr(updated, key))
        stored.updated_at = utc_now()
        return stored

    def restore_element(self, element: ContentElement) -> ContentElement:
        """Clear the soft-delete marker.

        Raises:
            ConflictError: If an active element already uses the name
        """
        stored = self.get_element(element.id)
        if stored.is_deleted:
            self._check_element_name_free(stored.group_id, stored.name, exclude_id=stored.id)
        stored.deleted_at = None
        stored.updated_at = utc_now()
        return stored

    def soft_delete_element(self, element: ContentElement) -> ContentElement:
        stored = self.get_element(element.id)
        if stored.required:
            raise ValidationError("Cannot delete a required content element")
        stored.deleted_at = utc_now()
        return stored

    def destroy_element(self, element: ContentElement) -> None:
        """Permanently delete an element with its versions, blob and focal points."""
        stored = self.get_element(element.id)
        if stored.image is not None:
            self.blob_store.delete(stored.image.key)
        owner_type, owner_id = stored.focal_owner_key
        for key in [k for k in self._focal_points if k[:2] == (owner_type, owner_id)]:
            del self._focal_points[key]
        self._versions.pop(stored.id, None)
        del self._elements[stored.id]

    def list_active_elements_ordered(self, group: ContentGroup) -> list[ContentElement]:
        return sorted(self._active_elements_of(group.id), key=element_sort_key)

    # Versions

    def list_versions(self, element: ContentElement) -> list[ContentElementVersion]:
        versions = self._versions.get(element.id, [])
        return sorted(versions, key=lambda version: version.version_number, reverse=True)

    def restore_to_version(
        self, element: ContentElement, version_number: int
    ) -> ContentElement:
        for version in self._versions.get(element.id, []):
            if version.version_number == version_number:
                return self.update_element(element, {"text_content": version.text_content})
        raise NotFoundError(
            f"Version {version_number} not found for element '{element.name}'",
            details={"version_number": version_number},
        )

    # Images and focal points

    def attach_image(
        self, element: ContentElement, data: bytes, filename: str, content_type: str
    ) -> ContentElement:
        stored = self.get_element(element.id)
        key = uuid.uuid4().hex
        self.blob_store.put(key, data, content_type)

        previous = stored.image
        stored.image = ImageAttachment(
            key=key, filename=filename, content_type=content_type, byte_size=len(data)
        )
        stored.updated_at = utc_now()
        if previous is not None:
            self.blob_store.delete(previous.key)
        return stored

    def download_image_bytes(self, element: ContentElement) -> bytes:
        stored = self.get_element(element.id)
        if stored.image is None:
            raise MediaError(f"Element '{stored.name}' has no attached image")
        return self.blob_store.get(stored.image.key)

    def get_focal_point(
        self, owner: HasFocalPoint, attachment_name: str = "image"
    ) -> FocalPoint | None:
        return self._focal_points.get((*owner.focal_owner_key, attachment_name))

    def set_focal_point(
        self, owner: HasFocalPoint, x: float, y: float, attachment_name: str = "image"
    ) -> FocalPoint:
        if attachment_name not in owner.focal_point_attachments:
            raise ValidationError(f"Attachment '{attachment_name}' does not support focal points")
        focal_x, focal_y = validation.validate_focal_coordinates(x, y)

        owner_type, owner_id = owner.focal_owner_key
        key = (owner_type, owner_id, attachment_name)
        try:
            focal_point = self._focal_points.get(key)
            if focal_point is None:
                focal_point = FocalPoint(
                    owner_type=owner_type,
                    owner_id=owner_id,
                    attachment_name=attachment_name,
                    focal_x=focal_x,
                    focal_y=focal_y,
                )
                self._focal_points[key] = focal_point
            else:
                focal_point.focal_x = focal_x
                focal_point.focal_y = focal_y
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid focal point: {e}") from e
        return focal_point

    # Cache

    def clear_request_cache(self) -> None:
        self.cache.clear()

    # Helpers

    @property
    def group_count(self) -> int:
        return len(self._groups)

    @property
    def element_count(self) -> int:
        return len(self._elements)

    def _active_elements_of(self, group_id: int) -> list[ContentElement]:
        return [
            element
            for element in self._elements.values()
            if element.group_id == group_id and not element.is_deleted
        ]

    def _check_element_name_free(
        self, group_id: int, name: str, exclude_id: int | None = None
    ) -> None:
        for element in self._active_elements_of(group_id):
            if element.name == name and element.id != exclude_id:
                raise ConflictError(
                    f"Name '{name}' has already been taken in this group",
                    details={"field": "name"},
                )

    def _record_version(self, element: ContentElement, previous_text: str | None) -> None:
        versions = self._versions.setdefault(element.id, [])
        version = ContentElementVersion(
            id=next(self._version_ids),
            element_id=element.id,
            version_number=next_version_number(v.version_number for v in versions),
            text_content=previous_text,
            author_id=element.author_id,
        )
        versions.append(version)
        logger.debug(f"Recorded version {version.version_number} of element '{element.name}'")
