"""Content model entities.

Groups own elements, elements own versions, an attached image and focal
points. Entities are plain pydantic models; repositories are responsible
for persistence, uniqueness and versioning.
"""

from datetime import datetime, timezone
from enum import Enum
from pathlib import PurePosixPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

IMAGE_ATTACHMENT = "image"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class ContentType(str, Enum):
    """Kind of content an element holds. Fixed at creation."""

    TEXT = "text"
    IMAGE = "image"


class LifecycleState(str, Enum):
    """Soft-delete lifecycle of a group or element."""

    ACTIVE = "active"
    DELETED = "deleted"


class SoftDeletable(BaseModel):
    """Soft-delete marker shared by groups and elements.

    The nullable ``deleted_at`` timestamp is the stored form; ``state`` is
    the tagged view callers should branch on.
    """

    model_config = ConfigDict(validate_assignment=True)

    deleted_at: datetime | None = None

    @property
    def state(self) -> LifecycleState:
        """Current lifecycle state."""
        return LifecycleState.DELETED if self.deleted_at is not None else LifecycleState.ACTIVE

    @property
    def is_deleted(self) -> bool:
        """Whether the record is soft-deleted."""
        return self.state is LifecycleState.DELETED


class ImageAttachment(BaseModel):
    """Reference to an image blob attached to an element.

    Attributes:
        key: Blob store key holding the bytes
        filename: Original filename including extension
        content_type: MIME type (e.g. ``image/png``)
        byte_size: Size of the blob in bytes
    """

    model_config = ConfigDict(frozen=True)

    key: str
    filename: str
    content_type: str
    byte_size: int = Field(0, ge=0)

    @property
    def extension(self) -> str:
        """Lower-cased filename extension without the dot (may be empty)."""
        return PurePosixPath(self.filename).suffix.lstrip(".").lower()


class ContentGroup(SoftDeletable):
    """Named collection of content elements (e.g. "Headers")."""

    id: int
    name: str = Field(min_length=1)
    description: str | None = None
    author_id: int | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ContentElement(SoftDeletable):
    """A single piece of text or image content belonging to one group.

    Elements implement the HasFocalPoint capability for their ``image``
    attachment.
    """

    id: int
    group_id: int
    name: str = Field(min_length=1)
    content_type: ContentType
    text_content: str | None = None
    position: int | None = None
    required: bool = False
    image_hint: str | None = None
    author_id: int | None = None
    image: ImageAttachment | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_text(self) -> bool:
        return self.content_type is ContentType.TEXT

    @property
    def is_image(self) -> bool:
        return self.content_type is ContentType.IMAGE

    @property
    def has_image(self) -> bool:
        """Whether an image blob is attached."""
        return self.image is not None

    @property
    def focal_owner_key(self) -> tuple[str, int]:
        """Owner half of the focal point composite key."""
        return ("ContentElement", self.id)

    @property
    def focal_point_attachments(self) -> tuple[str, ...]:
        """Attachments of this element that carry focal points."""
        return (IMAGE_ATTACHMENT,)


class ContentElementVersion(BaseModel):
    """Immutable snapshot of an element's previous text value."""

    model_config = ConfigDict(frozen=True)

    id: int
    element_id: int
    version_number: int = Field(gt=0)
    text_content: str | None = None
    author_id: int | None = None
    created_at: datetime = Field(default_factory=utc_now)


OVERRIDE_TYPES = ("focal", "crop", "upload")


class FocalPoint(BaseModel):
    """Normalized focal point of an image attachment.

    Addressed by ``(owner_type, owner_id, attachment_name)``. Coordinates are
    fractions of the image width/height; (0.5, 0.5) is the center.
    """

    model_config = ConfigDict(validate_assignment=True)

    owner_type: str
    owner_id: int
    attachment_name: str = Field(min_length=1)
    focal_x: float = Field(0.5, ge=0.0, le=1.0)
    focal_y: float = Field(0.5, ge=0.0, le=1.0)
    overrides: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @property
    def key(self) -> tuple[str, int, str]:
        return (self.owner_type, self.owner_id, self.attachment_name)

    def to_point(self) -> dict[str, float]:
        """Focal point as ``{"x": ..., "y": ...}``."""
        return {"x": self.focal_x, "y": self.focal_y}

    def to_css(self) -> str:
        """CSS ``object-position`` declaration for this focal point."""
        return (
            f"object-position: {round(self.focal_x * 100, 1)}% "
            f"{round(self.focal_y * 100, 1)}%"
        )

    def is_offset_from_center(self) -> bool:
        return abs(self.focal_x - 0.5) > 0.001 or abs(self.focal_y - 0.5) > 0.001

    def override_for(self, context: str) -> dict[str, Any] | None:
        return self.overrides.get(context)

    def set_override(self, context: str, data: dict[str, Any]) -> None:
        """Set a per-context override (``focal``, ``crop`` or ``upload``).

        Raises:
            ValueError: If the override type is unknown
        """
        if data.get("type") not in OVERRIDE_TYPES:
            raise ValueError(f"Invalid override type for context {context}: {data.get('type')}")
        self.overrides = {**self.overrides, context: data}

    def clear_override(self, context: str) -> None:
        """Revert a context to the plain focal point."""
        self.set_override(context, {"type": "focal"})
