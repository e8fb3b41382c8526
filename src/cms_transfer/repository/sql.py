"""SQLAlchemy-backed content repository.

Each repository call runs in its own transaction. Lookups happen before
writes (check-then-act), and unique constraint violations raised by the
database are translated to ConflictError so a concurrent writer that wins
a race surfaces as a per-item error rather than a crash.
"""

import logging
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..cache.content_cache import ContentCache
from ..exceptions import ConflictError, MediaError, NotFoundError, ValidationError
from ..models.content import (
    ContentElement,
    ContentElementVersion,
    ContentGroup,
    ContentType,
    FocalPoint,
    ImageAttachment,
    utc_now,
)
from ..protocols import BlobStore, HasFocalPoint
from ..storage.blob_store import InMemoryBlobStore
from ..versioning import next_version_number, should_record_version
from . import validation
from .tables import (
    Base,
    ContentElementRow,
    ContentElementVersionRow,
    ContentGroupRow,
    FocalPointRow,
)

logger = logging.getLogger(__name__)


def _to_group(row: ContentGroupRow) -> ContentGroup:
    return ContentGroup(
        id=row.id,
        name=row.name,
        description=row.description,
        author_id=row.author_id,
        deleted_at=row.deleted_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_element(row: ContentElementRow) -> ContentElement:
    image = None
    if row.image_key:
        image = ImageAttachment(
            key=row.image_key,
            filename=row.image_filename or row.image_key,
            content_type=row.image_content_type or "application/octet-stream",
            byte_size=row.image_byte_size or 0,
        )
    return ContentElement(
        id=row.id,
        group_id=row.group_id,
        name=row.name,
        content_type=ContentType(row.content_type),
        text_content=row.text_content,
        position=row.position,
        required=row.required,
        image_hint=row.image_hint,
        author_id=row.author_id,
        image=image,
        deleted_at=row.deleted_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_version(row: ContentElementVersionRow) -> ContentElementVersion:
    return ContentElementVersion(
        id=row.id,
        element_id=row.element_id,
        version_number=row.version_number,
        text_content=row.text_content,
        author_id=row.author_id,
        created_at=row.created_at,
    )


def _to_focal_point(row: FocalPointRow) -> FocalPoint:
    return FocalPoint(
        owner_type=row.owner_type,
        owner_id=row.owner_id,
        attachment_name=row.attachment_name,
        focal_x=row.focal_x,
        focal_y=row.focal_y,
        overrides=row.overrides or {},
    )


class SqlAlchemyContentRepository:
    """ContentRepository over a relational database.

    Example:
        >>> repo = SqlAlchemyContentRepository("sqlite:///cms.db")
        >>> repo.create_schema()
        >>> group = repo.create_group("Headers", "Site headers")
    """

    def __init__(
        self,
        engine: Engine | str,
        blob_store: BlobStore | None = None,
        cache: ContentCache | None = None,
    ) -> None:
        """Initialize the repository.

        Args:
            engine: SQLAlchemy engine or database URL
            blob_store: Storage for image bytes (in-memory by default)
            cache: Content cache cleared by clear_request_cache()
        """
        self.engine = create_engine(engine) if isinstance(engine, str) else engine
        self.blob_store: BlobStore = blob_store or InMemoryBlobStore()
        self.cache = cache or ContentCache()
        self._session_factory = sessionmaker(self.engine, expire_on_commit=False)

    def create_schema(self) -> None:
        """Create all content tables that do not exist yet."""
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on any error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise ConflictError(f"Uniqueness constraint violated: {e.orig}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # Groups

    def find_group_by_name(
        self, name: str, *, include_deleted: bool = False
    ) -> ContentGroup | None:
        with self._transaction() as session:
            row = self._group_row_by_name(session, name, include_deleted=include_deleted)
            return _to_group(row) if row else None

    def create_group(
        self,
        name: str,
        description: str | None = None,
        author_id: int | None = None,
    ) -> ContentGroup:
        name = validation.validate_name(name)
        with self._transaction() as session:
            if self._group_row_by_name(session, name, include_deleted=True) is not None:
                raise ConflictError(
                    f"Name '{name}' has already been taken", details={"field": "name"}
                )
            row = ContentGroupRow(name=name, description=description, author_id=author_id)
            session.add(row)
            session.flush()
            logger.debug(f"Created content group '{name}' (id={row.id})")
            return _to_group(row)

    def update_group(self, group: ContentGroup, attrs: Mapping[str, Any]) -> ContentGroup:
        values = validation.prepare_group_update(attrs)
        with self._transaction() as session:
            row = self._group_row(session, group.id)
            new_name = values.get("name")
            if new_name is not None and new_name != row.name:
                if self._group_row_by_name(session, new_name, include_deleted=True) is not None:
                    raise ConflictError(
                        f"Name '{new_name}' has already been taken", details={"field": "name"}
                    )
            for key, value in values.items():
                setattr(row, key, value)
            row.updated_at = utc_now()
            session.flush()
            return _to_group(row)

    def restore_group(self, group: ContentGroup) -> ContentGroup:
        with self._transaction() as session:
            row = self._group_row(session, group.id)
            row.deleted_at = None
            row.updated_at = utc_now()
            session.flush()
            return _to_group(row)

    def soft_delete_group(self, group: ContentGroup) -> ContentGroup:
        """Soft-delete a group and its active elements.

        Raises:
            ValidationError: If the group holds an active required element
        """
        with self._transaction() as session:
            row = self._group_row(session, group.id)
            active = session.scalars(
                select(ContentElementRow).where(
                    ContentElementRow.group_id == row.id,
                    ContentElementRow.deleted_at.is_(None),
                )
            ).all()
            if any(element.required for element in active):
                raise ValidationError(
                    "Cannot delete group containing required content elements"
                )
            now = utc_now()
            for element in active:
                element.deleted_at = now
            row.deleted_at = now
            session.flush()
            return _to_group(row)

    def destroy_group(self, group: ContentGroup) -> None:
        """Permanently delete a group with its elements, versions and blobs."""
        with self._transaction() as session:
            row = self._group_row(session, group.id)
            blob_keys = [element.image_key for element in row.elements if element.image_key]
            for element in row.elements:
                self._delete_focal_points(session, element.id)
            session.delete(row)
        for key in blob_keys:
            self.blob_store.delete(key)

    def list_active_groups_ordered(self) -> list[ContentGroup]:
        with self._transaction() as session:
            rows = session.scalars(
                select(ContentGroupRow)
                .where(ContentGroupRow.deleted_at.is_(None))
                .order_by(ContentGroupRow.name)
            ).all()
            return [_to_group(row) for row in rows]

    # Elements

    def find_element_by_group_and_name(
        self, group: ContentGroup, name: str, *, include_deleted: bool = False
    ) -> ContentElement | None:
        stmt = select(ContentElementRow).where(
            ContentElementRow.group_id == group.id,
            ContentElementRow.name == name,
        )
        if not include_deleted:
            stmt = stmt.where(ContentElementRow.deleted_at.is_(None))
        # Active row first, then the most recently created deleted one
        stmt = stmt.order_by(
            ContentElementRow.deleted_at.is_not(None), ContentElementRow.id.desc()
        )
        with self._transaction() as session:
            row = session.scalars(stmt).first()
            return _to_element(row) if row else None

    def create_element(self, group: ContentGroup, attrs: Mapping[str, Any]) -> ContentElement:
        values = validation.prepare_element_create(attrs)
        with self._transaction() as session:
            group_row = self._group_row(session, group.id)
            self._check_element_name_free(session, group_row.id, values["name"])
            row = ContentElementRow(
                group_id=group_row.id,
                name=values["name"],
                content_type=values["content_type"].value,
                text_content=values.get("text_content"),
                position=values.get("position"),
                required=values.get("required", False),
                image_hint=values.get("image_hint"),
                author_id=values.get("author_id"),
            )
            session.add(row)
            session.flush()
            logger.debug(f"Created content element '{row.name}' in '{group_row.name}'")
            return _to_element(row)

    def update_element(
        self, element: ContentElement, attrs: Mapping[str, Any]
    ) -> ContentElement:
        """Apply attribute changes, snapshotting the previous text if it changed."""
        with self._transaction() as session:
            row = self._element_row(session, element.id)
            current = _to_element(row)
            changes = validation.prepare_element_update(current, attrs)
            if not changes:
                return current

            if "name" in changes and not current.is_deleted:
                self._check_element_name_free(
                    session, row.group_id, changes["name"], exclude_id=row.id
                )

            new_text = changes.get("text_content", current.text_content)
            if should_record_version(current.text_content, new_text, persisted=True):
                self._record_version(session, row, current.text_content)

            for key, value in changes.items():
                setattr(row, key, value.value if isinstance(value, ContentType) else value)
            row.updated_at = utc_now()
            session.flush()
            return _to_element(row)

    def restore_element(self, element: ContentElement) -> ContentElement:
        """Clear the soft-delete marker.

        Raises:
            ConflictError: If an active element already uses the name
        """
        with self._transaction() as session:
            row = self._element_row(session, element.id)
            if row.deleted_at is not None:
                self._check_element_name_free(session, row.group_id, row.name, exclude_id=row.id)
            row.deleted_at = None
            row.updated_at = utc_now()
            session.flush()
            return _to_element(row)

    def soft_delete_element(self, element: ContentElement) -> ContentElement:
        with self._transaction() as session:
            row = self._element_row(session, element.id)
            if row.required:
                raise ValidationError("Cannot delete a required content element")
            row.deleted_at = utc_now()
            session.flush()
            return _to_element(row)

    def destroy_element(self, element: ContentElement) -> None:
        """Permanently delete an element with its versions, blob and focal points."""
        with self._transaction() as session:
            row = self._element_row(session, element.id)
            blob_key = row.image_key
            self._delete_focal_points(session, row.id)
            session.delete(row)
        if blob_key:
            self.blob_store.delete(blob_key)

    def list_active_elements_ordered(self, group: ContentGroup) -> list[ContentElement]:
        with self._transaction() as session:
            rows = session.scalars(
                select(ContentElementRow)
                .where(
                    ContentElementRow.group_id == group.id,
                    ContentElementRow.deleted_at.is_(None),
                )
                .order_by(
                    ContentElementRow.position.is_(None),
                    ContentElementRow.position,
                    ContentElementRow.created_at.desc(),
                    ContentElementRow.id.desc(),
                )
            ).all()
            return [_to_element(row) for row in rows]

    # Versions

    def list_versions(self, element: ContentElement) -> list[ContentElementVersion]:
        with self._transaction() as session:
            rows = session.scalars(
                select(ContentElementVersionRow)
                .where(ContentElementVersionRow.element_id == element.id)
                .order_by(ContentElementVersionRow.version_number.desc())
            ).all()
            return [_to_version(row) for row in rows]

    def restore_to_version(
        self, element: ContentElement, version_number: int
    ) -> ContentElement:
        with self._transaction() as session:
            version = session.scalars(
                select(ContentElementVersionRow).where(
                    ContentElementVersionRow.element_id == element.id,
                    ContentElementVersionRow.version_number == version_number,
                )
            ).first()
            if version is None:
                raise NotFoundError(
                    f"Version {version_number} not found for element '{element.name}'",
                    details={"version_number": version_number},
                )
            text_content = version.text_content
        return self.update_element(element, {"text_content": text_content})

    # Images and focal points

    def attach_image(
        self, element: ContentElement, data: bytes, filename: str, content_type: str
    ) -> ContentElement:
        key = uuid.uuid4().hex
        self.blob_store.put(key, data, content_type)
        try:
            with self._transaction() as session:
                row = self._element_row(session, element.id)
                previous_key = row.image_key
                row.image_key = key
                row.image_filename = filename
                row.image_content_type = content_type
                row.image_byte_size = len(data)
                row.updated_at = utc_now()
                session.flush()
                attached = _to_element(row)
        except Exception:
            self.blob_store.delete(key)
            raise

        if previous_key:
            self.blob_store.delete(previous_key)
        return attached

    def download_image_bytes(self, element: ContentElement) -> bytes:
        with self._transaction() as session:
            row = self._element_row(session, element.id)
            key = row.image_key
            name = row.name
        if not key:
            raise MediaError(f"Element '{name}' has no attached image")
        return self.blob_store.get(key)

    def get_focal_point(
        self, owner: HasFocalPoint, attachment_name: str = "image"
    ) -> FocalPoint | None:
        owner_type, owner_id = owner.focal_owner_key
        with self._transaction() as session:
            row = self._focal_point_row(session, owner_type, owner_id, attachment_name)
            return _to_focal_point(row) if row else None

    def set_focal_point(
        self, owner: HasFocalPoint, x: float, y: float, attachment_name: str = "image"
    ) -> FocalPoint:
        if attachment_name not in owner.focal_point_attachments:
            raise ValidationError(f"Attachment '{attachment_name}' does not support focal points")
        focal_x, focal_y = validation.validate_focal_coordinates(x, y)

        owner_type, owner_id = owner.focal_owner_key
        with self._transaction() as session:
            row = self._focal_point_row(session, owner_type, owner_id, attachment_name)
            if row is None:
                row = FocalPointRow(
                    owner_type=owner_type,
                    owner_id=owner_id,
                    attachment_name=attachment_name,
                    overrides={},
                )
                session.add(row)
            row.focal_x = focal_x
            row.focal_y = focal_y
            session.flush()
            return _to_focal_point(row)

    # Cache

    def clear_request_cache(self) -> None:
        self.cache.clear()

    # Counts

    @property
    def group_count(self) -> int:
        """Number of stored groups, soft-deleted ones included."""
        with self._transaction() as session:
            return session.scalar(select(func.count()).select_from(ContentGroupRow)) or 0

    @property
    def element_count(self) -> int:
        with self._transaction() as session:
            return session.scalar(select(func.count()).select_from(ContentElementRow)) or 0

    # Helpers

    @staticmethod
    def _group_row(session: Session, group_id: int) -> ContentGroupRow:
        row = session.get(ContentGroupRow, group_id)
        if row is None:
            raise NotFoundError(f"Content group {group_id} not found")
        return row

    @staticmethod
    def _element_row(session: Session, element_id: int) -> ContentElementRow:
        row = session.get(ContentElementRow, element_id)
        if row is None:
            raise NotFoundError(f"Content element {element_id} not found")
        return row

    @staticmethod
    def _group_row_by_name(
        session: Session, name: str, *, include_deleted: bool
    ) -> ContentGroupRow | None:
        stmt = select(ContentGroupRow).where(ContentGroupRow.name == name)
        if not include_deleted:
            stmt = stmt.where(ContentGroupRow.deleted_at.is_(None))
        return session.scalars(stmt).first()

    @staticmethod
    def _focal_point_row(
        session: Session, owner_type: str, owner_id: int, attachment_name: str
    ) -> FocalPointRow | None:
        return session.scalars(
            select(FocalPointRow).where(
                FocalPointRow.owner_type == owner_type,
                FocalPointRow.owner_id == owner_id,
                FocalPointRow.attachment_name == attachment_name,
            )
        ).first()

    @staticmethod
    def _delete_focal_points(session: Session, element_id: int) -> None:
        rows = session.scalars(
            select(FocalPointRow).where(
                FocalPointRow.owner_type == "ContentElement",
                FocalPointRow.owner_id == element_id,
            )
        ).all()
        for row in rows:
            session.delete(row)

    @staticmethod
    def _check_element_name_free(
        session: Session, group_id: int, name: str, exclude_id: int | None = None
    ) -> None:
        stmt = select(ContentElementRow.id).where(
            ContentElementRow.group_id == group_id,
            ContentElementRow.name == name,
            ContentElementRow.deleted_at.is_(None),
        )
        if exclude_id is not None:
            stmt = stmt.where(ContentElementRow.id != exclude_id)
        if session.scalars(stmt).first() is not None:
            raise ConflictError(
                f"Name '{name}' has already been taken in this group",
                details={"field": "name"},
            )

    @staticmethod
    def _record_version(
        session: Session, row: ContentElementRow, previous_text: str | None
    ) -> None:
        numbers = session.scalars(
            select(ContentElementVersionRow.version_number).where(
                ContentElementVersionRow.element_id == row.id
            )
        ).all()
        version_number = next_version_number(numbers)
        session.add(
            ContentElementVersionRow(
                element_id=row.id,
                version_number=version_number,
                text_content=previous_text,
                author_id=row.author_id,
            )
        )
        logger.debug(f"Recorded version {version_number} of element '{row.name}'")
