"""SQLAlchemy table mappings for the content model.

Uniqueness lives in the schema so that concurrent writers that both pass
the repository's check-then-act lookups still cannot create duplicates:

- ``content_groups.name`` is unique across all rows, soft-deleted included
- ``(group_id, name)`` is unique among rows where ``deleted_at IS NULL``
- ``(element_id, version_number)`` is unique
- ``(owner_type, owner_id, attachment_name)`` is unique for focal points
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from ..models.content import utc_now


class Base(DeclarativeBase):
    pass


class ContentGroupRow(Base):
    __tablename__ = "content_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    author_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    elements: Mapped[list["ContentElementRow"]] = relationship(
        back_populates="group", cascade="all, delete-orphan"
    )


class ContentElementRow(Base):
    __tablename__ = "content_elements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    group_id: Mapped[int] = mapped_column(
        ForeignKey("content_groups.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    text_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    image_hint: Mapped[str | None] = mapped_column(String(255), nullable=True)
    author_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    image_key: Mapped[str | None] = mapped_column(String(64), nullable=True)
    image_filename: Mapped[str | None] = mapped_column(String(255), nullable=True)
    image_content_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    image_byte_size: Mapped[int | None] = mapped_column(Integer, nullable=True)

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    group: Mapped[ContentGroupRow] = relationship(back_populates="elements")
    versions: Mapped[list["ContentElementVersionRow"]] = relationship(
        back_populates="element", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index(
            "ix_content_elements_unique_name_per_group",
            "group_id",
            "name",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )


class ContentElementVersionRow(Base):
    __tablename__ = "content_element_versions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    element_id: Mapped[int] = mapped_column(
        ForeignKey("content_elements.id"), nullable=False, index=True
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    text_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    author_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    element: Mapped[ContentElementRow] = relationship(back_populates="versions")

    __table_args__ = (
        UniqueConstraint("element_id", "version_number", name="uq_element_version_number"),
    )


class FocalPointRow(Base):
    __tablename__ = "focal_points"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_type: Mapped[str] = mapped_column(String(100), nullable=False)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False)
    attachment_name: Mapped[str] = mapped_column(String(100), nullable=False)
    focal_x: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)
    focal_y: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)
    overrides: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        UniqueConstraint(
            "owner_type", "owner_id", "attachment_name", name="uq_focal_point_owner_attachment"
        ),
    )
