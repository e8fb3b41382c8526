"""Manifest models for the content.json archive entry.

The manifest is the wire format shared by the exporter and the importer::

    {
      "version": 1,
      "exported_at": "2026-01-01T12:00:00+00:00",
      "source": "CMS Transfer",
      "groups": [
        {"name": "Headers", "description": null, "elements": [...]}
      ]
    }

Export builds the strict models below. Import only validates the envelope
strictly (``version`` and ``groups`` must be present); group and element
records stay plain dicts so that a malformed record becomes a per-item
error instead of aborting the import.
"""

import json
from typing import Any

from pydantic import BaseModel, Field

from .content import ContentType

MANIFEST_VERSION = 1
MANIFEST_FILENAME = "content.json"


class FocalPointData(BaseModel):
    """Focal point coordinates as stored in the manifest."""

    x: float = Field(ge=0.0, le=1.0)
    y: float = Field(ge=0.0, le=1.0)


class ManifestElement(BaseModel):
    """One element record of a manifest group."""

    name: str
    content_type: ContentType
    position: int | None = None
    text_content: str | None = None
    required: bool = False
    image_hint: str | None = None
    image_path: str | None = None
    focal_point: FocalPointData | None = None

    def to_manifest_dict(self) -> dict[str, Any]:
        """Serialize for content.json.

        Optional keys (``image_path``, ``focal_point``) are omitted when
        unset; the remaining keys are always present, ``null`` included.
        """
        data = self.model_dump(mode="json", exclude={"image_path", "focal_point"})
        if self.image_path is not None:
            data["image_path"] = self.image_path
        if self.focal_point is not None:
            data["focal_point"] = self.focal_point.model_dump(mode="json")
        return data


class ManifestGroup(BaseModel):
    """One group record of a manifest."""

    name: str
    description: str | None = None
    elements: list[ManifestElement] = Field(default_factory=list)

    def to_manifest_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "elements": [element.to_manifest_dict() for element in self.elements],
        }


class Manifest(BaseModel):
    """Complete manifest document written by the exporter."""

    version: int = MANIFEST_VERSION
    exported_at: str
    source: str
    groups: list[ManifestGroup] = Field(default_factory=list)

    def to_manifest_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "exported_at": self.exported_at,
            "source": self.source,
            "groups": [group.to_manifest_dict() for group in self.groups],
        }

    def to_json(self) -> str:
        """Pretty-printed JSON for the content.json entry."""
        return json.dumps(self.to_manifest_dict(), indent=2, ensure_ascii=False)

    @property
    def element_count(self) -> int:
        return sum(len(group.elements) for group in self.groups)


class ManifestEnvelope(BaseModel):
    """Top-level shape an imported content.json must have.

    ``version`` must be present and non-blank; ``groups`` must be a list.
    Group records are kept as raw values for per-item validation.
    """

    version: Any
    groups: list[Any]
    exported_at: Any = None
    source: Any = None

    @classmethod
    def is_valid_document(cls, document: Any) -> bool:
        """Check the envelope shape of a parsed JSON document."""
        if not isinstance(document, dict):
            return False
        version = document.get("version")
        if version is None or (isinstance(version, str) and not version.strip()):
            return False
        return isinstance(document.get("groups"), list)
