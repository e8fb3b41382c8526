"""Tests for manifest and result models."""

import json

import pytest

from cms_transfer.models import (
    ExportResult,
    FocalPointData,
    ImportResult,
    Manifest,
    ManifestElement,
    ManifestEnvelope,
    ManifestGroup,
)


def test_element_omits_unset_optional_keys() -> None:
    element = ManifestElement(name="H1", content_type="text", text_content="Hi")

    assert element.to_manifest_dict() == {
        "name": "H1",
        "content_type": "text",
        "position": None,
        "text_content": "Hi",
        "required": False,
        "image_hint": None,
    }


def test_element_with_image_and_focal_point() -> None:
    element = ManifestElement(
        name="Logo",
        content_type="image",
        image_path="images/branding/logo.png",
        focal_point=FocalPointData(x=0.1, y=0.9),
    )

    data = element.to_manifest_dict()

    assert data["image_path"] == "images/branding/logo.png"
    assert data["focal_point"] == {"x": 0.1, "y": 0.9}


def test_manifest_to_json() -> None:
    manifest = Manifest(
        exported_at="2026-01-01T00:00:00+00:00",
        source="CMS Transfer",
        groups=[
            ManifestGroup(
                name="Grüße",
                elements=[ManifestElement(name="H1", content_type="text", text_content="Hi")],
            )
        ],
    )

    text = manifest.to_json()

    assert "Grüße" in text
    assert json.loads(text)["version"] == 1
    assert manifest.element_count == 1


@pytest.mark.parametrize(
    ("document", "valid"),
    [
        ({"version": 1, "groups": []}, True),
        ({"version": "1.0", "groups": [{"name": "x"}]}, True),
        ({"version": None, "groups": []}, False),
        ({"version": "  ", "groups": []}, False),
        ({"version": 1, "groups": None}, False),
        ({"groups": []}, False),
        ("content", False),
    ],
)
def test_envelope_validation(document: object, valid: bool) -> None:
    assert ManifestEnvelope.is_valid_document(document) is valid


def test_import_result_derived_fields() -> None:
    result = ImportResult(created=2, updated=1, restored=1)

    assert result.total_processed == 4
    assert result.success is True

    result.add_error("Group missing name, skipped")
    assert result.success is False


def test_export_result_byte_size() -> None:
    result = ExportResult(zip_bytes=b"12345", filename="cms_content_20260101_000000.zip")

    assert result.byte_size == 5
    assert "zip_bytes" not in repr(result)
