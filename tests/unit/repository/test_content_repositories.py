"""Behavior shared by every ContentRepository implementation."""

from typing import Any

import pytest

from cms_transfer import (
    ConflictError,
    ContentCache,
    ContentType,
    MediaError,
    NotFoundError,
    ValidationError,
)
from cms_transfer.protocols import ContentRepository


@pytest.fixture
def repo(repository: Any) -> Any:
    """Each repository backend, over its default in-memory blob store."""
    return repository


def _text(name: str, text: str = "text", **extra: Any) -> dict[str, Any]:
    return {"name": name, "content_type": "text", "text_content": text, **extra}


def test_implements_protocol(repo: Any) -> None:
    assert isinstance(repo, ContentRepository)


# Groups


def test_create_and_find_group(repo: Any) -> None:
    """Test a created group can be found by name."""
    created = repo.create_group("Headers", "Site headers", author_id=7)

    found = repo.find_group_by_name("Headers")

    assert found is not None
    assert found.id == created.id
    assert found.description == "Site headers"
    assert found.author_id == 7
    assert repo.find_group_by_name("Missing") is None


def test_group_names_are_unique_including_deleted(repo: Any) -> None:
    """Test a soft-deleted group still reserves its name."""
    group = repo.create_group("Headers")
    repo.soft_delete_group(group)

    with pytest.raises(ConflictError, match="has already been taken"):
        repo.create_group("Headers")

    assert repo.find_group_by_name("Headers") is None
    assert repo.find_group_by_name("Headers", include_deleted=True).is_deleted


def test_blank_group_name_is_invalid(repo: Any) -> None:
    with pytest.raises(ValidationError, match="Name can't be blank"):
        repo.create_group("  ")


def test_update_and_restore_group(repo: Any) -> None:
    """Test group updates and restore after soft delete."""
    group = repo.create_group("Headers")
    group = repo.update_group(group, {"description": "Top of page"})
    assert group.description == "Top of page"

    group = repo.soft_delete_group(group)
    assert group.is_deleted

    group = repo.restore_group(group)
    assert not group.is_deleted
    assert repo.find_group_by_name("Headers").description == "Top of page"


def test_soft_delete_group_cascades_to_elements(repo: Any) -> None:
    """Test deleting a group soft-deletes its active elements."""
    group = repo.create_group("Headers")
    repo.create_element(group, _text("H1"))

    repo.soft_delete_group(group)

    assert repo.find_element_by_group_and_name(group, "H1") is None
    assert repo.find_element_by_group_and_name(group, "H1", include_deleted=True).is_deleted


def test_group_with_required_element_cannot_be_deleted(repo: Any) -> None:
    group = repo.create_group("Headers")
    repo.create_element(group, _text("H1", required=True))

    with pytest.raises(ValidationError, match="required content elements"):
        repo.soft_delete_group(group)

    assert repo.find_group_by_name("Headers") is not None


def test_groups_are_listed_by_name(repo: Any) -> None:
    for name in ("Footers", "Branding", "Headers"):
        repo.create_group(name)
    repo.soft_delete_group(repo.find_group_by_name("Footers"))

    names = [group.name for group in repo.list_active_groups_ordered()]

    assert names == ["Branding", "Headers"]


# Elements


def test_create_element_defaults(repo: Any) -> None:
    group = repo.create_group("Headers")

    element = repo.create_element(group, _text("H1", "Hi"))

    assert element.group_id == group.id
    assert element.content_type is ContentType.TEXT
    assert element.required is False
    assert element.position is None


def test_element_names_are_unique_among_active_rows(repo: Any) -> None:
    """Test the per-group name rule ignores soft-deleted rows."""
    group = repo.create_group("Headers")
    other = repo.create_group("Footers")
    first = repo.create_element(group, _text("H1", "first"))

    with pytest.raises(ConflictError):
        repo.create_element(group, _text("H1", "again"))

    repo.create_element(other, _text("H1", "elsewhere"))
    repo.soft_delete_element(first)
    second = repo.create_element(group, _text("H1", "second"))

    found = repo.find_element_by_group_and_name(group, "H1", include_deleted=True)
    assert found.id == second.id
    assert found.text_content == "second"


def test_restore_conflicts_with_active_duplicate(repo: Any) -> None:
    group = repo.create_group("Headers")
    old = repo.create_element(group, _text("H1", "old"))
    repo.soft_delete_element(old)
    repo.create_element(group, _text("H1", "new"))

    with pytest.raises(ConflictError):
        repo.restore_element(old)


def test_required_element_cannot_be_deleted(repo: Any) -> None:
    group = repo.create_group("Headers")
    element = repo.create_element(group, _text("H1", required=True))

    with pytest.raises(ValidationError, match="Cannot delete a required content element"):
        repo.soft_delete_element(element)


def test_text_element_requires_text(repo: Any) -> None:
    group = repo.create_group("Headers")

    with pytest.raises(ValidationError, match="Text content can't be blank"):
        repo.create_element(group, {"name": "H1", "content_type": "text"})


def test_content_type_is_immutable(repo: Any) -> None:
    group = repo.create_group("Headers")
    element = repo.create_element(group, _text("H1"))

    with pytest.raises(ValidationError, match="cannot be changed from 'text' to 'image'"):
        repo.update_element(element, {"content_type": "image"})


def test_unknown_attribute_is_rejected(repo: Any) -> None:
    group = repo.create_group("Headers")

    with pytest.raises(ValidationError, match="Unknown attribute"):
        repo.create_element(group, {**_text("H1"), "color": "red"})


def test_elements_are_listed_in_display_order(repo: Any) -> None:
    """Test position ascending with unpositioned elements last, newest first."""
    group = repo.create_group("Headers")
    repo.create_element(group, _text("Loose old"))
    repo.create_element(group, _text("Second", position=2))
    repo.create_element(group, _text("First", position=1))
    repo.create_element(group, _text("Loose new"))
    deleted = repo.create_element(group, _text("Gone", position=0))
    repo.soft_delete_element(deleted)

    names = [element.name for element in repo.list_active_elements_ordered(group)]

    assert names == ["First", "Second", "Loose new", "Loose old"]


# Versions


def test_text_change_records_version(repo: Any) -> None:
    """Test only real text changes produce versions."""
    group = repo.create_group("Headers")
    element = repo.create_element(group, _text("H1", "v1"))

    element = repo.update_element(element, {"text_content": "v2"})
    element = repo.update_element(element, {"text_content": "v2", "position": 4})
    element = repo.update_element(element, {"text_content": "v3"})

    versions = repo.list_versions(element)
    assert [v.version_number for v in versions] == [2, 1]
    assert [v.text_content for v in versions] == ["v2", "v1"]
    assert element.position == 4


def test_rejected_update_changes_nothing(repo: Any) -> None:
    """Test a bad value leaves earlier attributes and versions untouched."""
    group = repo.create_group("Headers")
    element = repo.create_element(group, _text("H1", "Hi", position=1))

    with pytest.raises(ValidationError, match="Text content must be a string"):
        repo.update_element(element, {"position": 7, "text_content": 5})

    stored = repo.find_element_by_group_and_name(group, "H1")
    assert stored.position == 1
    assert stored.text_content == "Hi"
    assert repo.list_versions(stored) == []


def test_non_string_image_hint_is_rejected(repo: Any) -> None:
    group = repo.create_group("Branding")

    with pytest.raises(ValidationError, match="Image hint must be a string"):
        repo.create_element(group, {"name": "Logo", "content_type": "image", "image_hint": 1200})


def test_restore_to_version(repo: Any) -> None:
    group = repo.create_group("Headers")
    element = repo.create_element(group, _text("H1", "v1"))
    element = repo.update_element(element, {"text_content": "v2"})

    element = repo.restore_to_version(element, 1)

    assert element.text_content == "v1"
    assert [v.text_content for v in repo.list_versions(element)] == ["v2", "v1"]

    with pytest.raises(NotFoundError):
        repo.restore_to_version(element, 99)


# Images and focal points


def test_attach_and_download_image(repo: Any) -> None:
    """Test attaching a new image replaces the stored blob."""
    group = repo.create_group("Branding")
    element = repo.create_element(group, {"name": "Logo", "content_type": "image"})

    element = repo.attach_image(element, b"first", "logo.png", "image/png")
    first_key = element.image.key
    element = repo.attach_image(element, b"second", "logo.webp", "image/webp")

    assert element.image.filename == "logo.webp"
    assert element.image.byte_size == 6
    assert repo.download_image_bytes(element) == b"second"
    assert first_key not in repo.blob_store


def test_download_without_image_raises(repo: Any) -> None:
    group = repo.create_group("Branding")
    element = repo.create_element(group, {"name": "Logo", "content_type": "image"})

    with pytest.raises(MediaError, match="has no attached image"):
        repo.download_image_bytes(element)


def test_focal_point_round_trip(repo: Any) -> None:
    group = repo.create_group("Branding")
    element = repo.create_element(group, {"name": "Logo", "content_type": "image"})
    assert repo.get_focal_point(element) is None

    repo.set_focal_point(element, 0.2, 0.8)
    repo.set_focal_point(element, 0.4, 0.6)

    focal_point = repo.get_focal_point(element)
    assert focal_point.key == ("ContentElement", element.id, "image")
    assert focal_point.to_point() == {"x": 0.4, "y": 0.6}


@pytest.mark.parametrize(
    ("x", "y", "message"),
    [
        (1.2, 0.5, "Focal x must be between 0 and 1"),
        (0.5, -0.1, "Focal y must be between 0 and 1"),
        ("left", 0.5, "Focal x must be a number"),
        (None, 0.5, "Focal x must be a number"),
    ],
)
def test_invalid_focal_point(repo: Any, x: Any, y: Any, message: str) -> None:
    group = repo.create_group("Branding")
    element = repo.create_element(group, {"name": "Logo", "content_type": "image"})

    with pytest.raises(ValidationError, match=message):
        repo.set_focal_point(element, x, y)


def test_focal_point_requires_known_attachment(repo: Any) -> None:
    group = repo.create_group("Branding")
    element = repo.create_element(group, {"name": "Logo", "content_type": "image"})

    with pytest.raises(ValidationError, match="does not support focal points"):
        repo.set_focal_point(element, 0.5, 0.5, attachment_name="thumbnail")


# Hard delete and cache


def test_destroy_group_removes_everything(repo: Any) -> None:
    group = repo.create_group("Branding")
    element = repo.create_element(group, {"name": "Logo", "content_type": "image"})
    element = repo.attach_image(element, b"data", "logo.png", "image/png")
    repo.set_focal_point(element, 0.1, 0.1)

    repo.destroy_group(group)

    assert repo.find_group_by_name("Branding", include_deleted=True) is None
    assert len(repo.blob_store) == 0
    assert repo.get_focal_point(element) is None


def test_clear_request_cache(repo: Any) -> None:
    group = repo.create_group("Headers")
    repo.create_element(group, _text("H1", "Hi"))
    cache: ContentCache = repo.cache

    assert cache.value(repo, "Headers", "H1") == "Hi"
    repo.clear_request_cache()

    assert cache.cache_size == 0
