"""Record validation shared by repository implementations.

Both repositories run the same model rules before writing, so the importer
sees identical ValidationError messages regardless of the backend.
"""

from collections.abc import Mapping
from typing import Any

from ..exceptions import ValidationError
from ..models.content import ContentElement, ContentType

GROUP_ATTRIBUTES = frozenset({"name", "description", "author_id"})
ELEMENT_ATTRIBUTES = frozenset(
    {"name", "content_type", "text_content", "position", "required", "image_hint", "author_id"}
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def filter_attributes(attrs: Mapping[str, Any], allowed: frozenset[str]) -> dict[str, Any]:
    """Keep only writable attributes.

    Raises:
        ValidationError: If an unknown attribute is passed
    """
    unknown = sorted(set(attrs) - allowed)
    if unknown:
        raise ValidationError(
            f"Unknown attribute(s): {', '.join(unknown)}", details={"attributes": unknown}
        )
    return dict(attrs)


def validate_name(name: Any) -> str:
    if _is_blank(name):
        raise ValidationError("Name can't be blank", details={"field": "name"})
    return str(name)


def coerce_content_type(value: Any) -> ContentType:
    """Parse a content type value.

    Raises:
        ValidationError: If the value is missing or not ``text``/``image``
    """
    if isinstance(value, ContentType):
        return value
    try:
        return ContentType(value)
    except ValueError:
        allowed = ", ".join(ct.value for ct in ContentType)
        raise ValidationError(
            f"Content type must be one of: {allowed}",
            details={"field": "content_type", "value": value},
        ) from None


def validate_element_fields(content_type: ContentType, text_content: Any) -> None:
    """Check rules that depend on the content type."""
    if content_type is ContentType.TEXT and _is_blank(text_content):
        raise ValidationError(
            "Text content can't be blank", details={"field": "text_content"}
        )


def validate_optional_text(field: str, value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    label = field.replace("_", " ").capitalize()
    raise ValidationError(f"{label} must be a string", details={"field": field, "value": value})


def validate_position(position: Any) -> int | None:
    if position is None:
        return None
    if isinstance(position, bool) or not isinstance(position, int):
        try:
            return int(position)
        except (TypeError, ValueError):
            raise ValidationError(
                "Position must be an integer", details={"field": "position", "value": position}
            ) from None
    return position


def prepare_element_create(attrs: Mapping[str, Any]) -> dict[str, Any]:
    """Validate and normalize attributes for a new element."""
    values = filter_attributes(attrs, ELEMENT_ATTRIBUTES)
    values["name"] = validate_name(values.get("name"))
    if "content_type" not in values or values["content_type"] is None:
        raise ValidationError("Content type can't be blank", details={"field": "content_type"})
    values["content_type"] = coerce_content_type(values["content_type"])
    values["position"] = validate_position(values.get("position"))
    values["required"] = bool(values.get("required", False))
    for field in ("text_content", "image_hint"):
        values[field] = validate_optional_text(field, values.get(field))
    validate_element_fields(values["content_type"], values.get("text_content"))
    return values


def prepare_element_update(element: ContentElement, attrs: Mapping[str, Any]) -> dict[str, Any]:
    """Validate attribute changes for an existing element.

    Returns only the attributes whose values differ from the stored ones.

    Raises:
        ValidationError: If the content type would change, or the resulting
            record breaks a model rule
    """
    values = filter_attributes(attrs, ELEMENT_ATTRIBUTES)

    if "content_type" in values:
        content_type = coerce_content_type(values["content_type"])
        if content_type is not element.content_type:
            raise ValidationError(
                f"Content type cannot be changed from '{element.content_type.value}' "
                f"to '{content_type.value}'",
                details={"field": "content_type"},
            )
        values["content_type"] = content_type
    if "name" in values:
        values["name"] = validate_name(values["name"])
    if "position" in values:
        values["position"] = validate_position(values["position"])
    if "required" in values:
        values["required"] = bool(values["required"])
    for field in ("text_content", "image_hint"):
        if field in values:
            values[field] = validate_optional_text(field, values[field])

    text_content = values.get("text_content", element.text_content)
    validate_element_fields(element.content_type, text_content)

    return {key: value for key, value in values.items() if getattr(element, key) != value}


def prepare_group_update(attrs: Mapping[str, Any]) -> dict[str, Any]:
    values = filter_attributes(attrs, GROUP_ATTRIBUTES)
    if "name" in values:
        values["name"] = validate_name(values["name"])
    return values


def validate_focal_coordinates(x: Any, y: Any) -> tuple[float, float]:
    """Check focal coordinates are numbers within 0..1."""
    for axis, value in (("x", x), ("y", y)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(
                f"Focal {axis} must be a number", details={"field": f"focal_{axis}"}
            )
        if not 0.0 <= value <= 1.0:
            raise ValidationError(
                f"Focal {axis} must be between 0 and 1", details={"field": f"focal_{axis}"}
            )
    return float(x), float(y)
