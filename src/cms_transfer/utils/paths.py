"""Archive path utilities.

Centralizes how names become archive paths on export and how archive
entry names are vetted on import.
"""

import re
from pathlib import PurePosixPath

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

# Entries created by macOS Finder when zipping a folder
_MAC_ARTIFACT_PREFIXES = ("__MACOSX", ".")
_MAC_ARTIFACT_NAMES = frozenset({".DS_Store"})


def sanitize_path_segment(name: str) -> str:
    """Turn a display name into a lower-case, hyphenated path segment.

    Runs of characters outside ``a-z0-9`` collapse to a single hyphen and
    leading/trailing hyphens are trimmed.

    Examples:
        >>> sanitize_path_segment("Homepage Hero!")
        'homepage-hero'
        >>> sanitize_path_segment("  Footer / Links  ")
        'footer-links'
        >>> sanitize_path_segment("H1")
        'h1'
    """
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


def image_entry_path(group_name: str, element_name: str, extension: str) -> str:
    """Archive path of an element image.

    Examples:
        >>> image_entry_path("Headers", "Hero Image", "PNG")
        'images/headers/hero-image.png'
    """
    return (
        f"images/{sanitize_path_segment(group_name)}/"
        f"{sanitize_path_segment(element_name)}.{extension.lower()}"
    )


def is_safe_entry_name(name: str) -> bool:
    """Check that an archive path cannot escape the extraction directory.

    Rejects any ``..`` and absolute paths (POSIX or Windows style).

    Examples:
        >>> is_safe_entry_name("images/headers/logo.png")
        True
        >>> is_safe_entry_name("../../evil.json")
        False
        >>> is_safe_entry_name("/etc/passwd")
        False
    """
    if not name or ".." in name:
        return False
    if name.startswith(("/", "\\")):
        return False
    return not re.match(r"^[A-Za-z]:", name)


def is_mac_artifact(name: str) -> bool:
    """Check for resource-fork and Finder metadata entries.

    Examples:
        >>> is_mac_artifact("__MACOSX/images/._logo.png")
        True
        >>> is_mac_artifact("images/.DS_Store")
        True
        >>> is_mac_artifact("content.json")
        False
    """
    if name.startswith(_MAC_ARTIFACT_PREFIXES):
        return True
    return PurePosixPath(name).name in _MAC_ARTIFACT_NAMES
