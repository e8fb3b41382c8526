"""Utility modules for cms-transfer.

This package contains helper utilities including:
- Archive path sanitization
- Archive entry vetting
"""

from .paths import (
    image_entry_path,
    is_mac_artifact,
    is_safe_entry_name,
    sanitize_path_segment,
)

__all__ = [
    "image_entry_path",
    "is_mac_artifact",
    "is_safe_entry_name",
    "sanitize_path_segment",
]
