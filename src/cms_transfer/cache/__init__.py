"""Caching utilities for cms-transfer."""

from .content_cache import ContentCache

__all__ = ["ContentCache"]
