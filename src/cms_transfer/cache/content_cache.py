"""Request-level cache for content lookups.

Rendering a page typically reads many elements by ``(group, element)``
name. ContentCache memoizes those lookups against a repository until it is
cleared, which the importer triggers after every import.
"""

import logging
from typing import TYPE_CHECKING

from ..models.content import ContentElement

if TYPE_CHECKING:
    from ..protocols import ContentRepository

logger = logging.getLogger(__name__)


class ContentCache:
    """Memoize active element lookups by group and element name.

    Misses are not cached, so content created later is found on the next
    lookup without clearing.

    Example:
        >>> cache = ContentCache()
        >>> cache.value(repository, "Headers", "H1")
        'Hi'
        >>> cache.clear()
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], ContentElement] = {}
        self._fetch_count = 0

    def fetch(
        self,
        repository: "ContentRepository",
        group_name: str,
        element_name: str,
    ) -> ContentElement | None:
        """Return the active element, reading the repository on a miss."""
        key = (group_name, element_name)
        cached = self._entries.get(key)
        if cached is not None:
            return cached

        self._fetch_count += 1
        group = repository.find_group_by_name(group_name)
        if group is None:
            return None

        element = repository.find_element_by_group_and_name(group, element_name)
        if element is not None:
            self._entries[key] = element
        return element

    def value(
        self,
        repository: "ContentRepository",
        group_name: str,
        element_name: str,
    ) -> str | None:
        """Text of a text element, or the image filename of an image element."""
        element = self.fetch(repository, group_name, element_name)
        if element is None:
            return None
        if element.is_text:
            return element.text_content
        return element.image.filename if element.image else None

    def clear(self) -> None:
        if self._entries:
            logger.debug(f"Clearing {len(self._entries)} cached content lookups")
        self._entries = {}

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @property
    def cache_size(self) -> int:
        return len(self._entries)

    @property
    def fetch_count(self) -> int:
        """Number of lookups that went to the repository."""
        return self._fetch_count
