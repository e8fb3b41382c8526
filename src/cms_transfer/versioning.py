"""Version bookkeeping for element text changes.

Repositories call these helpers inside their update path: when an already
persisted element's text changes, the previous text is stored as a new
ContentElementVersion with the next version number.
"""

from collections.abc import Iterable


def should_record_version(
    previous_text: str | None,
    new_text: str | None,
    *,
    persisted: bool,
) -> bool:
    """Decide whether an update must snapshot the previous text.

    Args:
        previous_text: Stored text before the update
        new_text: Text after the update
        persisted: Whether the element existed before this write

    Returns:
        True only for an existing element whose text actually changed

    Example:
        >>> should_record_version("Hi", "Hello", persisted=True)
        True
        >>> should_record_version("Hi", "Hi", persisted=True)
        False
        >>> should_record_version(None, "Hi", persisted=False)
        False
    """
    if not persisted:
        return False
    return previous_text != new_text


def next_version_number(existing: Iterable[int]) -> int:
    """Next version number after the highest existing one.

    Numbers are never reused, so gaps left by other writers are skipped
    rather than filled.

    Example:
        >>> next_version_number([])
        1
        >>> next_version_number([1, 2, 5])
        6
    """
    return max(existing, default=0) + 1
