"""Result models returned by the content exporter and importer."""

from pydantic import BaseModel, Field


class ExportResult(BaseModel):
    """Outcome of a content export.

    Attributes:
        zip_bytes: The complete ZIP archive
        filename: Suggested download name (``cms_content_<timestamp>.zip``)
        group_count: Number of groups written to the manifest
        element_count: Number of elements written to the manifest
    """

    zip_bytes: bytes = Field(repr=False)
    filename: str
    group_count: int = 0
    element_count: int = 0

    @property
    def byte_size(self) -> int:
        return len(self.zip_bytes)


class ImportResult(BaseModel):
    """Outcome of a content import.

    Counts combine groups and elements. ``errors`` holds one human readable
    message per skipped or failed item, in processing order.

    Example:
        >>> result = ImportResult()
        >>> result.created += 2
        >>> result.success
        True
    """

    created: int = 0
    updated: int = 0
    restored: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return self.created + self.updated + self.restored

    @property
    def success(self) -> bool:
        return not self.errors

    def add_error(self, message: str) -> None:
        self.errors.append(message)
