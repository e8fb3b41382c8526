"""Content export to a portable ZIP archive.

This module serializes all active content groups and elements into a
``content.json`` manifest and bundles attached images alongside it.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

from ..exceptions import ImportExportError
from ..models.config import TransferConfig
from ..models.content import ContentElement, ContentGroup
from ..models.manifest import FocalPointData, Manifest, ManifestElement, ManifestGroup
from ..models.transfer_result import ExportResult
from ..protocols import ContentRepository
from .archive import write_archive
from .media_handler import MediaHandler

logger = logging.getLogger(__name__)

FILENAME_FORMAT = "cms_content_%Y%m%d_%H%M%S.zip"


class ContentExporter:
    """Export CMS content and images to a ZIP archive.

    This class handles the complete export process including:
    - Reading active groups and elements in display order
    - Building the content.json manifest
    - Downloading attached images into the archive

    Example:
        >>> from cms_transfer import ContentExporter, InMemoryContentRepository
        >>>
        >>> exporter = ContentExporter(repository)
        >>> result = exporter.export()
        >>> ContentExporter.save_to_file(result, "backups/")
    """

    def __init__(self, repository: ContentRepository, config: TransferConfig | None = None):
        """Initialize exporter with a content repository.

        Args:
            repository: Source of groups, elements and image bytes
            config: Transfer settings (defaults are used if None)
        """
        self.repository = repository
        self.config = config or TransferConfig()

    def export(self) -> ExportResult:
        """Export all active content.

        Returns:
            ExportResult with the archive bytes and counts

        Raises:
            ImportExportError: If any group, element or image cannot be read

        Example:
            >>> result = exporter.export()
            >>> print(f"Exported {result.element_count} elements to {result.filename}")
        """
        try:
            now = datetime.now(timezone.utc)
            images: list[tuple[str, bytes]] = []
            manifest = self.build_manifest(exported_at=now, images=images)
            zip_bytes = write_archive(manifest.to_json(), images)
        except Exception as e:
            raise ImportExportError(f"Export failed: {e}") from e

        result = ExportResult(
            zip_bytes=zip_bytes,
            filename=now.strftime(FILENAME_FORMAT),
            group_count=len(manifest.groups),
            element_count=manifest.element_count,
        )
        logger.info(
            f"Exported {result.group_count} groups, {result.element_count} elements "
            f"and {len(images)} images ({result.byte_size} bytes)"
        )
        return result

    def build_manifest(
        self,
        *,
        exported_at: datetime | None = None,
        images: list[tuple[str, bytes]] | None = None,
    ) -> Manifest:
        """Build the manifest for all active content.

        Args:
            exported_at: Export timestamp (now if None)
            images: If given, ``(image_path, data)`` pairs for every image
                referenced by the manifest are appended to it

        Returns:
            The manifest document
        """
        exported_at = exported_at or datetime.now(timezone.utc)
        taken: set[str] = set()
        groups = [
            self._build_group(group, taken, images)
            for group in self.repository.list_active_groups_ordered()
        ]
        return Manifest(
            exported_at=exported_at.isoformat(),
            source=self.config.source,
            groups=groups,
        )

    @staticmethod
    def save_to_file(result: ExportResult, directory: str | Path) -> Path:
        """Write an export archive to disk under its generated filename.

        Args:
            result: Export result to save
            directory: Target directory (created if missing)

        Returns:
            Path of the written archive

        Example:
            >>> path = ContentExporter.save_to_file(result, "backups")
        """
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)
        target = path / result.filename
        target.write_bytes(result.zip_bytes)

        logger.info(f"Export saved to {target}")
        return target

    def _build_group(
        self,
        group: ContentGroup,
        taken: set[str],
        images: list[tuple[str, bytes]] | None,
    ) -> ManifestGroup:
        elements = [
            self._build_element(group, element, taken, images)
            for element in self.repository.list_active_elements_ordered(group)
        ]
        return ManifestGroup(name=group.name, description=group.description, elements=elements)

    def _build_element(
        self,
        group: ContentGroup,
        element: ContentElement,
        taken: set[str],
        images: list[tuple[str, bytes]] | None,
    ) -> ManifestElement:
        record = ManifestElement(
            name=element.name,
            content_type=element.content_type,
            position=element.position,
            text_content=element.text_content,
            required=element.required,
            image_hint=element.image_hint,
        )
        if not element.is_image:
            return record

        image_path = MediaHandler.build_image_path(group.name, element, taken)
        if image_path is not None:
            record.image_path = image_path
            if images is not None:
                images.append((image_path, self.repository.download_image_bytes(element)))

        focal_point = self.repository.get_focal_point(element)
        if focal_point is not None:
            record.focal_point = FocalPointData(x=focal_point.focal_x, y=focal_point.focal_y)
        return record
