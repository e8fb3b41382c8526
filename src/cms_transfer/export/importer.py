"""Content import from a portable ZIP archive.

This module upserts groups and elements described by an archive's
``content.json`` manifest, attaches bundled images and restores focal
points. Problems with individual records are collected in the result;
only problems with the archive as a whole abort the import.
"""

import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..exceptions import ArchiveError, FormatError
from ..models.config import TransferConfig
from ..models.content import ContentElement, ContentGroup
from ..models.manifest import MANIFEST_FILENAME, ManifestEnvelope
from ..models.transfer_result import ImportResult
from ..protocols import ContentRepository, HasFocalPoint
from ..utils.paths import is_safe_entry_name
from .archive import ArchiveSource, archive_size, extract_archive
from .media_handler import MediaHandler

logger = logging.getLogger(__name__)

ELEMENT_FIELDS = ("content_type", "position", "text_content", "required", "image_hint")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ContentImporter:
    """Import CMS content and images from an exported archive.

    This class handles the complete import process including:
    - Archive size and entry vetting
    - Manifest validation
    - Group and element upserts that restore soft-deleted records
    - Image attachment and focal point restoration

    Importing the same archive twice creates nothing new the second time.

    Example:
        >>> from cms_transfer import ContentImporter
        >>>
        >>> importer = ContentImporter(repository)
        >>> result = importer.import_archive("cms_content_20260101_120000.zip")
        >>> if not result.success:
        ...     for error in result.errors:
        ...         print(error)
    """

    def __init__(self, repository: ContentRepository, config: TransferConfig | None = None):
        """Initialize importer with a content repository.

        Args:
            repository: Target store for groups, elements and images
            config: Transfer settings (defaults are used if None)
        """
        self.repository = repository
        self.config = config or TransferConfig()

    def import_archive(self, zip_source: ArchiveSource) -> ImportResult:
        """Import an archive into the repository.

        Args:
            zip_source: Archive path, bytes or binary file-like object

        Returns:
            ImportResult with counts and per-item errors

        Raises:
            ArchiveError: If the archive is too large or not a valid ZIP
            FormatError: If content.json is missing, invalid JSON, or lacks
                ``version``/``groups``

        Example:
            >>> with open("export.zip", "rb") as f:
            ...     result = importer.import_archive(f)
            >>> print(f"{result.created} created, {result.updated} updated")
        """
        self._check_size(zip_source)

        result = ImportResult()
        extract_dir = self._create_scratch_dir()
        try:
            extract_archive(
                zip_source,
                extract_dir,
                max_entries=self.config.max_entries,
                result=result,
            )
            manifest = self._parse_manifest(extract_dir)

            for group_data in manifest.groups:
                self._process_group(group_data, extract_dir, result)

            self.repository.clear_request_cache()
        finally:
            self._remove_scratch_dir(extract_dir)

        logger.info(
            f"Import finished: {result.created} created, {result.updated} updated, "
            f"{result.restored} restored, {len(result.errors)} errors"
        )
        return result

    def _check_size(self, zip_source: ArchiveSource) -> None:
        try:
            size = archive_size(zip_source)
        except OSError as e:
            raise ArchiveError(f"Cannot read ZIP file: {e}") from e
        if size > self.config.max_zip_size:
            limit_mb = self.config.max_zip_size // (1024 * 1024)
            raise ArchiveError(
                f"ZIP file exceeds maximum size of {limit_mb}MB",
                details={"size": size, "max_size": self.config.max_zip_size},
            )

    def _create_scratch_dir(self) -> Path:
        parent = self.config.scratch_dir
        if parent is not None:
            parent.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix="cms_import_", dir=parent))

    @staticmethod
    def _remove_scratch_dir(extract_dir: Path) -> None:
        """Remove the scratch directory, logging instead of raising on failure."""
        if not extract_dir.exists():
            return
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(3),
                wait=wait_fixed(0.1),
                retry=retry_if_exception_type(OSError),
                reraise=True,
            ):
                with attempt:
                    shutil.rmtree(extract_dir)
        except OSError as e:
            logger.warning(f"Failed to clean up import scratch directory {extract_dir}: {e}")

    @staticmethod
    def _parse_manifest(extract_dir: Path) -> ManifestEnvelope:
        """Load and validate content.json from the extraction directory.

        Raises:
            FormatError: If the manifest is missing, unparseable or malformed
        """
        manifest_path = extract_dir / MANIFEST_FILENAME
        if not manifest_path.is_file():
            raise FormatError(f"ZIP does not contain {MANIFEST_FILENAME}")

        try:
            document = json.loads(manifest_path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise FormatError(f"Invalid JSON in {MANIFEST_FILENAME}: {e}") from e

        if not ManifestEnvelope.is_valid_document(document):
            raise FormatError(
                f"Invalid {MANIFEST_FILENAME} schema: missing 'version' or 'groups'"
            )
        return ManifestEnvelope.model_validate(document)

    def _process_group(self, group_data: Any, extract_dir: Path, result: ImportResult) -> None:
        name = group_data.get("name") if isinstance(group_data, dict) else None
        if _is_blank(name):
            result.add_error("Group missing name, skipped")
            return

        try:
            group = self._upsert_group(name, group_data.get("description"), result)

            elements = group_data.get("elements") or []
            if not isinstance(elements, list):
                raise FormatError("'elements' must be a list")
            for element_data in elements:
                self._process_element(group, element_data, extract_dir, result)
        except Exception as e:
            logger.debug(f"Group '{name}' failed: {e}")
            result.add_error(f"Group '{name}': {e}")

    def _upsert_group(
        self, name: str, description: str | None, result: ImportResult
    ) -> ContentGroup:
        group = self.repository.find_group_by_name(name, include_deleted=True)
        if group is None:
            group = self.repository.create_group(name, description)
            result.created += 1
            return group

        if group.is_deleted:
            group = self.repository.restore_group(group)
            result.restored += 1
            return self.repository.update_group(group, {"description": description})

        group = self.repository.update_group(group, {"description": description})
        result.updated += 1
        return group

    def _process_element(
        self,
        group: ContentGroup,
        element_data: Any,
        extract_dir: Path,
        result: ImportResult,
    ) -> None:
        name = element_data.get("name") if isinstance(element_data, dict) else None
        if _is_blank(name):
            result.add_error(f"Element missing name in group '{group.name}', skipped")
            return

        try:
            attrs = {field: element_data.get(field) for field in ELEMENT_FIELDS}
            if "required" not in element_data:
                attrs["required"] = False
            attrs = {key: value for key, value in attrs.items() if value is not None}

            element = self._upsert_element(group, name, attrs, result)

            image_path = element_data.get("image_path")
            if not _is_blank(image_path):
                self._attach_image(group, element, image_path, extract_dir, result)

            focal_data = element_data.get("focal_point")
            if isinstance(focal_data, dict):
                self._restore_focal_point(element, focal_data, result)
        except Exception as e:
            logger.debug(f"Element '{name}' in '{group.name}' failed: {e}")
            result.add_error(f"Element '{name}' in '{group.name}': {e}")

    def _upsert_element(
        self,
        group: ContentGroup,
        name: str,
        attrs: dict[str, Any],
        result: ImportResult,
    ) -> ContentElement:
        element = self.repository.find_element_by_group_and_name(
            group, name, include_deleted=True
        )
        if element is None:
            element = self.repository.create_element(group, {**attrs, "name": name})
            result.created += 1
            return element

        # A restore stays counted even if the following update is rejected
        if element.is_deleted:
            element = self.repository.restore_element(element)
            result.restored += 1
            return self.repository.update_element(element, attrs)

        element = self.repository.update_element(element, attrs)
        result.updated += 1
        return element

    def _attach_image(
        self,
        group: ContentGroup,
        element: ContentElement,
        image_path: Any,
        extract_dir: Path,
        result: ImportResult,
    ) -> None:
        missing = f"Image file missing for '{element.name}' in '{group.name}': {image_path}"
        if not isinstance(image_path, str) or not is_safe_entry_name(image_path):
            result.add_error(missing)
            return

        file_path = MediaHandler.locate_extracted_file(extract_dir, image_path)
        if file_path is None:
            result.add_error(missing)
            return

        content_type = MediaHandler.content_type_for(file_path)
        if content_type is None:
            extension = file_path.suffix.lower()
            result.add_error(
                f"Unsupported image type '{extension}' for '{element.name}' in '{group.name}'"
            )
            return

        if not element.is_image:
            result.add_error(
                f"Cannot attach image to text element '{element.name}' in '{group.name}'"
            )
            return

        self.repository.attach_image(
            element, MediaHandler.read_image(file_path), file_path.name, content_type
        )
        logger.debug(f"Attached {image_path} to '{element.name}' in '{group.name}'")

    def _restore_focal_point(
        self, element: ContentElement, focal_data: dict[str, Any], result: ImportResult
    ) -> None:
        if not isinstance(element, HasFocalPoint):
            return
        try:
            self.repository.set_focal_point(element, focal_data.get("x"), focal_data.get("y"))
        except Exception as e:
            result.add_error(f"Focal point for '{element.name}': {e}")
