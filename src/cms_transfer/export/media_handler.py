"""Image file handling for export and import operations.

Maps file extensions to MIME types, derives archive entry paths for
attached images and reads extracted image files back during import.
"""

import logging
from pathlib import Path

from ..models.content import ContentElement, ImageAttachment
from ..utils.paths import image_entry_path

logger = logging.getLogger(__name__)


class MediaHandler:
    """Handles image operations for export/import.

    This class provides utilities for:
    - Resolving MIME types from file extensions and back
    - Building unique archive paths for element images
    - Locating and reading extracted image files
    """

    SUPPORTED_IMAGE_TYPES: dict[str, str] = {
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".png": "image/png",
        ".gif": "image/gif",
        ".webp": "image/webp",
    }

    _EXTENSIONS_BY_TYPE: dict[str, str] = {
        "image/jpeg": "jpg",
        "image/png": "png",
        "image/gif": "gif",
        "image/webp": "webp",
    }

    @staticmethod
    def content_type_for(path: str | Path) -> str | None:
        """Return the MIME type for a supported image path.

        Args:
            path: File path or name (only the extension is inspected)

        Returns:
            MIME type, or None if the extension is not supported

        Example:
            >>> MediaHandler.content_type_for("images/hero/banner.JPG")
            'image/jpeg'
            >>> MediaHandler.content_type_for("notes.txt") is None
            True
        """
        return MediaHandler.SUPPORTED_IMAGE_TYPES.get(Path(path).suffix.lower())

    @staticmethod
    def extension_for(image: ImageAttachment) -> str:
        """Extension to use for an exported image.

        The stored filename wins; the MIME type is the fallback for files
        uploaded without an extension.
        """
        if image.extension:
            return image.extension
        return MediaHandler._EXTENSIONS_BY_TYPE.get(image.content_type, "bin")

    @staticmethod
    def build_image_path(
        group_name: str,
        element: ContentElement,
        taken: set[str],
    ) -> str | None:
        """Archive path for an element's image, unique within ``taken``.

        Args:
            group_name: Name of the owning group
            element: Element whose image is exported
            taken: Paths already assigned in this export (updated in place)

        Returns:
            Entry path such as ``images/headers/hero.png``, or None if the
            element has no attached image

        Example:
            >>> taken = set()
            >>> MediaHandler.build_image_path("Headers", hero, taken)
            'images/headers/hero.png'
            >>> MediaHandler.build_image_path("Headers", hero_copy, taken)
            'images/headers/hero-2.png'
        """
        if not element.is_image or element.image is None:
            return None

        extension = MediaHandler.extension_for(element.image)
        path = image_entry_path(group_name, element.name, extension)
        suffix = 2
        while path in taken:
            path = image_entry_path(group_name, f"{element.name}-{suffix}", extension)
            suffix += 1

        taken.add(path)
        return path

    @staticmethod
    def locate_extracted_file(extract_dir: Path, image_path: str) -> Path | None:
        """Resolve an image path inside the extraction directory.

        Returns None if the path escapes the directory or the file does not
        exist.
        """
        root = extract_dir.resolve()
        candidate = (root / image_path).resolve()
        if not candidate.is_relative_to(root) or not candidate.is_file():
            return None
        return candidate

    @staticmethod
    def read_image(path: Path) -> bytes:
        """Read an extracted image file.

        Args:
            path: Path returned by locate_extracted_file()

        Returns:
            Raw file bytes
        """
        data = path.read_bytes()
        logger.debug(f"Read image file {path.name} ({len(data)} bytes)")
        return data
