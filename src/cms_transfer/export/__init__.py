"""Export and import functionality for CMS content.

This package provides tools for exporting content groups, elements and
their images to a ZIP archive and importing such archives back.
"""

from .exporter import ContentExporter
from .importer import ContentImporter
from .media_handler import MediaHandler

__all__ = ["ContentExporter", "ContentImporter", "MediaHandler"]
