#!/usr/bin/env python3
"""Content Transfer Round-Trip Example

Exports all active content from one SQLite database and imports it into
another, the way content moves from staging to production.

Usage:
    1. Point SOURCE_DB and TARGET_DB at your databases (or use env vars)
    2. Run: python transfer_roundtrip.py

Environment Variables (optional):
    SOURCE_CMS_DB: Override SOURCE_DB
    TARGET_CMS_DB: Override TARGET_DB
    CMS_TRANSFER_*: Any TransferConfig field (e.g. CMS_TRANSFER_MAX_ENTRIES)
"""

import logging
import os
from pathlib import Path

from cms_transfer import (
    CmsTransferError,
    ContentExporter,
    ContentImporter,
    SqlAlchemyContentRepository,
    load_config,
)

# ============================================================================
# CONFIGURATION - Update these values or use environment variables
# ============================================================================

SOURCE_DB = os.getenv("SOURCE_CMS_DB", "sqlite:///staging_cms.db")
TARGET_DB = os.getenv("TARGET_CMS_DB", "sqlite:///production_cms.db")
BACKUP_DIR = Path("backups")

# ============================================================================


def seed_demo_content(repository: SqlAlchemyContentRepository) -> None:
    """Create a little content so the example has something to move."""
    if repository.find_group_by_name("Headers", include_deleted=True) is not None:
        return

    headers = repository.create_group("Headers", "Page headings")
    repository.create_element(
        headers,
        {"name": "Title", "content_type": "text", "text_content": "Welcome", "position": 1},
    )
    repository.create_element(
        headers,
        {"name": "Tagline", "content_type": "text", "text_content": "Fast & simple", "position": 2},
    )


def main() -> None:
    """Run the export/import round trip."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    config = load_config(".env")

    source = SqlAlchemyContentRepository(SOURCE_DB)
    target = SqlAlchemyContentRepository(TARGET_DB)
    source.create_schema()
    target.create_schema()
    seed_demo_content(source)

    print("Step 1: Exporting source content...")
    export_result = ContentExporter(source, config).export()
    archive_path = ContentExporter.save_to_file(export_result, BACKUP_DIR)
    print(
        f"  Exported {export_result.group_count} groups and "
        f"{export_result.element_count} elements to {archive_path}"
    )

    print("Step 2: Importing into target...")
    import_result = ContentImporter(target, config).import_archive(archive_path)
    print(
        f"  Created: {import_result.created}, updated: {import_result.updated}, "
        f"restored: {import_result.restored}"
    )

    if import_result.success:
        print("Import completed without errors")
    else:
        print(f"Import finished with {len(import_result.errors)} errors:")
        for error in import_result.errors:
            print(f"  - {error}")


if __name__ == "__main__":
    try:
        main()
    except CmsTransferError as e:
        print(f"Transfer failed: {e}")
        raise SystemExit(1) from e
