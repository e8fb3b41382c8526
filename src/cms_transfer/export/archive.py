"""ZIP archive reading and writing for content transfers.

Import sources may be a filesystem path, raw bytes or a binary file-like
object. Extraction vets every entry name before anything touches disk.
"""

import io
import logging
import os
import shutil
import zipfile
import zlib
from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO, Union

from ..exceptions import ArchiveError
from ..models.manifest import MANIFEST_FILENAME
from ..models.transfer_result import ImportResult
from ..utils.paths import is_mac_artifact, is_safe_entry_name

logger = logging.getLogger(__name__)

ArchiveSource = Union[str, os.PathLike, bytes, bytearray, BinaryIO]


def write_archive(manifest_json: str, images: Iterable[tuple[str, bytes]]) -> bytes:
    """Build a ZIP archive in memory.

    ``content.json`` is always the first entry, followed by the images in
    the order given.

    Args:
        manifest_json: Serialized manifest document
        images: ``(entry_path, data)`` pairs

    Returns:
        The archive bytes
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(MANIFEST_FILENAME, manifest_json.encode("utf-8"))
        for entry_path, data in images:
            zf.writestr(entry_path, data)
    return buffer.getvalue()


def archive_size(source: ArchiveSource) -> int:
    """Size of an archive source in bytes.

    A declared ``size`` attribute (as on uploaded file objects) wins, then
    the byte length, the file size on disk, or the stream length measured
    with seek/tell (the stream position is restored).
    """
    declared = getattr(source, "size", None)
    if isinstance(declared, int) and not isinstance(declared, bool):
        return declared
    if isinstance(source, (bytes, bytearray)):
        return len(source)
    if isinstance(source, (str, os.PathLike)):
        return os.path.getsize(source)

    position = source.tell()
    try:
        source.seek(0, io.SEEK_END)
        return source.tell()
    finally:
        source.seek(position)


def open_archive(source: ArchiveSource) -> zipfile.ZipFile:
    """Open a ZIP archive for reading.

    Raises:
        ArchiveError: If the source is not a readable ZIP container
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        return zipfile.ZipFile(source, "r")
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise ArchiveError(f"Invalid ZIP file: {e}") from e


def extract_archive(
    source: ArchiveSource,
    destination: Path,
    *,
    max_entries: int,
    result: ImportResult,
) -> int:
    """Extract a ZIP archive into ``destination``.

    Directory entries and macOS metadata entries are skipped. Entries with
    traversal-unsafe names are skipped and reported in ``result``. Once more
    than ``max_entries`` entries have been counted extraction stops, the
    limit is reported and whatever was already extracted is kept. Existing
    files are never overwritten, so the first of two duplicate entries wins.

    Args:
        source: Archive path, bytes or binary stream
        destination: Existing directory to extract into
        max_entries: Entry count cap
        result: Import result collecting per-entry errors

    Returns:
        Number of files written

    Raises:
        ArchiveError: If the archive is corrupt
    """
    root = destination.resolve()
    counted = 0
    written = 0

    with open_archive(source) as zf:
        try:
            for info in zf.infolist():
                name = info.filename
                if not is_safe_entry_name(name):
                    logger.warning(f"Skipping unsafe archive entry: {name}")
                    result.add_error(f"Skipped unsafe archive entry: {name}")
                    continue
                if is_mac_artifact(name):
                    continue

                counted += 1
                if counted > max_entries:
                    result.add_error(
                        f"ZIP contains more than {max_entries} entries. Processing stopped."
                    )
                    break

                if info.is_dir():
                    continue

                target = (root / name).resolve()
                if not target.is_relative_to(root):
                    logger.warning(f"Skipping unsafe archive entry: {name}")
                    result.add_error(f"Skipped unsafe archive entry: {name}")
                    continue
                if target.exists():
                    continue

                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                written += 1
        except (zipfile.BadZipFile, zlib.error, EOFError) as e:
            raise ArchiveError(f"Invalid ZIP file: {e}") from e

    logger.debug(f"Extracted {written} files to {root}")
    return written
