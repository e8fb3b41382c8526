"""Pytest configuration and shared fixtures."""

import io
import json
import zipfile
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from cms_transfer import InMemoryContentRepository, SqlAlchemyContentRepository, TransferConfig

# PNG signature followed by filler; image bytes are never decoded
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


@pytest.fixture(params=["memory", "sqlalchemy"])
def repository(request: pytest.FixtureRequest) -> Iterator[Any]:
    """Create an empty content repository for each backend."""
    if request.param == "memory":
        yield InMemoryContentRepository()
        return

    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    repository = SqlAlchemyContentRepository(engine)
    repository.create_schema()
    yield repository
    engine.dispose()


@pytest.fixture
def transfer_config(tmp_path: Path) -> TransferConfig:
    """Create a test configuration with an isolated scratch directory.

    Returns:
        Test configuration that ignores the environment and .env files
    """
    return TransferConfig(_env_file=None, scratch_dir=tmp_path / "scratch")  # type: ignore[call-arg]


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


def build_zip(
    manifest: Any = None,
    files: dict[str, bytes] | None = None,
    *,
    raw_manifest: str | None = None,
) -> bytes:
    """Build an archive in memory.

    Args:
        manifest: Document serialized to content.json (omitted if None)
        files: Extra entries by archive path
        raw_manifest: Literal content.json text, used instead of ``manifest``

    Returns:
        The ZIP bytes
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        if raw_manifest is not None:
            zf.writestr("content.json", raw_manifest)
        elif manifest is not None:
            zf.writestr("content.json", json.dumps(manifest))
        for name, data in (files or {}).items():
            zf.writestr(name, data)
    return buffer.getvalue()


@pytest.fixture
def zip_builder() -> Callable[..., bytes]:
    """Expose build_zip() to tests."""
    return build_zip


@pytest.fixture
def headers_manifest() -> dict[str, Any]:
    """Manifest with one group holding a single text element."""
    return {
        "version": 1,
        "exported_at": "2026-01-01T12:00:00+00:00",
        "source": "CMS Transfer",
        "groups": [
            {
                "name": "Headers",
                "description": "Site headers",
                "elements": [
                    {
                        "name": "H1",
                        "content_type": "text",
                        "position": 1,
                        "text_content": "Hi",
                    }
                ],
            }
        ],
    }
