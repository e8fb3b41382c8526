"""Configuration models for cms-transfer.

Settings are read from keyword arguments, environment variables prefixed
with ``CMS_TRANSFER_`` and an optional ``.env`` file, in that order of
precedence.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_ZIP_SIZE = 50 * 1024 * 1024
DEFAULT_MAX_ENTRIES = 500
DEFAULT_SOURCE = "CMS Transfer"


class RetryConfig(BaseModel):
    """Retry policy for blob store requests.

    Attributes:
        max_attempts: Total attempts including the first one
        initial_wait: Minimum wait between attempts in seconds
        max_wait: Maximum wait between attempts in seconds
        exponential_base: Multiplier for exponential backoff
    """

    max_attempts: int = Field(3, ge=1, le=10)
    initial_wait: float = Field(1.0, ge=0)
    max_wait: float = Field(10.0, ge=0)
    exponential_base: float = Field(2.0, ge=1)


class TransferConfig(BaseSettings):
    """Settings for the content exporter, importer and blob store.

    Example:
        >>> config = TransferConfig(max_entries=100)
        >>> config.max_zip_size
        52428800
    """

    model_config = SettingsConfigDict(
        env_prefix="CMS_TRANSFER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    max_zip_size: int = Field(DEFAULT_MAX_ZIP_SIZE, gt=0, description="Archive size cap in bytes")
    max_entries: int = Field(DEFAULT_MAX_ENTRIES, gt=0, description="Archive entry count cap")
    scratch_dir: Path | None = Field(
        None, description="Parent directory for import scratch dirs (system temp if unset)"
    )
    source: str = Field(DEFAULT_SOURCE, min_length=1, description="Source tag written to manifests")

    blob_store_url: str | None = Field(None, description="Base URL of an HTTP blob store")
    timeout: float = Field(30.0, gt=0)
    verify_ssl: bool = True
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("blob_store_url")
    @classmethod
    def strip_trailing_slash(cls, value: str | None) -> str | None:
        """Normalize the blob store URL so keys can be appended with a slash."""
        if value is None:
            return None
        return value.rstrip("/")
