"""Factory helpers for building TransferConfig instances.

Wraps pydantic validation errors in ConfigurationError so callers only
deal with this package's exception hierarchy.
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigurationError
from .models.config import RetryConfig, TransferConfig

logger = logging.getLogger(__name__)


class ConfigFactory:
    """Build TransferConfig from explicit values, the environment or a .env file.

    Example:
        >>> config = ConfigFactory.create(max_entries=100)
        >>> config = ConfigFactory.from_env_file("deploy/.env", required=True)
    """

    @staticmethod
    def create(**kwargs: Any) -> TransferConfig:
        """Create a config from keyword arguments.

        Environment variables still fill any field not passed explicitly.

        Args:
            **kwargs: TransferConfig field values; ``retry`` may be a dict

        Returns:
            Validated configuration

        Raises:
            ConfigurationError: If any value is invalid
        """
        retry = kwargs.get("retry")
        if isinstance(retry, dict):
            kwargs["retry"] = ConfigFactory._build_retry(retry)

        try:
            return TransferConfig(**kwargs)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @staticmethod
    def from_dict(values: dict[str, Any]) -> TransferConfig:
        """Create a config from a plain dictionary."""
        return ConfigFactory.create(**values)

    @staticmethod
    def from_environment_only() -> TransferConfig:
        """Create a config from ``CMS_TRANSFER_*`` environment variables only.

        The default ``.env`` lookup is disabled.

        Raises:
            ConfigurationError: If an environment value is invalid
        """
        try:
            return TransferConfig(_env_file=None)  # type: ignore[call-arg]
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @staticmethod
    def from_env_file(env_file: str | Path, required: bool = False) -> TransferConfig:
        """Create a config from a specific .env file.

        Args:
            env_file: Path to the .env file
            required: Raise if the file does not exist instead of falling
                back to environment variables

        Raises:
            ConfigurationError: If the file is required but missing, or a
                value is invalid
        """
        path = Path(env_file)
        if not path.exists():
            if required:
                raise ConfigurationError(f".env file not found: {path}")
            logger.debug(f".env file not found at {path}, using environment only")
            return ConfigFactory.from_environment_only()

        try:
            return TransferConfig(_env_file=str(path))  # type: ignore[call-arg]
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @staticmethod
    def _build_retry(values: dict[str, Any]) -> RetryConfig:
        try:
            return RetryConfig(**values)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


def load_config(env_file: str | Path | None = None, **overrides: Any) -> TransferConfig:
    """Load configuration with optional .env file and explicit overrides.

    Args:
        env_file: Optional .env file to read (not required to exist)
        **overrides: Field values that take precedence over the environment

    Returns:
        Validated configuration
    """
    env_path = str(env_file) if env_file is not None and Path(env_file).exists() else None
    retry = overrides.get("retry")
    if isinstance(retry, dict):
        overrides["retry"] = ConfigFactory._build_retry(retry)

    try:
        return TransferConfig(_env_file=env_path, **overrides)  # type: ignore[call-arg]
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
