"""Blob stores for image attachment bytes.

Repositories keep attachment metadata (key, filename, MIME type) and delegate
the bytes to a BlobStore. InMemoryBlobStore serves tests and single-process
setups; HttpBlobStore talks to a plain HTTP object store where
``PUT/GET/DELETE {base_url}/{key}`` store, read and remove a blob.
"""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..exceptions import (
    StorageConnectionError,
    StorageError,
    StorageServerError,
)
from ..models.config import TransferConfig

logger = logging.getLogger(__name__)


class InMemoryBlobStore:
    """Dict-backed blob store."""

    def __init__(self) -> None:
        self._blobs: dict[str, tuple[bytes, str]] = {}

    def put(self, key: str, data: bytes, content_type: str) -> None:
        self._blobs[key] = (bytes(data), content_type)

    def get(self, key: str) -> bytes:
        try:
            return self._blobs[key][0]
        except KeyError:
            raise StorageError(f"Blob not found: {key}", details={"key": key}) from None

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)

    def content_type_of(self, key: str) -> str | None:
        entry = self._blobs.get(key)
        return entry[1] if entry else None

    def __contains__(self, key: object) -> bool:
        return key in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)


class HttpBlobStore:
    """Blob store backed by an HTTP object storage endpoint.

    Connection failures and 5xx answers are retried with exponential backoff
    according to ``config.retry``; other failures raise StorageError at once.

    Example:
        >>> config = TransferConfig(blob_store_url="http://storage.local/blobs")
        >>> with HttpBlobStore(config) as store:
        ...     store.put("abc123", b"...", "image/png")
        ...     data = store.get("abc123")
    """

    def __init__(
        self,
        config: TransferConfig,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            config: Settings providing ``blob_store_url``, timeouts and retry policy
            http_client: Optional injected client (not closed by this store)

        Raises:
            ValueError: If ``blob_store_url`` is not configured
        """
        if not config.blob_store_url:
            raise ValueError("blob_store_url is required for HttpBlobStore")

        self.config = config
        self.base_url = config.blob_store_url
        self._client = http_client or httpx.Client(
            timeout=config.timeout,
            verify=config.verify_ssl,
        )
        self._owns_client = http_client is None
        self._send = self._create_retry_decorator()(self._send_once)

    def __enter__(self) -> "HttpBlobStore":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._owns_client:
            self._client.close()

    def put(self, key: str, data: bytes, content_type: str) -> None:
        self._send("PUT", key, content=data, headers={"Content-Type": content_type})
        logger.info(f"Stored blob {key} ({len(data)} bytes)")

    def get(self, key: str) -> bytes:
        response = self._send("GET", key)
        return response.content

    def delete(self, key: str) -> None:
        try:
            self._send("DELETE", key)
        except StorageError as e:
            if e.details.get("status_code") != 404:
                raise
            logger.debug(f"Blob {key} already absent")

    def _url_for(self, key: str) -> str:
        return f"{self.base_url}/{key.lstrip('/')}"

    def _send_once(self, method: str, key: str, **kwargs: Any) -> httpx.Response:
        url = self._url_for(key)
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise StorageConnectionError(f"Blob store timed out: {e}") from e
        except httpx.TransportError as e:
            raise StorageConnectionError(f"Blob store unreachable: {e}") from e

        if response.is_success:
            return response

        status_code = response.status_code
        details = {"key": key, "status_code": status_code}
        if 500 <= status_code < 600:
            raise StorageServerError(
                f"Blob store error (HTTP {status_code}) for {method} {key}",
                status_code=status_code,
                details=details,
            )
        if status_code == 404:
            raise StorageError(f"Blob not found: {key}", details=details)
        raise StorageError(
            f"Unexpected blob store response (HTTP {status_code}) for {method} {key}",
            details=details,
        )

    def _create_retry_decorator(self) -> Any:
        """Create a retry decorator from the configured retry policy."""
        retry_config = self.config.retry

        return retry(
            stop=stop_after_attempt(retry_config.max_attempts),
            wait=wait_exponential(
                multiplier=retry_config.exponential_base,
                min=retry_config.initial_wait,
                max=retry_config.max_wait,
            ),
            retry=retry_if_exception_type((StorageServerError, StorageConnectionError)),
            reraise=True,
        )
