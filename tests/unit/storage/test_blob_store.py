"""Tests for blob store backends."""

import httpx
import pytest
import respx

from cms_transfer import (
    HttpBlobStore,
    InMemoryBlobStore,
    InMemoryContentRepository,
    StorageConnectionError,
    StorageError,
    StorageServerError,
    TransferConfig,
)

BASE_URL = "http://storage.local/blobs"


@pytest.fixture
def blob_config() -> TransferConfig:
    """Configuration pointing at a mocked blob store with instant retries."""
    return TransferConfig(
        _env_file=None,  # type: ignore[call-arg]
        blob_store_url=f"{BASE_URL}/",
        retry={"max_attempts": 3, "initial_wait": 0, "max_wait": 0},
    )


# InMemoryBlobStore


def test_in_memory_put_get_delete() -> None:
    store = InMemoryBlobStore()

    store.put("abc", b"data", "image/png")

    assert "abc" in store
    assert store.get("abc") == b"data"
    assert store.content_type_of("abc") == "image/png"

    store.delete("abc")
    store.delete("abc")
    assert len(store) == 0


def test_in_memory_missing_blob() -> None:
    with pytest.raises(StorageError, match="Blob not found: nope"):
        InMemoryBlobStore().get("nope")


# HttpBlobStore


def test_http_store_requires_url() -> None:
    with pytest.raises(ValueError, match="blob_store_url is required"):
        HttpBlobStore(TransferConfig(_env_file=None))  # type: ignore[call-arg]


@respx.mock
def test_http_put_and_get(blob_config: TransferConfig) -> None:
    """Test blobs are stored and read under base_url/key."""
    put_route = respx.put(f"{BASE_URL}/abc").mock(return_value=httpx.Response(201))
    respx.get(f"{BASE_URL}/abc").mock(return_value=httpx.Response(200, content=b"png-bytes"))

    with HttpBlobStore(blob_config) as store:
        store.put("abc", b"png-bytes", "image/png")
        data = store.get("abc")

    assert data == b"png-bytes"
    assert put_route.called
    request = put_route.calls.last.request
    assert request.headers["Content-Type"] == "image/png"
    assert request.content == b"png-bytes"


@respx.mock
def test_http_server_error_is_retried(blob_config: TransferConfig) -> None:
    """Test 5xx answers are retried until one succeeds."""
    route = respx.get(f"{BASE_URL}/abc").mock(
        side_effect=[
            httpx.Response(503),
            httpx.Response(502),
            httpx.Response(200, content=b"ok"),
        ]
    )

    with HttpBlobStore(blob_config) as store:
        assert store.get("abc") == b"ok"

    assert route.call_count == 3


@respx.mock
def test_http_server_error_gives_up(blob_config: TransferConfig) -> None:
    route = respx.get(f"{BASE_URL}/abc").mock(return_value=httpx.Response(500))

    with HttpBlobStore(blob_config) as store:
        with pytest.raises(StorageServerError) as exc_info:
            store.get("abc")

    assert exc_info.value.status_code == 500
    assert route.call_count == 3


@respx.mock
def test_http_connection_error(blob_config: TransferConfig) -> None:
    route = respx.get(f"{BASE_URL}/abc").mock(side_effect=httpx.ConnectError)

    with HttpBlobStore(blob_config) as store:
        with pytest.raises(StorageConnectionError, match="unreachable"):
            store.get("abc")

    assert route.call_count == 3


@respx.mock
def test_http_not_found_is_not_retried(blob_config: TransferConfig) -> None:
    route = respx.get(f"{BASE_URL}/abc").mock(return_value=httpx.Response(404))

    with HttpBlobStore(blob_config) as store:
        with pytest.raises(StorageError, match="Blob not found: abc") as exc_info:
            store.get("abc")

    assert exc_info.value.details == {"key": "abc", "status_code": 404}
    assert route.call_count == 1


@respx.mock
def test_http_delete_ignores_missing_blob(blob_config: TransferConfig) -> None:
    route = respx.delete(f"{BASE_URL}/abc").mock(return_value=httpx.Response(404))

    with HttpBlobStore(blob_config) as store:
        store.delete("abc")

    assert route.called


@respx.mock
def test_http_delete_propagates_other_errors(blob_config: TransferConfig) -> None:
    respx.delete(f"{BASE_URL}/abc").mock(return_value=httpx.Response(403))

    with HttpBlobStore(blob_config) as store:
        with pytest.raises(StorageError, match="HTTP 403"):
            store.delete("abc")


def test_injected_client_is_not_closed(blob_config: TransferConfig) -> None:
    client = httpx.Client()

    with HttpBlobStore(blob_config, http_client=client):
        pass

    assert not client.is_closed
    client.close()


@respx.mock
def test_repository_reads_images_through_http_store(blob_config: TransferConfig) -> None:
    """Test image bytes round-trip through a repository backed by HTTP."""
    stored: dict[str, bytes] = {}

    def handle_put(request: httpx.Request) -> httpx.Response:
        stored[request.url.path.rsplit("/", 1)[-1]] = request.content
        return httpx.Response(201)

    def handle_get(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=stored[request.url.path.rsplit("/", 1)[-1]])

    respx.put(url__startswith=BASE_URL).mock(side_effect=handle_put)
    respx.get(url__startswith=BASE_URL).mock(side_effect=handle_get)

    with HttpBlobStore(blob_config) as store:
        repository = InMemoryContentRepository(blob_store=store)
        group = repository.create_group("Branding")
        element = repository.create_element(group, {"name": "Logo", "content_type": "image"})
        repository.attach_image(element, b"logo", "logo.png", "image/png")

        assert repository.download_image_bytes(element) == b"logo"
