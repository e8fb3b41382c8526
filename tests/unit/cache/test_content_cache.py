"""Tests for the request-level content cache."""

import pytest

from cms_transfer import ContentCache, InMemoryContentRepository


@pytest.fixture
def seeded_repository() -> InMemoryContentRepository:
    repository = InMemoryContentRepository()
    headers = repository.create_group("Headers")
    repository.create_element(
        headers, {"name": "H1", "content_type": "text", "text_content": "Hi"}
    )
    branding = repository.create_group("Branding")
    logo = repository.create_element(branding, {"name": "Logo", "content_type": "image"})
    repository.attach_image(logo, b"png", "logo.png", "image/png")
    return repository


class TestContentCache:
    """Test ContentCache lookups."""

    def test_hits_are_cached(self, seeded_repository: InMemoryContentRepository):
        cache = ContentCache()

        first = cache.fetch(seeded_repository, "Headers", "H1")
        second = cache.fetch(seeded_repository, "Headers", "H1")

        assert first is second
        assert cache.fetch_count == 1
        assert cache.cache_size == 1
        assert ("Headers", "H1") in cache

    def test_misses_are_not_cached(self, seeded_repository: InMemoryContentRepository):
        """Test content created after a miss is found without clearing."""
        cache = ContentCache()
        group = seeded_repository.find_group_by_name("Headers")

        assert cache.fetch(seeded_repository, "Headers", "H2") is None
        assert cache.fetch(seeded_repository, "Missing", "H1") is None
        seeded_repository.create_element(
            group, {"name": "H2", "content_type": "text", "text_content": "Sub"}
        )

        assert cache.value(seeded_repository, "Headers", "H2") == "Sub"
        assert cache.fetch_count == 3

    def test_value_of_text_and_image(self, seeded_repository: InMemoryContentRepository):
        cache = ContentCache()

        assert cache.value(seeded_repository, "Headers", "H1") == "Hi"
        assert cache.value(seeded_repository, "Branding", "Logo") == "logo.png"
        assert cache.value(seeded_repository, "Branding", "Missing") is None

    def test_clear(self, seeded_repository: InMemoryContentRepository):
        cache = ContentCache()
        cache.fetch(seeded_repository, "Headers", "H1")

        cache.clear()

        assert cache.cache_size == 0
        cache.fetch(seeded_repository, "Headers", "H1")
        assert cache.fetch_count == 2
