"""Tests specific to the SQLAlchemy content repository."""

from collections.abc import Iterator

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from cms_transfer import ConflictError, SqlAlchemyContentRepository


@pytest.fixture
def sql_repository() -> Iterator[SqlAlchemyContentRepository]:
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    repository = SqlAlchemyContentRepository(engine)
    repository.create_schema()
    yield repository
    engine.dispose()


def test_create_schema_creates_tables(sql_repository: SqlAlchemyContentRepository) -> None:
    tables = set(inspect(sql_repository.engine).get_table_names())

    assert {
        "content_groups",
        "content_elements",
        "content_element_versions",
        "focal_points",
    } <= tables


def test_accepts_database_url(tmp_path) -> None:
    repository = SqlAlchemyContentRepository(f"sqlite:///{tmp_path / 'cms.db'}")
    repository.create_schema()

    group = repository.create_group("Headers")

    assert repository.find_group_by_name("Headers").id == group.id
    repository.engine.dispose()


def test_unique_index_backs_up_name_check(
    sql_repository: SqlAlchemyContentRepository, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test a lost check-then-act race surfaces as ConflictError."""
    group = sql_repository.create_group("Headers")
    sql_repository.create_element(
        group, {"name": "H1", "content_type": "text", "text_content": "Hi"}
    )
    monkeypatch.setattr(
        SqlAlchemyContentRepository,
        "_check_element_name_free",
        staticmethod(lambda *args, **kwargs: None),
    )

    with pytest.raises(ConflictError, match="Uniqueness constraint violated"):
        sql_repository.create_element(
            group, {"name": "H1", "content_type": "text", "text_content": "Race"}
        )

    assert len(sql_repository.list_active_elements_ordered(group)) == 1


def test_partial_index_allows_reuse_after_soft_delete(
    sql_repository: SqlAlchemyContentRepository,
) -> None:
    group = sql_repository.create_group("Headers")
    old = sql_repository.create_element(
        group, {"name": "H1", "content_type": "text", "text_content": "old"}
    )
    sql_repository.soft_delete_element(old)

    new = sql_repository.create_element(
        group, {"name": "H1", "content_type": "text", "text_content": "new"}
    )

    assert new.id != old.id
    assert sql_repository.find_element_by_group_and_name(group, "H1").id == new.id


def test_entities_are_detached_snapshots(sql_repository: SqlAlchemyContentRepository) -> None:
    """Test returned entities do not change behind the caller's back."""
    group = sql_repository.create_group("Headers")
    element = sql_repository.create_element(
        group, {"name": "H1", "content_type": "text", "text_content": "v1"}
    )

    updated = sql_repository.update_element(element, {"text_content": "v2"})

    assert element.text_content == "v1"
    assert updated.text_content == "v2"
