from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from thingstore.adapters.filesystem import FileBucketStore
from thingstore.adapters.sqlalchemy import SqlAlchemyGraphStore
from thingstore.domain.model import SchemaRegistry, default_registry

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy.engine import Engine


@pytest.fixture(scope="session")
def registry() -> SchemaRegistry:
    return default_registry()


@pytest.fixture
def file_store(tmp_path: Path, registry: SchemaRegistry) -> FileBucketStore:
    return FileBucketStore(tmp_path / "buckets", registry)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def graph_store(sqlite_engine: Engine, registry: SchemaRegistry) -> SqlAlchemyGraphStore:
    store = SqlAlchemyGraphStore(sqlite_engine, registry)
    store.initialize()
    return store


@pytest.fixture(params=["file", "graph"])
def any_store(
    request: pytest.FixtureRequest,
    file_store: FileBucketStore,
    graph_store: SqlAlchemyGraphStore,
) -> FileBucketStore | SqlAlchemyGraphStore:
    return file_store if request.param == "file" else graph_store
