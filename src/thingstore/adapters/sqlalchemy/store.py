"""Graph-backed entity store on SQLAlchemy.

Documents live in one table per resolved collection, keyed by a key-safe
rendering of the canonical id. Edges live in a shared table keyed by
:func:`~thingstore.domain.model.thing.edge_key`. Every write is a single
upsert in its own transaction, so a ``get`` right after ``set`` sees the new
document and a failed write leaves the previous one intact.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Final, cast
from urllib.parse import quote

from sqlalchemy import create_engine, delete, func, inspect, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from thingstore.adapters.codec import decode_thing, encode_thing
from thingstore.adapters.sqlalchemy.mappings import document_table, edge_table, new_metadata
from thingstore.config.errors import ConfigurationError
from thingstore.config.storage import DEFAULT_EDGE_TABLE
from thingstore.domain.errors import (
    IdentityError,
    SchemaResolutionError,
    StorageError,
    UnsupportedOperationError,
)
from thingstore.domain.model.thing import CanonicalId, Edge, edge_key

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from sqlalchemy import Table
    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.sql.dml import Insert

    from thingstore.domain.model.schema import SchemaRegistry
    from thingstore.domain.model.thing import Thing

# Characters that survive into document keys verbatim; ``/`` and ``:`` are encoded.
_KEY_SAFE: Final[str] = "-_.@()+,=;$!*'"

log = logging.getLogger(__name__)


def document_key(thing_id: str) -> str:
    """Render a canonical id in the backend's key-safe alphabet."""

    return quote(str(CanonicalId.parse(thing_id)), safe=_KEY_SAFE)


def upsert_statement(
    connection: Connection,
    table: Table,
    values: Mapping[str, Any],
    index_elements: Sequence[str] = ("key",),
) -> Insert:
    """Build an ``INSERT .. ON CONFLICT DO UPDATE`` for the connection's dialect."""

    dialect_name = connection.dialect.name
    if dialect_name == "sqlite":
        statement = sqlite.insert(table).values(**values)
    elif dialect_name == "postgresql":
        statement = postgresql.insert(table).values(**values)
    else:
        raise UnsupportedOperationError(f"Upserts are not supported on {dialect_name!r}")
    updates = {name: statement.excluded[name] for name in values if name not in index_elements}
    return statement.on_conflict_do_update(index_elements=list(index_elements), set_=updates)


class SqlAlchemyGraphStore:
    """Entity and relationship store backed by a relational database."""

    def __init__(
        self,
        engine: Engine,
        registry: SchemaRegistry,
        *,
        edge_table_name: str = DEFAULT_EDGE_TABLE,
    ) -> None:
        if edge_table_name in registry.collections():
            raise ConfigurationError(
                f"Edge table {edge_table_name!r} collides with an entity collection"
            )
        self.engine = engine
        self.registry = registry
        self.metadata = new_metadata()
        self.edges = edge_table(self.metadata, edge_table_name)
        self._created: set[str] = set()

    # -- schema management -------------------------------------------------

    def initialize(self) -> None:
        """Create the edge table and one table per registry collection."""

        self._ensure(self.edges)
        for collection in sorted(self.registry.collections()):
            self.ensure_collection(collection)

    def ensure_collection(self, name: str) -> Table:
        """Return the table for collection ``name``, creating it if missing."""

        if name not in self.registry.collections():
            raise SchemaResolutionError(name, "unknown collection")
        return self._ensure(document_table(self.metadata, name))

    def empty(self, name: str) -> int:
        """Delete all rows of a table; return how many, or -1 if it does not exist."""

        with self._storage_errors(f"empty {name}"):
            if not inspect(self.engine).has_table(name):
                return -1
            table = self._table(name)
            with self.engine.begin() as connection:
                count = connection.execute(select(func.count()).select_from(table)).scalar_one()
                connection.execute(delete(table))
        return int(count)

    def destroy(self, name: str) -> int:
        """Drop a table; return its row count, or -1 if it did not exist."""

        with self._storage_errors(f"destroy {name}"):
            if not inspect(self.engine).has_table(name):
                return -1
            table = self._table(name)
            with self.engine.connect() as connection:
                count = connection.execute(select(func.count()).select_from(table)).scalar_one()
            table.drop(self.engine)
        self._created.discard(name)
        if table is not self.edges:
            self.metadata.remove(table)
        return int(count)

    def document_id(self, thing_id: str) -> str:
        """Return the backend address of a thing: ``"<collection>/<document key>"``."""

        collection = self.registry.collection_for_tag(CanonicalId.parse(thing_id).tag)
        return f"{collection}/{document_key(thing_id)}"

    # -- entity store ------------------------------------------------------

    def get(self, thing_id: str) -> Thing | None:
        table = self._collection_for_id(thing_id)
        statement = select(table.c.document).where(table.c.key == document_key(thing_id))
        with self._storage_errors(f"load {thing_id}"), self.engine.connect() as connection:
            document = connection.execute(statement).scalar_one_or_none()
        if document is None:
            return None
        return decode_thing(cast("dict[str, Any]", document))

    def exists(self, thing_id: str) -> bool:
        table = self._collection_for_id(thing_id)
        statement = select(table.c.key).where(table.c.key == document_key(thing_id))
        with self._storage_errors(f"check {thing_id}"), self.engine.connect() as connection:
            return connection.execute(statement).first() is not None

    def set(self, thing: Thing) -> None:
        if not thing.id:
            raise IdentityError(f"Cannot store an unidentified {thing.type!r} record")
        collection = self.registry.resolve(thing.type).collection
        canonical = CanonicalId.parse(thing.id)
        if self.registry.collection_for_tag(canonical.tag) != collection:
            raise IdentityError(
                f"Id {thing.id!r} does not belong to collection {collection!r} of {thing.type!r}"
            )
        table = self.ensure_collection(collection)
        values = {
            "key": document_key(thing.id),
            "id": thing.id,
            "type": thing.type,
            "date": thing.date,
            "document": encode_thing(thing),
        }
        with self._storage_errors(f"save {thing.id}"), self.engine.begin() as connection:
            connection.execute(upsert_statement(connection, table, values))
        log.debug("Saved %s to %s", thing.id, collection)

    def delete(self, thing_id: str) -> bool:
        table = self._collection_for_id(thing_id)
        statement = delete(table).where(table.c.key == document_key(thing_id))
        with self._storage_errors(f"delete {thing_id}"), self.engine.begin() as connection:
            result = connection.execute(statement)
        return result.rowcount > 0

    def iter_collection(self, collection: str) -> Iterator[Thing]:
        table = self.ensure_collection(collection)
        statement = select(table.c.document).order_by(table.c.key)
        with self._storage_errors(f"read {collection}"), self.engine.connect() as connection:
            documents = connection.execute(statement).scalars().all()
        return (decode_thing(cast("dict[str, Any]", document)) for document in documents)

    # -- relationship store ------------------------------------------------

    def upsert_edge(self, edge: Edge) -> None:
        self._ensure(self.edges)
        values = {
            "key": edge.key,
            "source": edge.source,
            "target": edge.target,
            "relation": edge.relation,
            "attributes": dict(edge.attributes),
        }
        with self._storage_errors(f"link {edge.key}"), self.engine.begin() as connection:
            connection.execute(upsert_statement(connection, self.edges, values))

    def remove_edges(self, source: str, target: str, relation: str | None = None) -> int:
        self._ensure(self.edges)
        statement = delete(self.edges)
        if relation is not None:
            statement = statement.where(self.edges.c.key == edge_key(source, target, relation))
        else:
            statement = statement.where(self.edges.c.source == source).where(
                self.edges.c.target == target
            )
        with self._storage_errors(f"unlink {source} -> {target}"), self.engine.begin() as conn:
            result = conn.execute(statement)
        return result.rowcount

    def find_edges(
        self,
        *,
        source: str | None = None,
        target: str | None = None,
        relation: str | None = None,
    ) -> list[Edge]:
        self._ensure(self.edges)
        statement = select(self.edges).order_by(self.edges.c.key)
        if source is not None:
            statement = statement.where(self.edges.c.source == source)
        if target is not None:
            statement = statement.where(self.edges.c.target == target)
        if relation is not None:
            statement = statement.where(self.edges.c.relation == relation)
        with self._storage_errors("query edges"), self.engine.connect() as connection:
            rows = connection.execute(statement).mappings().all()
        return [
            Edge(
                source=row["source"],
                target=row["target"],
                relation=row["relation"],
                attributes=row["attributes"] or {},
            )
            for row in rows
        ]

    # -- helpers -----------------------------------------------------------

    def _collection_for_id(self, thing_id: str) -> Table:
        canonical = CanonicalId.parse(thing_id)
        return self.ensure_collection(self.registry.collection_for_tag(canonical.tag))

    def _table(self, name: str) -> Table:
        if name == self.edges.name:
            return self.edges
        return document_table(self.metadata, name)

    def _ensure(self, table: Table) -> Table:
        if table.name not in self._created:
            with self._storage_errors(f"create {table.name}"):
                table.create(self.engine, checkfirst=True)
            self._created.add(table.name)
        return table

    @contextmanager
    def _storage_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to {action}: {exc}") from exc


def create_graph_store(
    database_uri: str,
    registry: SchemaRegistry,
    *,
    edge_table_name: str = DEFAULT_EDGE_TABLE,
) -> SqlAlchemyGraphStore:
    """Create an engine for ``database_uri`` and an initialised store on it."""

    engine = create_engine(database_uri, future=True)
    store = SqlAlchemyGraphStore(engine, registry, edge_table_name=edge_table_name)
    store.initialize()
    return store
