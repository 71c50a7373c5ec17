"""Application orchestration entry points."""

from __future__ import annotations

from itertools import chain
from logging import getLogger
from typing import TYPE_CHECKING

from thingstore.adapters.filesystem import FileBucketStore, read_ndjson, write_ndjson
from thingstore.adapters.importer import thing_from_payload
from thingstore.adapters.sqlalchemy import create_graph_store
from thingstore.config import StorageBackend, get_database_config, get_storage_config
from thingstore.domain.ingest import ThingIngestor
from thingstore.domain.merge import TypeMismatchPolicy
from thingstore.domain.model import default_registry
from thingstore.domain.relationships import RelationshipLayer

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path
    from typing import Any

    from thingstore.config import DatabaseConfig, StorageConfig
    from thingstore.domain.ingest import IngestSummary
    from thingstore.domain.model import Edge, ResolvedSchema, SchemaRegistry, Thing
    from thingstore.domain.ports.persistence import EntityStore


log = getLogger(__name__)


def build_store(
    storage: StorageConfig | None = None,
    *,
    database: DatabaseConfig | None = None,
    registry: SchemaRegistry | None = None,
) -> EntityStore:
    """Create the configured backend over ``registry`` (the default forest if omitted)."""

    storage_config = storage or get_storage_config()
    effective_registry = registry or default_registry()
    if storage_config.backend is StorageBackend.GRAPH:
        database_config = database or get_database_config(storage=storage_config)
        log.info("Using graph store at %s", database_config.uri)
        return create_graph_store(
            database_config.uri,
            effective_registry,
            edge_table_name=database_config.edge_table,
        )
    root = storage_config.buckets_path()
    log.info("Using file store at %s", root)
    return FileBucketStore(root, effective_registry)


def import_records(
    paths: Iterable[Path],
    *,
    store: EntityStore | None = None,
    policy: TypeMismatchPolicy = TypeMismatchPolicy.MERGE,
) -> IngestSummary:
    """Ingest every record of the given NDJSON files into the store."""

    effective_store = store or build_store()
    ingestor = ThingIngestor(effective_store, policy=policy, coerce=thing_from_payload)
    path_list = list(paths)
    log.info("Starting import: files=%s, policy=%s", len(path_list), policy.value)

    summary = ingestor.ingest_many(chain.from_iterable(read_ndjson(path) for path in path_list))

    log.info(
        f"Finished import: stored={summary.stored}, unchanged={summary.unchanged}, "
        f"skipped={summary.skipped}"
    )
    return summary


def show_thing(thing_id: str, *, store: EntityStore | None = None) -> Thing | None:
    return (store or build_store()).get(thing_id)


def resolve_type(name: str, *, registry: SchemaRegistry | None = None) -> ResolvedSchema:
    return (registry or default_registry()).resolve(name)


def link_things(
    source: str,
    relation: str,
    target: str,
    *,
    attributes: Mapping[str, Any] | None = None,
    store: EntityStore | None = None,
) -> Edge:
    """Create (or replace) the ``relation`` edge between two stored things."""

    layer = RelationshipLayer(store or build_store())
    edge = layer.link(source, relation, target, attributes)
    log.info("Linked %s -[%s]-> %s", source, relation, target)
    return edge


def unlink_things(
    source: str,
    target: str,
    *,
    relation: str | None = None,
    store: EntityStore | None = None,
) -> int:
    layer = RelationshipLayer(store or build_store())
    removed = layer.unlink(source, target, relation)
    log.info("Removed %s edge(s) between %s and %s", removed, source, target)
    return removed


def export_collection(
    collection: str,
    destination: Path,
    *,
    store: EntityStore | None = None,
) -> int:
    """Write one collection as NDJSON; works for either backend."""

    effective_store = store or build_store()
    if isinstance(effective_store, FileBucketStore):
        return effective_store.export_collection(collection, destination)
    count = write_ndjson(effective_store.iter_collection(collection), destination)
    log.info("Exported %s things from %s to %s", count, collection, destination)
    return count
