"""Ports for persisting things and the edges between them."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from thingstore.domain.model import Edge, SchemaRegistry, Thing


@runtime_checkable
class EntityStore(Protocol):
    """Read/write contract keyed by canonical id.

    ``set`` routes the thing to ``registry.resolve(thing.type).collection``,
    is idempotent, and is visible to ``get`` as soon as it returns.
    """

    registry: SchemaRegistry

    def get(self, thing_id: str) -> Thing | None: ...

    def set(self, thing: Thing) -> None: ...

    def exists(self, thing_id: str) -> bool: ...

    def delete(self, thing_id: str) -> bool: ...

    def iter_collection(self, collection: str) -> Iterator[Thing]: ...


@runtime_checkable
class RelationshipStore(Protocol):
    """Edge persistence; only graph-capable backends implement it."""

    def upsert_edge(self, edge: Edge) -> None: ...

    def remove_edges(self, source: str, target: str, relation: str | None = None) -> int: ...

    def find_edges(
        self,
        *,
        source: str | None = None,
        target: str | None = None,
        relation: str | None = None,
    ) -> list[Edge]: ...
