"""Typed, deduplicated edges between canonical ids."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from thingstore.domain.errors import IdentityError, UnsupportedOperationError
from thingstore.domain.model.thing import Edge, Thing
from thingstore.domain.ports.persistence import RelationshipStore

if TYPE_CHECKING:
    from collections.abc import Mapping

log = logging.getLogger(__name__)

type ThingRef = str | Thing


def ref_id(ref: ThingRef) -> str:
    """Return the canonical id of an id string or an identified Thing."""

    if isinstance(ref, Thing):
        if not ref.id:
            raise IdentityError(f"Cannot link an unidentified {ref.type!r} record")
        return ref.id
    return ref


class RelationshipLayer:
    """Create and remove edges on a graph-capable store.

    Edge keys are derived from ``(source, target, relation)``, so linking the
    same pair twice replaces the first edge instead of duplicating it.
    """

    def __init__(self, store: object) -> None:
        if not isinstance(store, RelationshipStore):
            raise UnsupportedOperationError(
                f"{type(store).__name__} does not support relationships"
            )
        self.store: RelationshipStore = store

    def link(
        self,
        source: ThingRef,
        relation: str,
        target: ThingRef,
        attributes: Mapping[str, Any] | None = None,
    ) -> Edge:
        edge = Edge(
            source=ref_id(source),
            target=ref_id(target),
            relation=relation,
            attributes=dict(attributes or {}),
        )
        self.store.upsert_edge(edge)
        log.debug("Linked %s -[%s]-> %s", edge.source, relation, edge.target)
        return edge

    def unlink(self, source: ThingRef, target: ThingRef, relation: str | None = None) -> int:
        """Remove one edge, or every edge between the pair when ``relation`` is omitted."""

        removed = self.store.remove_edges(ref_id(source), ref_id(target), relation)
        log.debug(
            "Unlinked %s -> %s (relation=%s, removed=%s)",
            ref_id(source),
            ref_id(target),
            relation,
            removed,
        )
        return removed

    def edges(
        self,
        *,
        source: ThingRef | None = None,
        target: ThingRef | None = None,
        relation: str | None = None,
    ) -> list[Edge]:
        return self.store.find_edges(
            source=ref_id(source) if source is not None else None,
            target=ref_id(target) if target is not None else None,
            relation=relation,
        )
