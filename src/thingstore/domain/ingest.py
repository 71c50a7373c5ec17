"""Importer boundary: resolve, identify, merge and persist records.

Importers hand over loosely shaped records one at a time or in batches.
Schema, identity and merge failures only affect the offending record; they are
logged and reported as a skipped outcome so a batch keeps going. Storage
errors are not caught here and reach the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from thingstore.domain.errors import RECORD_ERRORS, IdentityError
from thingstore.domain.identity import IdentityResolver
from thingstore.domain.merge import TypeMismatchPolicy, merge
from thingstore.domain.model.thing import Thing
from thingstore.domain.relationships import RelationshipLayer
from thingstore.domain.sparse import sparse_thing

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from thingstore.domain.errors import ThingStoreError
    from thingstore.domain.model.schema import SchemaRegistry
    from thingstore.domain.model.thing import Edge
    from thingstore.domain.ports.persistence import EntityStore
    from thingstore.domain.relationships import ThingRef

log = logging.getLogger(__name__)


class IngestStatus(StrEnum):
    CREATED = "created"
    MERGED = "merged"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


@dataclass(slots=True)
class IngestOutcome:
    """Result of ingesting a single record."""

    status: IngestStatus
    id: str | None = None
    thing: Thing | None = None
    error: ThingStoreError | None = None

    @property
    def ok(self) -> bool:
        return self.status is not IngestStatus.SKIPPED


@dataclass(slots=True)
class IngestSummary:
    """Counters and per-record outcomes for a batch."""

    outcomes: list[IngestOutcome] = field(default_factory=list["IngestOutcome"])
    created: int = 0
    merged: int = 0
    unchanged: int = 0
    skipped: int = 0

    def record(self, outcome: IngestOutcome) -> None:
        self.outcomes.append(outcome)
        match outcome.status:
            case IngestStatus.CREATED:
                self.created += 1
            case IngestStatus.MERGED:
                self.merged += 1
            case IngestStatus.UNCHANGED:
                self.unchanged += 1
            case IngestStatus.SKIPPED:
                self.skipped += 1

    @property
    def stored(self) -> int:
        return self.created + self.merged


class ThingIngestor:
    """Run records through the resolution and merge engine into a store."""

    def __init__(
        self,
        store: EntityStore,
        *,
        identity: IdentityResolver | None = None,
        policy: TypeMismatchPolicy = TypeMismatchPolicy.MERGE,
        coerce: Callable[[Mapping[str, Any]], Thing] = Thing.from_record,
    ) -> None:
        self.store = store
        self.registry: SchemaRegistry = store.registry
        self.identity = identity or IdentityResolver(self.registry)
        self.policy = policy
        self.coerce = coerce
        self._relationships: RelationshipLayer | None = None

    def ingest(self, record: Thing | Mapping[str, Any]) -> IngestOutcome:
        """Merge one record into the store."""

        try:
            thing = record if isinstance(record, Thing) else self._coerce(record)
            return self._ingest(thing)
        except RECORD_ERRORS as exc:
            log.warning("Skipping record: %s", exc)
            return IngestOutcome(status=IngestStatus.SKIPPED, error=exc)

    def ingest_many(self, records: Iterable[Thing | Mapping[str, Any]]) -> IngestSummary:
        summary = IngestSummary()
        for record in records:
            summary.record(self.ingest(record))
        log.info(
            "Ingested batch: created=%s merged=%s unchanged=%s skipped=%s",
            summary.created,
            summary.merged,
            summary.unchanged,
            summary.skipped,
        )
        return summary

    def link(
        self,
        source: ThingRef,
        relation: str,
        target: ThingRef,
        attributes: Mapping[str, Any] | None = None,
    ) -> Edge:
        return self.relationships.link(source, relation, target, attributes)

    def unlink(self, source: ThingRef, target: ThingRef, relation: str | None = None) -> int:
        return self.relationships.unlink(source, target, relation)

    @property
    def relationships(self) -> RelationshipLayer:
        if self._relationships is None:
            self._relationships = RelationshipLayer(self.store)
        return self._relationships

    def _coerce(self, record: Mapping[str, Any]) -> Thing:
        try:
            return self.coerce(record)
        except (TypeError, ValueError) as exc:
            raise IdentityError(f"Malformed record: {exc}") from exc

    def _ingest(self, thing: Thing) -> IngestOutcome:
        # fail early on unknown types, before any store round-trip
        self.registry.resolve(thing.type)
        identified = self.identity.assign(thing)
        thing_id = identified.id
        if thing_id is None:
            raise IdentityError(f"No id assigned to {thing.type!r} record")

        existing = self.store.get(thing_id)
        merged = merge(existing, identified, policy=self.policy)

        if existing is not None and sparse_thing(existing) == merged:
            log.debug("Unchanged %s", thing_id)
            return IngestOutcome(status=IngestStatus.UNCHANGED, id=thing_id, thing=merged)

        self.store.set(merged)
        status = IngestStatus.CREATED if existing is None else IngestStatus.MERGED
        log.debug("%s %s %s", status.value.capitalize(), merged.type, thing_id)
        return IngestOutcome(status=status, id=thing_id, thing=merged)
