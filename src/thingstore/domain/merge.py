"""Recency-aware, field-level merge of two versions of one entity."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from thingstore.domain.errors import MergeConflict
from thingstore.domain.model.thing import Thing
from thingstore.domain.sparse import sparse, sparse_thing

if TYPE_CHECKING:
    from datetime import datetime

log = logging.getLogger(__name__)


class TypeMismatchPolicy(StrEnum):
    """What to do when both versions declare different ``type`` values."""

    MERGE = "merge"
    PREFER_EXISTING = "prefer-existing"
    REJECT = "reject"


def incoming_wins(existing: Thing, incoming: Thing) -> bool:
    """Return whether ``incoming`` takes precedence over ``existing``.

    Only a strictly later date wins. A missing date ranks below any date, and
    ties keep the stored version.
    """

    return _rank(incoming.date) > _rank(existing.date)


def _rank(value: datetime | None) -> tuple[int, datetime | None]:
    return (0, None) if value is None else (1, value)


def merge(
    existing: Thing | None,
    incoming: Thing,
    *,
    policy: TypeMismatchPolicy = TypeMismatchPolicy.MERGE,
) -> Thing:
    """Combine a stored entity with a newly imported one.

    The winner's non-empty fields are layered over the loser's non-empty
    fields, so a later but less complete record fills in without erasing
    data it does not carry.
    """

    if existing is None:
        return sparse_thing(incoming)

    if existing.id and incoming.id and existing.id != incoming.id:
        raise MergeConflict(
            f"Cannot merge {incoming.id!r} into {existing.id!r}",
            existing_type=existing.type,
            incoming_type=incoming.type,
        )

    mismatch = existing.type != incoming.type
    if mismatch:
        if policy is TypeMismatchPolicy.REJECT:
            raise MergeConflict(
                f"Type mismatch for {existing.id}: stored {existing.type!r}, "
                f"incoming {incoming.type!r}",
                existing_type=existing.type,
                incoming_type=incoming.type,
            )
        log.warning(
            "Merging %s across types: stored=%s incoming=%s policy=%s",
            existing.id,
            existing.type,
            incoming.type,
            policy.value,
        )

    if incoming_wins(existing, incoming):
        winner, loser = incoming, existing
    else:
        winner, loser = existing, incoming

    merged = {**sparse(loser.to_record()), **sparse(winner.to_record())}
    if mismatch and policy is TypeMismatchPolicy.PREFER_EXISTING:
        merged["type"] = existing.type
    return Thing.from_record(merged)
