"""Emptiness filter.

Produces the "sparse" view of a record: every value that carries no
information (``None``, ``""``, empty collections) is removed, recursively.
The merge engine relies on this to treat absent and blank fields alike.

Emptiness is decided per value kind. ``0``, ``False`` and whitespace-only
strings are real values and survive.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from thingstore.domain.model.thing import Thing

_COLLECTION_TYPES = (Mapping, list, tuple, set, frozenset)


def is_empty(value: object) -> bool:
    """Return whether ``value`` is one of the meaningless values."""

    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, _COLLECTION_TYPES):
        return len(cast("Any", value)) == 0
    return False


def sparse(record: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``record`` with empty values removed at every depth."""

    result: dict[str, Any] = {}
    for key, value in record.items():
        cleaned = _clean(value)
        if not is_empty(cleaned):
            result[key] = cleaned
    return result


def sparse_thing(thing: Thing) -> Thing:
    """Return ``thing`` rebuilt from its sparse record."""

    return Thing.from_record(sparse(thing.to_record()))


def _clean(value: object) -> object:
    if isinstance(value, Mapping):
        return sparse(cast("Mapping[str, Any]", value))
    if isinstance(value, list | tuple):
        items = cast("list[object] | tuple[object, ...]", value)
        kept = [cleaned for cleaned in map(_clean, items) if not is_empty(cleaned)]
        return tuple(kept) if isinstance(value, tuple) else kept
    if isinstance(value, set | frozenset):
        members = cast("set[object] | frozenset[object]", value)
        return type(members)(item for item in members if not is_empty(item))
    return value
