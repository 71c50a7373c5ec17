"""JSON encoding shared by the storage backends."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, cast

from thingstore.domain.model.thing import Thing
from thingstore.domain.sparse import sparse


def encode_thing(thing: Thing) -> dict[str, Any]:
    """Return the sparse, JSON-native document for ``thing``."""

    return cast("dict[str, Any]", _jsonable(sparse(thing.to_record())))


def decode_thing(document: Mapping[str, Any]) -> Thing:
    return Thing.from_record(document)


def dumps_thing(thing: Thing) -> str:
    """Serialise ``thing`` in a stable, diff-friendly layout."""

    return json.dumps(encode_thing(thing), indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def dumps_line(thing: Thing) -> str:
    return json.dumps(encode_thing(thing), sort_keys=True, ensure_ascii=False)


def _jsonable(value: object) -> object:
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Mapping):
        items = cast("Mapping[object, object]", value)
        return {str(key): _jsonable(item) for key, item in items.items()}
    if isinstance(value, list | tuple):
        return [_jsonable(item) for item in cast("list[object]", value)]
    if isinstance(value, set | frozenset):
        return sorted((_jsonable(item) for item in cast("set[object]", value)), key=repr)
    return value
