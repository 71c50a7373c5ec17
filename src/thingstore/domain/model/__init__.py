"""Public domain model surface."""

from __future__ import annotations

from thingstore.domain.model.catalog import DEFAULT_SCHEMAS, default_registry
from thingstore.domain.model.schema import ResolvedSchema, SchemaNode, SchemaRegistry
from thingstore.domain.model.thing import (
    DEFAULT_TYPE,
    ID_SEPARATOR,
    CanonicalId,
    Edge,
    Thing,
    coerce_date,
    edge_key,
)

__all__ = [  # noqa: RUF022
    # records
    "Thing",
    "CanonicalId",
    "Edge",
    "edge_key",
    "coerce_date",
    "DEFAULT_TYPE",
    "ID_SEPARATOR",
    # schema
    "SchemaNode",
    "SchemaRegistry",
    "ResolvedSchema",
    "DEFAULT_SCHEMAS",
    "default_registry",
]
