"""Table definitions for the graph-backed store.

Every resolved collection gets its own document table; edges live in one
shared table. Tables are declared on demand because the set of collections
comes from the schema registry, not from this module.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Final

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Index,
    MetaData,
    String,
    Table,
    TypeDecorator,
)

NAMING_CONVENTION: Final[dict[str, str]] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def new_metadata() -> MetaData:
    return MetaData(naming_convention=NAMING_CONVENTION)


def document_table(metadata: MetaData, name: str) -> Table:
    """Return (declaring if needed) the document table for collection ``name``."""

    existing = metadata.tables.get(name)
    if existing is not None:
        return existing
    return Table(
        name,
        metadata,
        Column("key", String, primary_key=True),
        Column("id", String, nullable=False, index=True),
        Column("type", String, nullable=False, index=True),
        Column("date", UTCDateTime(), nullable=True),
        Column("document", JSON, nullable=False),
    )


def edge_table(metadata: MetaData, name: str) -> Table:
    """Return (declaring if needed) the shared edge table."""

    existing = metadata.tables.get(name)
    if existing is not None:
        return existing
    table = Table(
        name,
        metadata,
        Column("key", String, primary_key=True),
        Column("source", String, nullable=False),
        Column("target", String, nullable=False),
        Column("relation", String, nullable=False),
        Column("attributes", JSON, nullable=False, default=dict),
    )
    Index(f"ix_{name}_source_target", table.c.source, table.c.target)
    Index(f"ix_{name}_target", table.c.target)
    return table
