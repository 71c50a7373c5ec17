"""SQLAlchemy adapter package: the graph-backed entity store."""

from __future__ import annotations

from .mappings import NAMING_CONVENTION, UTCDateTime, document_table, edge_table, new_metadata
from .store import SqlAlchemyGraphStore, create_graph_store, document_key, upsert_statement

__all__ = [
    "NAMING_CONVENTION",
    "SqlAlchemyGraphStore",
    "UTCDateTime",
    "create_graph_store",
    "document_key",
    "document_table",
    "edge_table",
    "new_metadata",
    "upsert_statement",
]
