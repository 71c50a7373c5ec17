"""Ports the domain expects adapters to implement."""

from __future__ import annotations

from .persistence import EntityStore, RelationshipStore

__all__ = ["EntityStore", "RelationshipStore"]
