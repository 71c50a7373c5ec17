"""Importer-boundary coercion of raw records."""

from __future__ import annotations

from .schema import ThingPayload, thing_from_payload

__all__ = ["ThingPayload", "thing_from_payload"]
