"""Canonical identity resolution.

Every stored entity is addressed by ``"<tag>:<key>"``. The tag comes from the
schema registry; the key is either supplied by the importer (an explicit id or
slug) or derived from the record's content so that re-importing the same data
yields the same id.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from dataclasses import replace
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Final

from thingstore.domain.errors import IdentityError
from thingstore.domain.model.thing import ID_SEPARATOR, CanonicalId
from thingstore.domain.sparse import sparse

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from thingstore.domain.model.schema import SchemaRegistry
    from thingstore.domain.model.thing import Thing

DEFAULT_KEY_FIELDS: Final[tuple[str, ...]] = ("id", "slug")
DEFAULT_VOLATILE_FIELDS: Final[frozenset[str]] = frozenset(
    {"imported_at", "fetched_at", "updated_at", "_rev"}
)
_DIGEST_SIZE: Final[int] = 10

log = logging.getLogger(__name__)


def hash_key(record: Mapping[str, Any]) -> str:
    """Return a short, stable content hash of ``record``.

    The record is serialised as canonical JSON (sorted keys, compact
    separators, ISO-8601 dates). The BLAKE2b digest is rendered as lowercase
    base32 so the result is safe in file names and document keys.
    """

    payload = json.dumps(
        record,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_json_default,
    )
    digest = hashlib.blake2b(payload.encode("utf-8"), digest_size=_DIGEST_SIZE).digest()
    return base64.b32encode(digest).decode("ascii").rstrip("=").lower()


def _json_default(value: object) -> object:
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, set | frozenset):
        return sorted(value, key=repr)
    raise TypeError(f"Cannot hash value of type {type(value).__name__}")


def to_id(registry: SchemaRegistry, type_name: str, key: object) -> str:
    """Build a canonical id for ``key`` under ``type_name`` (a type or a tag)."""

    key_text = str(key).strip() if key is not None else ""
    if not key_text:
        raise IdentityError(f"Empty key for {type_name!r}")
    return str(CanonicalId(tag=registry.resolve(type_name).tag, key=key_text))


class IdentityResolver:
    """Assign canonical ids to records."""

    def __init__(
        self,
        registry: SchemaRegistry,
        *,
        key_fields: tuple[str, ...] = DEFAULT_KEY_FIELDS,
        volatile_fields: Collection[str] = DEFAULT_VOLATILE_FIELDS,
    ) -> None:
        self.registry = registry
        self.key_fields = key_fields
        self.volatile_fields = frozenset(volatile_fields)

    def identify(self, thing: Thing) -> str:
        """Return the canonical id for ``thing``.

        Raises ``SchemaResolutionError`` when the type is unknown and
        ``IdentityError`` when neither a key nor hashable content exists.
        """

        tag = self.registry.resolve(thing.type).tag
        record = thing.to_record()

        candidate = self._key_candidate(record)
        if candidate is not None:
            return self._canonicalize(tag, candidate)

        content = {
            key: value
            for key, value in sparse(record).items()
            if key not in self.key_fields and key not in self.volatile_fields
        }
        # the type alone says nothing about which entity this is
        if set(content) <= {"type"}:
            raise IdentityError(f"No identifying content in {thing.type!r} record")
        try:
            key = hash_key(content)
        except (TypeError, ValueError) as exc:
            raise IdentityError(f"Cannot hash {thing.type!r} record: {exc}") from exc
        log.debug("Derived content key %s for %s record", key, thing.type)
        return str(CanonicalId(tag=tag, key=key))

    def assign(self, thing: Thing) -> Thing:
        """Return a copy of ``thing`` carrying its canonical id."""

        return replace(thing, id=self.identify(thing))

    def _key_candidate(self, record: Mapping[str, Any]) -> str | None:
        for field_name in self.key_fields:
            value = record.get(field_name)
            if value is None:
                continue
            text = str(value).strip()
            if text:
                return text
        return None

    def _canonicalize(self, tag: str, candidate: str) -> str:
        prefix, separator, remainder = candidate.partition(ID_SEPARATOR)
        if separator and self.registry.has_tag(prefix):
            # already canonical, e.g. an importer addressing a known entity
            return str(CanonicalId(tag=prefix, key=remainder))
        return str(CanonicalId(tag=tag, key=candidate))
