"""Thing records, canonical ids and edges."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any, ClassVar, Final

from thingstore.domain.errors import IdentityError

DEFAULT_TYPE: Final[str] = "Thing"
ID_SEPARATOR: Final[str] = ":"

# Fixed namespace so edge keys stay stable across processes and releases.
EDGE_NAMESPACE: Final[uuid.UUID] = uuid.UUID("6f1d4a52-3c1e-5b8e-9a57-2f0c6d7e4b19")


def coerce_date(value: object) -> datetime | None:
    """Normalise a date-ish value to an aware UTC datetime.

    Naive datetimes are taken to be UTC; plain dates become midnight UTC.
    """

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, str):
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError as exc:
            raise ValueError(f"Invalid ISO date: {value!r}") from exc
        return coerce_date(parsed)
    raise TypeError(f"Unsupported date value: {type(value).__name__}")


@dataclass(kw_only=True, slots=True)
class Thing:
    """An open, partially typed record produced by an importer.

    The engine only looks at ``id``, ``type`` and ``date``. The descriptive
    fields are typed for importer convenience; anything else rides along in
    ``extra``.
    """

    KNOWN_FIELDS: ClassVar[tuple[str, ...]] = (
        "id",
        "type",
        "date",
        "name",
        "slug",
        "description",
        "url",
        "image",
        "keywords",
    )

    type: str = DEFAULT_TYPE
    id: str | None = None
    date: datetime | None = None
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    url: str | None = None
    image: str | None = None
    keywords: list[str] = field(default_factory=list[str])
    extra: dict[str, Any] = field(default_factory=dict[str, Any])

    def __post_init__(self) -> None:
        self.date = coerce_date(self.date)

    def to_record(self) -> dict[str, Any]:
        """Flatten known fields and ``extra`` into a single mapping."""

        record: dict[str, Any] = dict(self.extra)
        for name in self.KNOWN_FIELDS:
            record[name] = getattr(self, name)
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Thing:
        """Build a Thing, routing unknown keys into ``extra``."""

        known: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in record.items():
            if key in cls.KNOWN_FIELDS:
                known[key] = value
            else:
                extra[key] = value

        if known.get("type") in (None, ""):
            known["type"] = DEFAULT_TYPE
        if known.get("id") is not None:
            known["id"] = str(known["id"])
        keywords = known.get("keywords")
        if keywords is None:
            known.pop("keywords", None)
        elif isinstance(keywords, str):
            known["keywords"] = split_keywords(keywords)
        else:
            known["keywords"] = list(keywords)
        return cls(**known, extra=extra)


@dataclass(frozen=True, slots=True)
class CanonicalId:
    """A ``"<tag>:<key>"`` identity string split into its segments."""

    tag: str
    key: str

    def __post_init__(self) -> None:
        if not self.tag or not self.key:
            raise IdentityError("Canonical id segments must be non-empty")
        if ID_SEPARATOR in self.tag:
            raise IdentityError(f"Tag must not contain {ID_SEPARATOR!r}: {self.tag!r}")

    @classmethod
    def parse(cls, value: str) -> CanonicalId:
        tag, separator, key = value.partition(ID_SEPARATOR)
        if not separator:
            raise IdentityError(f"Not a canonical id: {value!r}")
        return cls(tag=tag, key=key)

    def __str__(self) -> str:
        return f"{self.tag}{ID_SEPARATOR}{self.key}"


def split_keywords(value: str) -> list[str]:
    """Split a comma-separated keyword string, dropping blank entries."""

    return [part.strip() for part in value.split(",") if part.strip()]


def edge_key(source: str, target: str, relation: str) -> str:
    """Deterministic key for a ``(source, target, relation)`` triple."""

    return str(uuid.uuid5(EDGE_NAMESPACE, "\x1f".join((source, target, relation))))


@dataclass(frozen=True, slots=True, kw_only=True)
class Edge:
    """A directed, typed relationship between two canonical ids."""

    source: str
    target: str
    relation: str
    attributes: Mapping[str, Any] = field(
        default_factory=dict[str, Any], compare=False, hash=False
    )

    def __post_init__(self) -> None:
        CanonicalId.parse(self.source)
        CanonicalId.parse(self.target)
        if not self.relation:
            raise ValueError("Edge relation must be non-empty")

    @property
    def key(self) -> str:
        return edge_key(self.source, self.target, self.relation)
