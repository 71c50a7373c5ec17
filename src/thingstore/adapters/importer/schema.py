"""Pydantic model coercing raw importer payloads into Things.

Importers emit whatever their source format yields: numeric ids, keyword
strings, date strings in assorted ISO flavours. The model only fixes the
shape of the fields the engine relies on and passes everything else through.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from thingstore.domain.model.thing import DEFAULT_TYPE, Thing, coerce_date, split_keywords

if TYPE_CHECKING:
    from collections.abc import Mapping


class ThingPayload(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    type: str = DEFAULT_TYPE
    id: str | None = None
    date: datetime | None = None
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    url: str | None = None
    image: str | None = None
    keywords: list[str] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, value: object) -> object:
        return DEFAULT_TYPE if value in (None, "") else value

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, value: object) -> object:
        if isinstance(value, str | date):
            return coerce_date(value)
        return value

    @field_validator("keywords", mode="before")
    @classmethod
    def _keywords(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return split_keywords(value)
        return value

    def to_thing(self) -> Thing:
        extra: dict[str, Any] = dict(self.__pydantic_extra__ or {})
        return Thing(
            type=self.type,
            id=self.id,
            date=self.date,
            name=self.name,
            slug=self.slug,
            description=self.description,
            url=self.url,
            image=self.image,
            keywords=list(self.keywords),
            extra=extra,
        )


def thing_from_payload(payload: Mapping[str, Any]) -> Thing:
    """Coerce a raw importer mapping; raises ``ValueError`` on malformed shapes."""

    try:
        return ThingPayload.model_validate(payload).to_thing()
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc
