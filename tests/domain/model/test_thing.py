from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from thingstore.domain.errors import IdentityError
from thingstore.domain.model import CanonicalId, Edge, Thing, coerce_date, edge_key


def test_coerce_date_normalises_to_utc() -> None:
    plus_two = timezone(timedelta(hours=2))

    assert coerce_date("2024-03-01T12:00:00Z") == datetime(2024, 3, 1, 12, tzinfo=UTC)
    assert coerce_date(datetime(2024, 3, 1, 14, tzinfo=plus_two)) == datetime(
        2024, 3, 1, 12, tzinfo=UTC
    )
    assert coerce_date(datetime(2024, 3, 1)) == datetime(2024, 3, 1, tzinfo=UTC)
    assert coerce_date(date(2024, 3, 1)) == datetime(2024, 3, 1, tzinfo=UTC)
    assert coerce_date("") is None
    assert coerce_date(None) is None


def test_coerce_date_rejects_garbage() -> None:
    with pytest.raises(ValueError, match="Invalid ISO date"):
        coerce_date("yesterday")
    with pytest.raises(TypeError):
        coerce_date(12.5)


def test_from_record_routes_unknown_fields_to_extra() -> None:
    thing = Thing.from_record(
        {"type": "Person", "id": 42, "name": "Ada", "keywords": "math", "born": 1815}
    )

    assert thing.id == "42"
    assert thing.keywords == ["math"]
    assert thing.extra == {"born": 1815}
    assert thing.to_record()["born"] == 1815


def test_from_record_defaults_type() -> None:
    assert Thing.from_record({"name": "Untyped"}).type == "Thing"
    assert Thing.from_record({"type": "", "name": "Blank"}).type == "Thing"


def test_thing_coerces_date_on_construction() -> None:
    thing = Thing(type="Event", date="2024-05-01")  # type: ignore[arg-type]

    assert thing.date == datetime(2024, 5, 1, tzinfo=UTC)


def test_canonical_id_parse_and_render() -> None:
    canonical = CanonicalId.parse("post:2024/hello:world")

    assert canonical.tag == "post"
    assert canonical.key == "2024/hello:world"
    assert str(canonical) == "post:2024/hello:world"


@pytest.mark.parametrize("value", ["nocolon", ":key", "tag:"])
def test_canonical_id_rejects_malformed_values(value: str) -> None:
    with pytest.raises(IdentityError):
        CanonicalId.parse(value)


def test_edge_key_is_deterministic_and_directional() -> None:
    forward = edge_key("person:ada", "org:ibm", "worksFor")

    assert forward == edge_key("person:ada", "org:ibm", "worksFor")
    assert forward != edge_key("org:ibm", "person:ada", "worksFor")
    assert forward != edge_key("person:ada", "org:ibm", "founded")


def test_edge_identity_ignores_attributes() -> None:
    first = Edge(source="person:ada", target="org:ibm", relation="worksFor")
    second = Edge(
        source="person:ada", target="org:ibm", relation="worksFor", attributes={"since": 1990}
    )

    assert first == second
    assert first.key == second.key


def test_edge_validates_endpoints() -> None:
    with pytest.raises(IdentityError):
        Edge(source="ada", target="org:ibm", relation="worksFor")
    with pytest.raises(ValueError, match="relation"):
        Edge(source="person:ada", target="org:ibm", relation="")


def test_from_record_splits_keyword_strings() -> None:
    thing = Thing.from_record({"keywords": "math, poetry , "})

    assert thing.keywords == ["math", "poetry"]
