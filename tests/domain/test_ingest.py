from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from thingstore.adapters.importer import thing_from_payload
from thingstore.domain.errors import (
    IdentityError,
    MergeConflict,
    SchemaResolutionError,
    StorageError,
    UnsupportedOperationError,
)
from thingstore.domain.ingest import IngestStatus, ThingIngestor
from thingstore.domain.merge import TypeMismatchPolicy
from thingstore.domain.model import Thing
from tests.helpers.things import at, make_thing

if TYPE_CHECKING:
    from thingstore.adapters.filesystem import FileBucketStore
    from thingstore.adapters.sqlalchemy import SqlAlchemyGraphStore


def test_ingest_creates_then_merges(any_store: FileBucketStore | SqlAlchemyGraphStore) -> None:
    ingestor = ThingIngestor(any_store)

    created = ingestor.ingest({"type": "Person", "id": "ada", "name": "Ada", "date": at(1)})
    merged = ingestor.ingest(
        {"type": "Person", "id": "ada", "description": "Mathematician", "date": at(2)}
    )

    assert created.status is IngestStatus.CREATED
    assert merged.status is IngestStatus.MERGED
    stored = any_store.get("person:ada")
    assert stored is not None
    assert stored.name == "Ada"
    assert stored.description == "Mathematician"
    assert stored.date == at(2)


def test_reimport_is_unchanged(any_store: FileBucketStore | SqlAlchemyGraphStore) -> None:
    ingestor = ThingIngestor(any_store)
    record = {"type": "Person", "name": "Ada", "born": 1815, "date": at(1)}

    first = ingestor.ingest(record)
    second = ingestor.ingest(dict(reversed(list(record.items()))))

    assert first.status is IngestStatus.CREATED
    assert second.status is IngestStatus.UNCHANGED
    assert first.id == second.id


def test_older_import_only_fills_gaps(any_store: FileBucketStore | SqlAlchemyGraphStore) -> None:
    ingestor = ThingIngestor(any_store)
    ingestor.ingest(make_thing(id="ada", day=5, description="Current"))

    outcome = ingestor.ingest(
        make_thing(id="ada", day=1, description="Old", url="https://a.example")
    )

    assert outcome.status is IngestStatus.MERGED
    assert outcome.thing is not None
    assert outcome.thing.description == "Current"
    assert outcome.thing.url == "https://a.example"
    assert outcome.thing.date == at(5)


@pytest.mark.parametrize(
    ("record", "error"),
    [
        ({"type": "Spaceship", "id": "x"}, SchemaResolutionError),
        ({"type": "Person"}, IdentityError),
        ({"type": "Person", "date": "not a date", "name": "Ada"}, IdentityError),
    ],
)
def test_bad_records_are_skipped(
    file_store: FileBucketStore,
    record: dict[str, object],
    error: type[Exception],
) -> None:
    outcome = ThingIngestor(file_store).ingest(record)

    assert outcome.status is IngestStatus.SKIPPED
    assert not outcome.ok
    assert isinstance(outcome.error, error)


def test_rejected_type_mismatch_is_skipped(file_store: FileBucketStore) -> None:
    ingestor = ThingIngestor(file_store, policy=TypeMismatchPolicy.REJECT)
    ingestor.ingest(make_thing(type_="SocialMediaPosting", id="hello"))

    outcome = ingestor.ingest(make_thing(type_="BlogPosting", id="hello"))

    assert outcome.status is IngestStatus.SKIPPED
    assert isinstance(outcome.error, MergeConflict)
    stored = file_store.get("post:hello")
    assert stored is not None
    assert stored.type == "SocialMediaPosting"


def test_ingest_many_continues_past_failures(file_store: FileBucketStore) -> None:
    records: list[Thing | dict[str, object]] = [
        make_thing(id="ada"),
        {"type": "Spaceship", "id": "x"},
        make_thing("Grace Hopper", id="grace"),
        make_thing(id="ada"),
    ]

    summary = ThingIngestor(file_store).ingest_many(records)

    assert (summary.created, summary.merged, summary.unchanged, summary.skipped) == (2, 0, 1, 1)
    assert summary.stored == 2
    assert [outcome.status for outcome in summary.outcomes] == [
        IngestStatus.CREATED,
        IngestStatus.SKIPPED,
        IngestStatus.CREATED,
        IngestStatus.UNCHANGED,
    ]


def test_storage_errors_propagate(file_store: FileBucketStore) -> None:
    file_store.root.parent.mkdir(parents=True, exist_ok=True)
    file_store.root.write_text("not a directory", encoding="utf-8")

    with pytest.raises(StorageError):
        ThingIngestor(file_store).ingest(make_thing(id="ada"))


def test_ingestor_links_on_graph_store(graph_store: SqlAlchemyGraphStore) -> None:
    ingestor = ThingIngestor(graph_store)
    ada = ingestor.ingest(make_thing(id="ada")).thing
    ibm = ingestor.ingest(make_thing("IBM", type_="Organization", id="ibm")).thing
    assert ada is not None
    assert ibm is not None

    edge = ingestor.link(ada, "worksFor", ibm)

    assert edge.source == "person:ada"
    assert edge.target == "org:ibm"
    assert ingestor.unlink(ada, ibm) == 1


def test_ingestor_link_on_file_store_is_unsupported(file_store: FileBucketStore) -> None:
    ingestor = ThingIngestor(file_store)

    with pytest.raises(UnsupportedOperationError):
        ingestor.link("person:ada", "worksFor", "org:ibm")


def test_unhashable_record_is_skipped_and_batch_continues(file_store: FileBucketStore) -> None:
    summary = ThingIngestor(file_store).ingest_many(
        [make_thing(price=Decimal("1.5")), make_thing("Grace Hopper", id="grace")]
    )

    assert [outcome.status for outcome in summary.outcomes] == [
        IngestStatus.SKIPPED,
        IngestStatus.CREATED,
    ]
    assert isinstance(summary.outcomes[0].error, IdentityError)
    assert file_store.exists("person:grace")


def test_keyword_strings_identify_alike_across_coercers(file_store: FileBucketStore) -> None:
    record = {"type": "Person", "name": "Ada", "keywords": "math, poetry"}

    plain = ThingIngestor(file_store).ingest(record)
    validated = ThingIngestor(file_store, coerce=thing_from_payload).ingest(record)

    assert plain.id == validated.id
    assert validated.status is IngestStatus.UNCHANGED
