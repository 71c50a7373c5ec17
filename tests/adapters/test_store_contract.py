from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from thingstore.domain.errors import IdentityError, SchemaResolutionError, StorageError
from thingstore.domain.sparse import sparse_thing
from tests.helpers.things import make_thing

if TYPE_CHECKING:
    from thingstore.adapters.filesystem import FileBucketStore
    from thingstore.adapters.sqlalchemy import SqlAlchemyGraphStore

    type AnyStore = FileBucketStore | SqlAlchemyGraphStore


def test_get_after_set_returns_sparse_thing(any_store: AnyStore) -> None:
    thing = make_thing(
        id="person:ada",
        day=3,
        description="",
        keywords=["math", "computing"],
        born=1815,
        links={"wiki": "https://en.wikipedia.org/wiki/Ada_Lovelace", "blank": ""},
    )

    any_store.set(thing)

    assert any_store.get("person:ada") == sparse_thing(thing)


def test_set_is_idempotent(any_store: AnyStore) -> None:
    thing = make_thing(id="person:ada")

    any_store.set(thing)
    any_store.set(thing)

    assert [stored.id for stored in any_store.iter_collection("things")] == ["person:ada"]


def test_set_overwrites_previous_version(any_store: AnyStore) -> None:
    any_store.set(make_thing(id="person:ada", description="First"))
    any_store.set(make_thing(id="person:ada", description="Second"))

    stored = any_store.get("person:ada")
    assert stored is not None
    assert stored.description == "Second"


def test_missing_thing(any_store: AnyStore) -> None:
    assert any_store.get("person:nobody") is None
    assert not any_store.exists("person:nobody")


def test_exists_and_delete(any_store: AnyStore) -> None:
    any_store.set(make_thing(id="person:ada"))

    assert any_store.exists("person:ada")
    assert any_store.delete("person:ada")
    assert not any_store.exists("person:ada")
    assert not any_store.delete("person:ada")


def test_tags_sharing_a_collection_do_not_collide(any_store: AnyStore) -> None:
    any_store.set(make_thing("A post", type_="SocialMediaPosting", id="post:1"))
    any_store.set(make_thing("An article", type_="Article", id="article:1"))

    post = any_store.get("post:1")
    article = any_store.get("article:1")
    assert post is not None
    assert article is not None
    assert (post.name, article.name) == ("A post", "An article")
    assert sorted(thing.id or "" for thing in any_store.iter_collection("works")) == [
        "article:1",
        "post:1",
    ]


def test_keys_with_separators_round_trip(any_store: AnyStore) -> None:
    thing_id = "post:https://example.org/2024/01/hello?x=1"
    any_store.set(make_thing("Hello", type_="SocialMediaPosting", id=thing_id))

    stored = any_store.get(thing_id)

    assert stored is not None
    assert stored.id == thing_id


def test_collections_are_separate(any_store: AnyStore) -> None:
    any_store.set(make_thing(id="person:ada"))
    any_store.set(make_thing("Dune", type_="Book", id="book:dune"))

    assert [thing.id for thing in any_store.iter_collection("products")] == ["book:dune"]
    assert [thing.id for thing in any_store.iter_collection("events")] == []


def test_set_rejects_unidentified_things(any_store: AnyStore) -> None:
    with pytest.raises(IdentityError):
        any_store.set(make_thing())


def test_set_rejects_ids_from_another_collection(any_store: AnyStore) -> None:
    with pytest.raises(IdentityError, match="does not belong"):
        any_store.set(make_thing(id="post:1"))


def test_unserialisable_values_are_storage_errors(any_store: AnyStore) -> None:
    with pytest.raises(StorageError):
        any_store.set(make_thing(id="person:ada", blob=b"\x00"))

    assert not any_store.exists("person:ada")


@pytest.mark.parametrize("collection", ["links", "typo"])
def test_unknown_collections_are_rejected(any_store: AnyStore, collection: str) -> None:
    with pytest.raises(SchemaResolutionError, match="unknown collection"):
        any_store.iter_collection(collection)
