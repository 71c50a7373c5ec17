"""Bucketed flat-file entity store.

Layout: ``<root>/<collection>/<tag>/<key>.json``. One directory per resolved
collection; inside it one sub-directory per tag, so ids such as ``post:1`` and
``article:1`` that share the ``works`` collection never collide. Keys are
percent-encoded into file-system safe names.

Writes go to a temporary sibling and are moved into place with
``os.replace`` so a failed write never leaves a truncated record behind.
"""

from __future__ import annotations

import json
import logging
import os
from contextlib import suppress
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, cast
from urllib.parse import quote

from thingstore.adapters.codec import decode_thing, dumps_line, dumps_thing
from thingstore.domain.errors import IdentityError, SchemaResolutionError, StorageError
from thingstore.domain.model.thing import CanonicalId

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from thingstore.domain.model.schema import SchemaRegistry
    from thingstore.domain.model.thing import Thing

RECORD_SUFFIX: Final[str] = ".json"
_SAFE_CHARACTERS: Final[str] = "-_.@~"

log = logging.getLogger(__name__)


def key_to_filename(key: str) -> str:
    return quote(key, safe=_SAFE_CHARACTERS) + RECORD_SUFFIX


class FileBucketStore:
    """Entity store writing one JSON document per thing."""

    def __init__(self, root: Path, registry: SchemaRegistry) -> None:
        self.root = root
        self.registry = registry

    def bucket_path(self, collection: str) -> Path:
        return self.root / collection

    def path_for(self, thing_id: str) -> Path:
        canonical = CanonicalId.parse(thing_id)
        collection = self.registry.collection_for_tag(canonical.tag)
        return self.bucket_path(collection) / canonical.tag / key_to_filename(canonical.key)

    def get(self, thing_id: str) -> Thing | None:
        path = self.path_for(thing_id)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Failed to read {path}") from exc
        return decode_thing(self._load(text, path))

    def exists(self, thing_id: str) -> bool:
        return self.path_for(thing_id).is_file()

    def set(self, thing: Thing) -> None:
        path = self._target_path(thing)
        temporary = path.with_name(path.name + ".tmp")
        try:
            payload = dumps_thing(thing)
            if path.is_file() and path.read_text(encoding="utf-8") == payload:
                return
            path.parent.mkdir(parents=True, exist_ok=True)
            temporary.write_text(payload, encoding="utf-8")
            os.replace(temporary, path)
        except (OSError, TypeError, ValueError) as exc:
            _discard(temporary)
            raise StorageError(f"Failed to write {path}: {exc}") from exc
        log.debug("Wrote %s to %s", thing.id, path)

    def delete(self, thing_id: str) -> bool:
        path = self.path_for(thing_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"Failed to delete {path}") from exc
        return True

    def iter_collection(self, collection: str) -> Iterator[Thing]:
        if collection not in self.registry.collections():
            raise SchemaResolutionError(collection, "unknown collection")
        return self._read_bucket(self.bucket_path(collection))

    def _read_bucket(self, bucket: Path) -> Iterator[Thing]:
        if not bucket.is_dir():
            return
        for path in sorted(bucket.glob(f"*/*{RECORD_SUFFIX}")):
            try:
                text = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise StorageError(f"Failed to read {path}") from exc
            yield decode_thing(self._load(text, path))

    def export_collection(self, collection: str, destination: Path) -> int:
        """Write every thing in ``collection`` to an NDJSON file; return the count."""

        count = write_ndjson(self.iter_collection(collection), destination)
        log.info("Exported %s things from %s to %s", count, collection, destination)
        return count

    def _target_path(self, thing: Thing) -> Path:
        if not thing.id:
            raise IdentityError(f"Cannot store an unidentified {thing.type!r} record")
        collection = self.registry.resolve(thing.type).collection
        canonical = CanonicalId.parse(thing.id)
        if self.registry.collection_for_tag(canonical.tag) != collection:
            raise IdentityError(
                f"Id {thing.id!r} does not belong to collection {collection!r} of {thing.type!r}"
            )
        return self.bucket_path(collection) / canonical.tag / key_to_filename(canonical.key)

    @staticmethod
    def _load(text: str, path: Path) -> dict[str, Any]:
        try:
            loaded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Corrupt record at {path}") from exc
        if not isinstance(loaded, dict):
            raise StorageError(f"Record at {path} is not a JSON object")
        return cast("dict[str, Any]", loaded)


def read_ndjson(path: Path) -> Iterator[dict[str, Any]]:
    """Yield JSON objects from a newline-delimited JSON file, skipping blank lines."""

    try:
        with path.open(encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    loaded = json.loads(line)
                except json.JSONDecodeError as exc:
                    raise StorageError(f"Invalid JSON at {path}:{line_number}") from exc
                if not isinstance(loaded, dict):
                    raise StorageError(f"Line {line_number} of {path} is not a JSON object")
                yield cast("dict[str, Any]", loaded)
    except OSError as exc:
        raise StorageError(f"Failed to read {path}") from exc


def write_ndjson(things: Iterable[Thing], destination: Path) -> int:
    """Atomically write ``things`` as newline-delimited JSON; return the count."""

    count = 0
    temporary = destination.with_name(destination.name + ".tmp")
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with temporary.open("w", encoding="utf-8") as handle:
            for thing in things:
                handle.write(dumps_line(thing) + "\n")
                count += 1
        os.replace(temporary, destination)
    except StorageError:
        _discard(temporary)
        raise
    except (OSError, TypeError, ValueError) as exc:
        _discard(temporary)
        raise StorageError(f"Failed to write {destination}: {exc}") from exc
    return count


def _discard(temporary: Path) -> None:
    with suppress(OSError):
        temporary.unlink(missing_ok=True)
