"""Inheritance-aware schema registry.

A static forest of named types. Each type may declare a short ``tag`` (used in
canonical ids) and a storage ``collection``; whatever it leaves out is
inherited from the nearest ancestor that declares it. The two properties are
inherited independently and need not come from the same ancestor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from thingstore.domain.errors import SchemaConfigurationError, SchemaResolutionError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


@dataclass(frozen=True, slots=True, kw_only=True)
class SchemaNode:
    """A node in the type forest."""

    name: str
    parent: str | None = None
    tag: str | None = None
    collection: str | None = None
    # not part of Schema.org; exposed as its parent when rendering structured data
    is_custom: bool = False


@dataclass(frozen=True, slots=True)
class ResolvedSchema:
    name: str
    tag: str
    collection: str


class SchemaRegistry:
    """Immutable registry resolving type names to ``(tag, collection)``.

    Resolution for every node is computed once at construction. Cycles and
    dangling parent references are configuration errors and fail construction.
    A node whose chain never reaches a tag or collection fails at ``resolve``
    time, or at construction when ``strict`` is set.
    """

    def __init__(self, nodes: Iterable[SchemaNode], *, strict: bool = False) -> None:
        self._nodes: dict[str, SchemaNode] = {}
        for node in nodes:
            if node.name in self._nodes:
                raise SchemaConfigurationError(f"Duplicate schema name: {node.name!r}")
            self._nodes[node.name] = node

        for node in self._nodes.values():
            if node.parent is not None and node.parent not in self._nodes:
                raise SchemaConfigurationError(
                    f"Schema {node.name!r} names unknown parent {node.parent!r}"
                )

        self._inherited: dict[str, tuple[str | None, str | None]] = {}
        for name in self._nodes:
            self._walk(name)

        self._resolved: dict[str, ResolvedSchema] = {}
        for name, (tag, collection) in self._inherited.items():
            if tag is not None and collection is not None:
                self._resolved[name] = ResolvedSchema(name=name, tag=tag, collection=collection)

        if strict:
            unresolved = sorted(set(self._nodes) - set(self._resolved))
            if unresolved:
                raise SchemaConfigurationError(
                    f"Schemas without a reachable tag and collection: {', '.join(unresolved)}"
                )

        self._by_tag: dict[str, ResolvedSchema] = {}
        self._collection_by_tag: dict[str, str] = {}
        for resolved in self._resolved.values():
            known = self._collection_by_tag.setdefault(resolved.tag, resolved.collection)
            if known != resolved.collection:
                raise SchemaConfigurationError(
                    f"Tag {resolved.tag!r} maps to collections {known!r} and "
                    f"{resolved.collection!r}"
                )
            if self._nodes[resolved.name].tag == resolved.tag:
                self._by_tag.setdefault(resolved.tag, resolved)

    def _walk(self, name: str) -> None:
        path: list[SchemaNode] = []
        visited: set[str] = set()
        current: str | None = name
        while current is not None and current not in self._inherited:
            if current in visited:
                chain = " -> ".join([*(node.name for node in path), current])
                raise SchemaConfigurationError(f"Schema inheritance cycle: {chain}")
            visited.add(current)
            node = self._nodes[current]
            path.append(node)
            current = node.parent

        tag, collection = self._inherited.get(current, (None, None)) if current else (None, None)
        for node in reversed(path):
            tag = node.tag or tag
            collection = node.collection or collection
            self._inherited[node.name] = (tag, collection)

    def resolve(self, name: str) -> ResolvedSchema:
        """Resolve a type name (or a tag) to its tag and collection."""

        resolved = self._resolved.get(name)
        if resolved is not None:
            return resolved
        if name in self._inherited:
            tag, collection = self._inherited[name]
            missing = [
                label for label, value in (("tag", tag), ("collection", collection)) if not value
            ]
            raise SchemaResolutionError(
                name, f"no {' or '.join(missing)} reachable through the parent chain"
            )
        by_tag = self._by_tag.get(name)
        if by_tag is not None:
            return by_tag
        raise SchemaResolutionError(name)

    def collection_for_tag(self, tag: str) -> str:
        try:
            return self._collection_by_tag[tag]
        except KeyError:
            raise SchemaResolutionError(tag, "unknown tag") from None

    def has_tag(self, tag: str) -> bool:
        return tag in self._collection_by_tag

    def tags(self) -> frozenset[str]:
        return frozenset(self._collection_by_tag)

    def collections(self) -> frozenset[str]:
        return frozenset(self._collection_by_tag.values())

    def ancestors(self, name: str) -> tuple[str, ...]:
        """Return ``name`` followed by its parents, nearest first."""

        if name not in self._nodes:
            raise SchemaResolutionError(name)
        chain: list[str] = []
        current: str | None = name
        while current is not None:
            chain.append(current)
            current = self._nodes[current].parent
        return tuple(chain)

    def is_a(self, name: str, ancestor: str) -> bool:
        return ancestor in self.ancestors(name)

    def extend(self, nodes: Iterable[SchemaNode], *, strict: bool = False) -> SchemaRegistry:
        """Return a new registry with ``nodes`` added to this forest."""

        return SchemaRegistry([*self._nodes.values(), *nodes], strict=strict)

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __iter__(self) -> Iterator[SchemaNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)
