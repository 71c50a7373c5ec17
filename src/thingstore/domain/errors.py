"""Error taxonomy shared by the resolution, merge and storage layers."""

from __future__ import annotations


class ThingStoreError(Exception):
    """Base class for all engine errors."""


class SchemaConfigurationError(ThingStoreError):
    """Raised when the schema forest itself is malformed."""


class SchemaResolutionError(ThingStoreError):
    """Raised when a type name cannot be resolved to a tag and collection."""

    def __init__(self, name: str, reason: str = "unknown type") -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Cannot resolve schema {name!r}: {reason}")


class IdentityError(ThingStoreError):
    """Raised when no canonical id can be derived or an id is malformed."""


class MergeConflict(ThingStoreError):
    """Raised when two records cannot be merged under the active policy."""

    def __init__(self, message: str, *, existing_type: str, incoming_type: str) -> None:
        self.existing_type = existing_type
        self.incoming_type = incoming_type
        super().__init__(message)


class StorageError(ThingStoreError):
    """Raised when a store backend fails to read or write."""


class UnsupportedOperationError(ThingStoreError):
    """Raised when a backend does not implement the requested operation."""


# Record-level failures: the batch ingestor skips the record and carries on.
RECORD_ERRORS: tuple[type[ThingStoreError], ...] = (
    SchemaResolutionError,
    IdentityError,
    MergeConflict,
)
