"""Errors raised while reading settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from thingstore.domain.errors import ThingStoreError

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationError(ThingStoreError):
    """A setting is present but unusable (unknown backend, log level, table name)."""


class MissingConfigurationError(ConfigurationError):
    def __init__(self, names: Iterable[str]) -> None:
        self.names = tuple(sorted(names))
        super().__init__(f"Missing configuration for: {', '.join(self.names)}")
