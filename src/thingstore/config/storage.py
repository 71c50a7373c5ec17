"""Data storage configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Final

from .env import optional_env_var
from .errors import ConfigurationError

APP_DIR_NAME: Final[str] = "thingstore"
DEFAULT_DB_FILENAME: Final[str] = "thingstore.db"
DEFAULT_BUCKETS_DIRNAME: Final[str] = "buckets"
DEFAULT_EDGE_TABLE: Final[str] = "links"


class StorageBackend(StrEnum):
    FILE = "file"
    GRAPH = "graph"

    @classmethod
    def parse(cls, value: str) -> StorageBackend:
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ConfigurationError(
                f"Unknown storage backend {value!r} (expected one of: {choices})"
            ) from None


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    backend: StorageBackend = StorageBackend.FILE
    database_filename: str = DEFAULT_DB_FILENAME
    buckets_dirname: str = DEFAULT_BUCKETS_DIRNAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def buckets_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.buckets_dirname

    def database_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    edge_table: str = DEFAULT_EDGE_TABLE


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config(*, backend: str | None = None) -> StorageConfig:
    env_dir = optional_env_var("THINGSTORE_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    backend_name = backend or optional_env_var("THINGSTORE_BACKEND") or StorageBackend.FILE
    return StorageConfig(data_dir=data_dir, backend=StorageBackend.parse(backend_name))


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    edge_table = optional_env_var("THINGSTORE_EDGE_TABLE") or DEFAULT_EDGE_TABLE
    env_uri = optional_env_var("DATABASE_URI")
    if env_uri:
        return DatabaseConfig(uri=env_uri, edge_table=edge_table)
    storage_config = storage or get_storage_config()
    return DatabaseConfig(uri=storage_config.database_uri(), edge_table=edge_table)
