from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from thingstore.config import (
    ConfigurationError,
    StorageBackend,
    get_database_config,
    get_storage_config,
    storage,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "THINGSTORE_DATA_DIR",
        "THINGSTORE_BACKEND",
        "DATABASE_URI",
        "THINGSTORE_EDGE_TABLE",
    ):
        monkeypatch.delenv(name, raising=False)


def test_storage_config_prefers_explicit_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("THINGSTORE_DATA_DIR", str(custom))

    config = get_storage_config()

    assert config.resolve_data_dir() == custom.resolve()
    assert config.backend is StorageBackend.FILE


def test_storage_config_defaults_to_xdg_data_home(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    config = get_storage_config()

    assert config.data_dir == (tmp_path / storage.APP_DIR_NAME).resolve()


def test_backend_from_env_and_argument(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("THINGSTORE_BACKEND", "Graph")

    assert get_storage_config().backend is StorageBackend.GRAPH
    assert get_storage_config(backend="file").backend is StorageBackend.FILE


def test_unknown_backend_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="arango"):
        StorageBackend.parse("arango")


def test_buckets_path_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("THINGSTORE_DATA_DIR", str(tmp_path / "data-dir"))

    path = get_storage_config().buckets_path()

    assert path == (tmp_path / "data-dir" / storage.DEFAULT_BUCKETS_DIRNAME).resolve()
    assert path.parent.is_dir()


def test_database_config_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")
    monkeypatch.setenv("THINGSTORE_EDGE_TABLE", "edges")

    config = get_database_config()

    assert config.uri == "sqlite:///override.db"
    assert config.edge_table == "edges"


def test_database_config_defaults_to_sqlite_in_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("THINGSTORE_DATA_DIR", str(tmp_path / "data-dir"))

    config = get_database_config()

    expected_path = (tmp_path / "data-dir" / storage.DEFAULT_DB_FILENAME).resolve()
    assert config.uri == f"sqlite+pysqlite:///{expected_path}"
    assert config.edge_table == storage.DEFAULT_EDGE_TABLE
    assert expected_path.parent.exists()
