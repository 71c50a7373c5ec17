"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging, parse_log_level
from .storage import (
    DatabaseConfig,
    StorageBackend,
    StorageConfig,
    get_database_config,
    get_storage_config,
)

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "StorageBackend",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_storage_config",
    "optional_env_var",
    "parse_log_level",
    "require_env_var",
    "require_env_vars",
]
