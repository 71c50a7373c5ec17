"""Shared logging helpers."""

from __future__ import annotations

import logging
from typing import Final

from .env import optional_env_var
from .errors import ConfigurationError

LOG_LEVEL_ENV: Final[str] = "THINGSTORE_LOG_LEVEL"


def parse_log_level(value: str) -> int:
    """Translate a level name (``debug``) or number (``10``) to a logging level."""

    if value.isdigit():
        return int(value)
    level = logging.getLevelNamesMapping().get(value.upper())
    if level is None:
        raise ConfigurationError(f"Unknown log level: {value}")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with a terse CLI format.

    Without an explicit ``level`` the ``THINGSTORE_LOG_LEVEL`` environment variable
    is honoured, falling back to INFO. Pass ``force=True`` to reconfigure during
    tests or specialised entry points.
    """

    if level is None:
        configured = optional_env_var(LOG_LEVEL_ENV)
        level = parse_log_level(configured) if configured else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
