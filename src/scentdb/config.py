"""
Environment-driven defaults for connectors, pools, and logging.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from .errors import ConfigurationError

SLOW_QUERY_MS_ENV = "SCENTDB_SLOW_QUERY_MS"
STATEMENT_TIMEOUT_MS_ENV = "SCENTDB_STATEMENT_TIMEOUT_MS"
MAX_CONNECTIONS_ENV = "SCENTDB_MAX_CONNECTIONS"
LOG_LEVEL_ENV = "SCENTDB_LOG_LEVEL"


def parse_int(value: str, *, key: str, minimum: int = 0) -> int:
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise ConfigurationError(f"Invalid integer value for '{key}': {value!r}") from exc
    if parsed < minimum:
        raise ConfigurationError(f"Value for '{key}' must be >= {minimum}: {value!r}")
    return parsed


def _parse_level(value: str) -> int:
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Invalid log level for '{LOG_LEVEL_ENV}': {value!r}")
    return level


@dataclass(frozen=True)
class Settings:
    slow_query_ms: int = 100
    statement_timeout_ms: int | None = None
    maximum_number_of_connections: int = 5
    log_level: int = logging.INFO

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()
        slow_query_ms = defaults.slow_query_ms
        statement_timeout_ms = defaults.statement_timeout_ms
        maximum = defaults.maximum_number_of_connections
        log_level = defaults.log_level
        if env.get(SLOW_QUERY_MS_ENV):
            slow_query_ms = parse_int(env[SLOW_QUERY_MS_ENV], key=SLOW_QUERY_MS_ENV)
        if env.get(STATEMENT_TIMEOUT_MS_ENV):
            statement_timeout_ms = parse_int(env[STATEMENT_TIMEOUT_MS_ENV], key=STATEMENT_TIMEOUT_MS_ENV)
        if env.get(MAX_CONNECTIONS_ENV):
            maximum = parse_int(env[MAX_CONNECTIONS_ENV], key=MAX_CONNECTIONS_ENV, minimum=1)
        if env.get(LOG_LEVEL_ENV):
            log_level = _parse_level(env[LOG_LEVEL_ENV])
        return cls(
            slow_query_ms=slow_query_ms,
            statement_timeout_ms=statement_timeout_ms,
            maximum_number_of_connections=maximum,
            log_level=log_level,
        )


def get_settings() -> Settings:
    """
    Read settings from the current environment. Values are not cached so
    tests can adjust the environment with ``monkeypatch``.
    """
    return Settings.from_env()
