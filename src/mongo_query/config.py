"""
Configuration for mongo-query.

Query defaults and connection settings, read from the environment so
services can tune them without code changes.

Environment variables:
    MONGO_QUERY_BATCH_SIZE: Default cursor batch size (default: 256).
    MONGO_QUERY_KEYWORDIZE: Whether decoded keys become keywords by
                            default ("true"/"false", default: true).
    MONGO_URL: Connection URI used by ``get_database``.
    MONGO_DB_NAME: Database name used by ``get_database``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping

from .types import ConfigError

if TYPE_CHECKING:
    from pymongo.database import Database

__all__ = ["QueryConfig", "get_config", "set_config", "get_database"]

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 256
DEFAULT_MONGO_URL = "mongodb://localhost:27017"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class QueryConfig:
    """
    Settings used when building and executing queries.

    Attributes:
        batch_size: Default cursor batch size for new query descriptors.
        keywordize: Default for decoding document keys into keywords.
        mongo_url: Connection URI for ``get_database``.
        database: Database name for ``get_database``.
    """

    batch_size: int = DEFAULT_BATCH_SIZE
    keywordize: bool = True
    mongo_url: str = DEFAULT_MONGO_URL
    database: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> QueryConfig:
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            QueryConfig with unset variables left at their defaults.

        Raises:
            ConfigError: If a variable is set to an invalid value.
        """
        env = os.environ if environ is None else environ

        batch_size = DEFAULT_BATCH_SIZE
        raw_batch_size = env.get("MONGO_QUERY_BATCH_SIZE")
        if raw_batch_size:
            try:
                batch_size = int(raw_batch_size)
            except ValueError as e:
                raise ConfigError(
                    f"MONGO_QUERY_BATCH_SIZE must be an integer, got {raw_batch_size!r}"
                ) from e
            if batch_size <= 0:
                raise ConfigError("MONGO_QUERY_BATCH_SIZE must be positive")

        keywordize = True
        raw_keywordize = env.get("MONGO_QUERY_KEYWORDIZE")
        if raw_keywordize:
            keywordize = _parse_bool("MONGO_QUERY_KEYWORDIZE", raw_keywordize)

        return cls(
            batch_size=batch_size,
            keywordize=keywordize,
            mongo_url=env.get("MONGO_URL") or DEFAULT_MONGO_URL,
            database=env.get("MONGO_DB_NAME") or None,
        )


_config: QueryConfig | None = None
_database: Database | None = None


def get_config() -> QueryConfig:
    """Return the active configuration, loading it from the environment once."""
    global _config
    if _config is None:
        _config = QueryConfig.from_env()
    return _config


def set_config(config: QueryConfig | None) -> None:
    """Replace the active configuration. ``None`` reloads from the environment on next use."""
    global _config, _database
    _config = config
    _database = None


def get_database(config: QueryConfig | None = None) -> Database:
    """
    Return the configured database, connecting on first use.

    Args:
        config: Settings to connect with. Defaults to ``get_config()``.
                Passing a config always creates a new client.

    Returns:
        A PyMongo database handle.

    Raises:
        ConfigError: If no database name is configured.
    """
    global _database
    if config is None and _database is not None:
        return _database

    settings = config or get_config()
    if not settings.database:
        raise ConfigError("Please set MONGO_DB_NAME in your environment variables.")

    from pymongo import MongoClient

    client: MongoClient = MongoClient(settings.mongo_url)
    database = client[settings.database]
    logger.info("Created client for database %s", settings.database)

    if config is None:
        _database = database
    return database
