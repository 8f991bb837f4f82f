"""
mongo-query - Composable queries and native data conversion over PyMongo.

This package sits on top of PyMongo and provides:
- Conversion between Python values (dicts, lists, keywords, enums,
  fractions) and wire documents, in both directions
- Immutable, chainable query descriptors
- Query execution that always closes its cursor and returns decoded
  documents
- Named cursor options (tailable, no_timeout, ...)
- Find helpers for the simple cases

Example usage:
    from mongo_query import empty_query, get_database, with_collection

    db = get_database()  # MONGO_URL / MONGO_DB_NAME

    query = (
        empty_query()
        .with_filter({"status": "active"})
        .with_projection(["name", "email"])
        .with_sort({"name": 1})
        .with_pagination(page=1, per_page=25)
    )

    for user in with_collection(db, "users", query):
        print(user["name"])

    # Keys are keywords by default; turn that off per query
    rows = with_collection(db, "users", query.with_keywordize(False))
"""

from __future__ import annotations

__version__ = "0.1.0"

from .collection import (
    find,
    find_by_id,
    find_map_by_id,
    find_maps,
    find_one,
    find_one_as_map,
    find_seq,
)
from .config import QueryConfig, get_config, get_database, set_config
from .conversion import decode, encode, get_id, normalize_field_selector, to_object_id
from .cursor import (
    CURSOR_OPTIONS,
    add_option,
    apply_options,
    closing_cursor,
    format_as,
    get_options,
    make_cursor,
    remove_option,
    reset_options,
)
from .query import QueryDescriptor, empty_query, execute, with_collection
from .types import (
    ConfigError,
    DecodeError,
    ExecutionError,
    Keyword,
    MongoQueryError,
)

__all__ = [
    # Conversion
    "encode",
    "decode",
    "normalize_field_selector",
    "to_object_id",
    "get_id",
    "Keyword",
    # Queries
    "QueryDescriptor",
    "empty_query",
    "execute",
    "with_collection",
    # Cursors
    "CURSOR_OPTIONS",
    "make_cursor",
    "add_option",
    "remove_option",
    "apply_options",
    "reset_options",
    "get_options",
    "format_as",
    "closing_cursor",
    # Find helpers
    "find",
    "find_maps",
    "find_seq",
    "find_one",
    "find_one_as_map",
    "find_by_id",
    "find_map_by_id",
    # Configuration
    "QueryConfig",
    "get_config",
    "set_config",
    "get_database",
    # Exceptions
    "MongoQueryError",
    "ConfigError",
    "ExecutionError",
    "DecodeError",
    # Version
    "__version__",
]
