"""
Collection - Find helpers taking a database and collection name.

Thin read-path functions for callers who do not need the full query
builder. ``find`` hands back a raw cursor the caller must close; the
other helpers drain and close the cursor themselves and return plain
Python data.

Example:
    users = find_maps(db, "users", {"status": "active"}, ["name", "email"])
    alice = find_one_as_map(db, "users", {"name": "Alice"})
    by_id = find_map_by_id(db, "users", alice["_id"])
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .conversion import decode, encode, normalize_field_selector
from .cursor import closing_cursor, make_cursor

if TYPE_CHECKING:
    from pymongo.cursor import Cursor
    from pymongo.database import Database

    from .types import Filter, Projection

__all__ = [
    "find",
    "find_maps",
    "find_seq",
    "find_one",
    "find_one_as_map",
    "find_by_id",
    "find_map_by_id",
]


def find(
    db: Database,
    collection: str,
    filter: Filter | None = None,
    fields: Projection = None,
) -> Cursor:
    """
    Query a collection and return the raw cursor.

    The caller owns the cursor and must close it. Use ``find_maps`` to
    get decoded documents with the cursor closed for you.

    Args:
        db: Database handle.
        collection: Collection name.
        filter: Query filter.
        fields: Field selector.

    Returns:
        A PyMongo cursor over raw documents.
    """
    return make_cursor(db, collection, filter, fields)


def find_maps(
    db: Database,
    collection: str,
    filter: Filter | None = None,
    fields: Projection = None,
    keywordize: bool = True,
) -> list[dict[str, Any]]:
    """
    Query a collection and return decoded documents.

    Args:
        db: Database handle.
        collection: Collection name.
        filter: Query filter.
        fields: Field selector.
        keywordize: Whether decoded keys become keywords.

    Returns:
        List of native documents.
    """
    with closing_cursor(find(db, collection, filter, fields)) as cursor:
        return [decode(document, keywordize) for document in cursor]


def find_seq(
    db: Database,
    collection: str,
    filter: Filter | None = None,
    fields: Projection = None,
) -> list[Any]:
    """Query a collection and return the raw documents as a list."""
    with closing_cursor(find(db, collection, filter, fields)) as cursor:
        return list(cursor)


def find_one(
    db: Database,
    collection: str,
    filter: Filter | None = None,
    fields: Projection = None,
) -> Any | None:
    """
    Return the first raw document matching ``filter``.

    Args:
        db: Database handle.
        collection: Collection name.
        filter: Query filter.
        fields: Field selector.

    Returns:
        The raw document, or None when nothing matches.
    """
    projection = normalize_field_selector(fields) if fields else None
    return db[str(collection)].find_one(encode(filter or {}), projection=projection)


def find_one_as_map(
    db: Database,
    collection: str,
    filter: Filter | None = None,
    fields: Projection = None,
    keywordize: bool = True,
) -> dict[str, Any] | None:
    """Return the first document matching ``filter``, decoded, or None."""
    return decode(find_one(db, collection, filter, fields), keywordize)


def find_by_id(
    db: Database,
    collection: str,
    id: Any,
    fields: Projection = None,
) -> Any | None:
    """
    Return the raw document whose ``_id`` is ``id``.

    Raises:
        ValueError: If ``id`` is None.
    """
    if id is None:
        raise ValueError("id must not be None")
    return find_one(db, collection, {"_id": id}, fields)


def find_map_by_id(
    db: Database,
    collection: str,
    id: Any,
    fields: Projection = None,
    keywordize: bool = True,
) -> dict[str, Any] | None:
    """Return the document whose ``_id`` is ``id``, decoded, or None."""
    return decode(find_by_id(db, collection, id, fields), keywordize)
