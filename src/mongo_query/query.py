"""
Query - Composable query descriptors and their execution.

A ``QueryDescriptor`` is an immutable description of a find: filter,
projection, sort, paging and cursor modifiers. Every builder method
returns a new descriptor with one field changed, so partial queries can
be shared and extended freely. ``execute`` turns a bound descriptor into
a fully materialized list of decoded documents.

Example:
    from mongo_query import empty_query, with_collection

    recent = (
        empty_query()
        .with_filter({"status": "active"})
        .with_sort({"created_at": -1})
        .with_pagination(page=2, per_page=20)
    )

    docs = with_collection(db, "users", recent)
    for doc in docs:
        print(doc["name"])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Mapping

from bson.errors import BSONError
from pymongo.errors import PyMongoError
from pymongo.read_preferences import ReadPreference

from .config import get_config
from .conversion import decode, encode, normalize_field_selector
from .cursor import apply_options, closing_cursor
from .types import DecodeError, ExecutionError, MongoQueryError

if TYPE_CHECKING:
    from pymongo.collection import Collection
    from pymongo.cursor import Cursor
    from pymongo.database import Database

    from .types import CursorOptions, Filter, Projection, Sort

__all__ = [
    "QueryDescriptor",
    "empty_query",
    "execute",
    "with_collection",
]

logger = logging.getLogger(__name__)

_READ_PREFERENCES = {
    "primary": ReadPreference.PRIMARY,
    "primarypreferred": ReadPreference.PRIMARY_PREFERRED,
    "secondary": ReadPreference.SECONDARY,
    "secondarypreferred": ReadPreference.SECONDARY_PREFERRED,
    "nearest": ReadPreference.NEAREST,
}

# Hinting the _id index replaces the snapshot modifier MongoDB 4.0 removed.
_SNAPSHOT_HINT = [("_id", 1)]

# Driver and BSON failures plus the argument errors PyMongo raises for bad values.
_DRIVER_ERRORS = (PyMongoError, BSONError, TypeError, ValueError)


def _default_batch_size() -> int:
    return get_config().batch_size


def _default_keywordize() -> bool:
    return get_config().keywordize


@dataclass(frozen=True)
class QueryDescriptor:
    """
    Immutable description of a pending query.

    Create one with ``empty_query()`` and refine it with the ``with_*``
    builders. Builders never validate their arguments; bad values surface
    as ``ExecutionError`` when the query runs.

    Attributes:
        filter: Query filter. Empty matches every document.
        projection: Field selector; ``None`` returns all fields.
        sort: Sort specification, or ``None`` for natural order.
        skip: Number of documents to skip.
        limit: Maximum number of documents; 0 means unbounded.
        batch_size: Documents fetched per round trip.
        snapshot: Whether to traverse the ``_id`` index so no document is
                  returned twice.
        keywordize: Whether decoded keys become ``Keyword`` instances.
        hint: Index to use, as a key document or index name.
        read_preference: PyMongo read preference or mode name.
        max_time_ms: Server-side time limit in milliseconds.
        options: Cursor options accepted by ``apply_options``.
        collection: Collection the query runs against.
    """

    filter: Filter = field(default_factory=dict)
    projection: Projection = None
    sort: Sort = None
    skip: int = 0
    limit: int = 0
    batch_size: int = field(default_factory=_default_batch_size)
    snapshot: bool = False
    keywordize: bool = field(default_factory=_default_keywordize)
    hint: Any = None
    read_preference: Any = None
    max_time_ms: int | None = None
    options: CursorOptions = None
    collection: Collection | None = None

    def with_filter(self, filter: Filter) -> QueryDescriptor:
        """Return a copy matching ``filter``."""
        return replace(self, filter=filter)

    def with_projection(self, projection: Projection) -> QueryDescriptor:
        """Return a copy returning only the fields selected by ``projection``."""
        return replace(self, projection=projection)

    def with_sort(self, sort: Sort) -> QueryDescriptor:
        """Return a copy sorted by ``sort``."""
        return replace(self, sort=sort)

    def with_skip(self, skip: int) -> QueryDescriptor:
        """Return a copy skipping the first ``skip`` documents."""
        return replace(self, skip=skip)

    def with_limit(self, limit: int) -> QueryDescriptor:
        """Return a copy returning at most ``limit`` documents."""
        return replace(self, limit=limit)

    def with_batch_size(self, batch_size: int) -> QueryDescriptor:
        """Return a copy fetching ``batch_size`` documents per round trip."""
        return replace(self, batch_size=batch_size)

    def with_hint(self, hint: Any) -> QueryDescriptor:
        """Return a copy forcing the index described by ``hint``."""
        return replace(self, hint=hint)

    def with_snapshot(self, enabled: bool = True) -> QueryDescriptor:
        """Return a copy with snapshot mode turned on (or off)."""
        return replace(self, snapshot=enabled)

    def with_read_preference(self, read_preference: Any) -> QueryDescriptor:
        """Return a copy reading with ``read_preference``."""
        return replace(self, read_preference=read_preference)

    def with_max_time_ms(self, max_time_ms: int | None) -> QueryDescriptor:
        """Return a copy limited to ``max_time_ms`` of server time."""
        return replace(self, max_time_ms=max_time_ms)

    def with_cursor_options(self, options: CursorOptions) -> QueryDescriptor:
        """Return a copy applying ``options`` to the cursor."""
        return replace(self, options=options)

    def with_keywordize(self, keywordize: bool) -> QueryDescriptor:
        """Return a copy decoding keys as keywords (True) or strings (False)."""
        return replace(self, keywordize=keywordize)

    def with_pagination(self, page: int = 1, per_page: int = 10) -> QueryDescriptor:
        """
        Return a copy selecting one page of results.

        Args:
            page: Page number, starting at 1.
            per_page: Documents per page.

        Returns:
            Descriptor with ``skip = (page - 1) * per_page`` and
            ``limit = per_page``.
        """
        return replace(self, skip=(page - 1) * per_page, limit=per_page)

    def with_collection_handle(self, collection: Collection) -> QueryDescriptor:
        """Return a copy bound to ``collection``."""
        return replace(self, collection=collection)

    def execute(self) -> list[dict[str, Any]]:
        """Run this query. See ``execute``."""
        return execute(self)


def empty_query(collection: Collection | None = None) -> QueryDescriptor:
    """
    Create a descriptor that matches every document.

    Args:
        collection: Optional collection to bind right away.

    Returns:
        A new QueryDescriptor with default settings.
    """
    return QueryDescriptor(collection=collection)


def _index_spec(spec: Any) -> Any:
    """Turn a sort or hint specification into what PyMongo cursors accept."""
    if isinstance(spec, str):
        return str(spec)
    if isinstance(spec, Mapping):
        return list(encode(spec).items())
    if isinstance(spec, (list, tuple)):
        return [(encode(key), direction) for key, direction in spec]
    return spec


def _resolve_read_preference(read_preference: Any) -> Any:
    if not isinstance(read_preference, str):
        return read_preference
    mode = read_preference.lower().replace("_", "").replace("-", "")
    try:
        return _READ_PREFERENCES[mode]
    except KeyError:
        raise ValueError(f"Unknown read preference {read_preference!r}") from None


def _open_cursor(query: QueryDescriptor) -> Cursor:
    collection = query.collection
    if query.read_preference is not None:
        collection = collection.with_options(
            read_preference=_resolve_read_preference(query.read_preference)
        )

    projection = normalize_field_selector(query.projection) if query.projection else None
    return collection.find(encode(query.filter or {}), projection=projection)


def _apply_modifiers(cursor: Cursor, query: QueryDescriptor) -> None:
    cursor.limit(query.limit)
    cursor.skip(query.skip)
    cursor.batch_size(query.batch_size)

    if query.sort:
        cursor.sort(_index_spec(query.sort))
    if query.snapshot:
        cursor.hint(_SNAPSHOT_HINT)
    if query.hint:
        cursor.hint(_index_spec(query.hint))
    if query.max_time_ms is not None:
        cursor.max_time_ms(query.max_time_ms)
    if query.options is not None:
        apply_options(cursor, query.options)


def _drain(cursor: Cursor, keywordize: bool) -> list[dict[str, Any]]:
    results = []
    for position, document in enumerate(cursor):
        try:
            results.append(decode(document, keywordize))
        except Exception as e:
            raise DecodeError(
                f"Failed to decode document at position {position}: {e}",
                position=position,
                document=document,
            ) from e
    return results


def execute(query: QueryDescriptor) -> list[dict[str, Any]]:
    """
    Run a query and return every matching document, decoded.

    The read preference is bound to the collection and the projection is
    passed to ``find``; the remaining modifiers follow in a fixed order:
    limit, skip, batch size, sort, snapshot, hint, max time, cursor
    options. The cursor is always closed before this function returns,
    whether draining finished, failed, or was never started.

    Args:
        query: A descriptor bound to a collection.

    Returns:
        List of decoded documents in cursor order.

    Raises:
        ExecutionError: If the query is unbound, the driver rejects the
            query or a modifier, or the connection fails mid-iteration.
        DecodeError: If a returned document cannot be decoded.
    """
    if query.collection is None:
        raise ExecutionError("Query is not bound to a collection")

    logger.debug(
        "Executing query on %s: filter=%r limit=%s skip=%s",
        getattr(query.collection, "full_name", query.collection),
        query.filter,
        query.limit,
        query.skip,
    )

    try:
        cursor = _open_cursor(query)
    except _DRIVER_ERRORS as e:
        raise ExecutionError(str(e), code=getattr(e, "code", None)) from e

    with closing_cursor(cursor):
        try:
            _apply_modifiers(cursor, query)
            results = _drain(cursor, query.keywordize)
        except MongoQueryError:
            raise
        except _DRIVER_ERRORS as e:
            raise ExecutionError(str(e), code=getattr(e, "code", None)) from e

    logger.debug("Query returned %d documents", len(results))
    return results


def with_collection(
    db: Database,
    collection: str | Collection,
    query: QueryDescriptor | None = None,
) -> list[dict[str, Any]]:
    """
    Bind a query to a collection and execute it.

    Args:
        db: Database handle used to resolve collection names.
        collection: Collection name or an already resolved collection.
        query: Descriptor to run; defaults to ``empty_query()``.

    Returns:
        List of decoded documents.

    Example:
        docs = with_collection(
            db, "users", empty_query().with_filter({"age": {"$gte": 18}}).with_limit(5)
        )
    """
    handle = db[collection] if isinstance(collection, str) else collection
    query = query or empty_query()
    return execute(query.with_collection_handle(handle))
