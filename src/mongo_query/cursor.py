"""
Cursor - Helpers for PyMongo cursors.

Creates raw cursors for the low-level find path, reads and changes a
cursor's query flags by name, and closes cursors without letting a
failed close hide the result or error already in flight.

Option names may be written in snake case (``no_timeout``), kebab case
(``no-timeout``) or the compact historical form (``notimeout``).
Unknown names are ignored rather than rejected, so option sets written
for newer servers keep working.

Example:
    cursor = make_cursor(db, "events", {"kind": "audit"})
    apply_options(cursor, {"no_timeout": True, "tailable": False})
    get_options(cursor)
    # {'await_data': False, 'no_timeout': True, ...}
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Mapping

from .conversion import decode, encode, normalize_field_selector

if TYPE_CHECKING:
    from pymongo.cursor import Cursor
    from pymongo.database import Database

    from .types import CursorOptions, Filter, Projection

__all__ = [
    "CURSOR_OPTIONS",
    "make_cursor",
    "add_option",
    "remove_option",
    "apply_options",
    "reset_options",
    "get_options",
    "format_as",
    "closing_cursor",
]

logger = logging.getLogger(__name__)

# OP_QUERY flag bits, as understood by Cursor.add_option/remove_option.
# Exhaust is left out on purpose: it cannot be toggled on a live cursor.
CURSOR_OPTIONS: dict[str, int] = {
    "await_data": 32,
    "no_timeout": 16,
    "oplog_replay": 8,
    "partial": 128,
    "secondary_ok": 4,
    "tailable": 2,
}

_ALIASES = {
    "slave_ok": "secondary_ok",
}

_COMPACT_NAMES = {name.replace("_", ""): name for name in CURSOR_OPTIONS}
_COMPACT_NAMES.update({alias.replace("_", ""): name for alias, name in _ALIASES.items()})


def _option_mask(name: Any) -> int:
    """Return the flag bit for an option name, or 0 when the name is unknown."""
    if not isinstance(name, str):
        return 0
    compact = name.strip().lower().replace("-", "").replace("_", "")
    canonical = _COMPACT_NAMES.get(compact)
    return CURSOR_OPTIONS[canonical] if canonical else 0


def _query_flags(cursor: Cursor) -> int:
    # Renamed from the name-mangled attribute in PyMongo 4.9.
    flags = getattr(cursor, "_query_flags", None)
    if flags is None:
        flags = getattr(cursor, "_Cursor__query_flags", 0)
    return flags


def make_cursor(
    db: Database,
    collection: str,
    filter: Filter | None = None,
    fields: Projection = None,
) -> Cursor:
    """
    Open a raw cursor on a collection.

    The caller owns the returned cursor and is responsible for closing it
    (use ``closing_cursor`` or the cursor's own context manager).

    Args:
        db: Database handle.
        collection: Collection name.
        filter: Query filter; matches everything when omitted.
        fields: Field selector; returns all fields when omitted.

    Returns:
        A PyMongo cursor yielding raw documents.
    """
    projection = normalize_field_selector(fields) if fields else None
    return db[str(collection)].find(encode(filter or {}), projection=projection)


def add_option(cursor: Cursor, name: str) -> Cursor:
    """Enable a single named option. Unknown names are ignored."""
    mask = _option_mask(name)
    if mask:
        cursor.add_option(mask)
    return cursor


def remove_option(cursor: Cursor, name: str) -> Cursor:
    """Disable a single named option. Unknown names are ignored."""
    mask = _option_mask(name)
    if mask:
        cursor.remove_option(mask)
    return cursor


def apply_options(cursor: Cursor, options: CursorOptions) -> Cursor:
    """
    Apply an option set to a cursor.

    Args:
        cursor: The cursor to change.
        options: One of
            - a mapping of option name to bool: true enables, anything
              else disables;
            - a list, tuple or set of option names to enable;
            - an integer bitmask OR-ed into the cursor's flags;
            - a single option name to enable.
            Any other value leaves the cursor untouched.

    Returns:
        The same cursor, for chaining.

    Example:
        apply_options(cursor, {"no_timeout": True, "tailable": False})
        apply_options(cursor, ["no_timeout", "partial"])
        apply_options(cursor, 16)
        apply_options(cursor, "no_timeout")
    """
    if isinstance(options, Mapping):
        for name, enabled in options.items():
            if enabled is True:
                add_option(cursor, name)
            else:
                remove_option(cursor, name)

    elif isinstance(options, (list, tuple, set, frozenset)):
        for name in options:
            add_option(cursor, name)

    elif isinstance(options, bool):
        logger.debug("Ignoring boolean cursor options %r", options)

    elif isinstance(options, int):
        cursor.add_option(options)

    elif isinstance(options, str):
        add_option(cursor, options)

    else:
        logger.debug("Ignoring unsupported cursor options %r", options)

    return cursor


def reset_options(cursor: Cursor) -> Cursor:
    """
    Clear every query flag and return the cursor.

    The driver default is a non-tailable cursor with no flags set, so
    reset means all bits cleared, including flags the cursor was created
    with (for example through ``cursor_type`` or ``no_cursor_timeout``).
    """
    flags = _query_flags(cursor)
    if flags:
        cursor.remove_option(flags)
    return cursor


def get_options(cursor: Cursor) -> dict[str, bool]:
    """
    Read back the state of every known option.

    Args:
        cursor: The cursor to inspect.

    Returns:
        Mapping of canonical option name to whether its flag is set.
    """
    flags = _query_flags(cursor)
    return {name: bool(flags & mask) for name, mask in CURSOR_OPTIONS.items()}


def format_as(cursor: Cursor, kind: str) -> Any:
    """
    Present a raw cursor in another shape.

    Args:
        cursor: The cursor to read from. Still owned by the caller.
        kind: ``"map"`` for an iterator of keywordized native documents,
              ``"seq"`` for an iterator of raw documents; any other value
              returns the cursor itself.

    Returns:
        An iterator over the cursor, or the cursor.
    """
    if kind == "map":
        return (decode(document, True) for document in cursor)
    if kind == "seq":
        return iter(cursor)
    return cursor


@contextmanager
def closing_cursor(cursor: Cursor) -> Iterator[Cursor]:
    """
    Context manager that always closes ``cursor`` on exit.

    A failing close is logged and swallowed so it never replaces the
    value being returned or the exception being raised.
    """
    try:
        yield cursor
    finally:
        try:
            cursor.close()
        except Exception:
            logger.warning("Failed to close cursor", exc_info=True)
