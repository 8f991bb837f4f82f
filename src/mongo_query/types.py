"""
Type definitions for mongo-query.

Provides the keyword type used for decoded document keys, the type
aliases shared across the package, and the exception hierarchy raised
by query execution and configuration.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

__all__ = [
    "Keyword",
    "Document",
    "Filter",
    "Projection",
    "Sort",
    "CursorOptions",
    "MongoQueryError",
    "ConfigError",
    "ExecutionError",
    "DecodeError",
]


class Keyword(str):
    """
    Symbolic identifier used for document keys.

    A Keyword is a ``str`` that remembers it was produced by keywordized
    decoding. It hashes and compares equal to the plain string with the
    same name, so ``doc["name"]`` works whether or not keys were
    keywordized, while ``type(key) is Keyword`` tells the two apart.

    Example:
        >>> k = Keyword("name")
        >>> k == "name"
        True
        >>> k.name
        'name'
    """

    __slots__ = ()

    @property
    def name(self) -> str:
        """The underlying name as a plain string."""
        return str.__str__(self)

    def __str__(self) -> str:
        return str.__str__(self)

    def __repr__(self) -> str:
        return f"Keyword({str.__repr__(self)})"


# Type aliases for clarity
Document = Mapping[str, Any]
Filter = Mapping[str, Any]
Projection = Mapping[str, Any] | Sequence[str] | None
Sort = Mapping[str, int] | Sequence[tuple[str, int]] | str | None
CursorOptions = Mapping[str, bool] | Sequence[str] | int | str | None


class MongoQueryError(Exception):
    """Base exception for mongo-query."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ConfigError(MongoQueryError):
    """Error raised when configuration values are missing or invalid."""

    pass


class ExecutionError(MongoQueryError):
    """Error raised when executing a query fails."""

    pass


class DecodeError(ExecutionError):
    """
    Error raised when a document read from a cursor cannot be decoded.

    Attributes:
        position: Zero-based position of the failing document in the cursor.
        document: The raw document that failed to decode.
    """

    def __init__(
        self,
        message: str,
        position: int,
        document: Any = None,
    ) -> None:
        super().__init__(message)
        self.position = position
        self.document = document
