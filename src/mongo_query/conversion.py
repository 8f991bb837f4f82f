"""
Conversion - Native values to and from wire documents.

Converts between Python data structures (dicts, lists, keywords, enums,
fractions) and the BSON-ready values PyMongo sends over the wire, and
back from the documents a cursor returns.

Most callers never use these functions directly: the query executor and
the find helpers encode filters and decode results automatically. They
are public so other layers (writes, aggregation) can cross the same
boundary the same way.

Example:
    >>> doc = encode({Keyword("name"): "Alice", "tags": ("a", "b")})
    >>> doc
    SON([('name', 'Alice'), ('tags', ['a', 'b'])])
    >>> decode(doc, keywordize=True)
    {Keyword('name'): 'Alice', Keyword('tags'): ['a', 'b']}
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, Mapping

from bson.dbref import DBRef
from bson.decimal128 import Decimal128
from bson.objectid import ObjectId
from bson.raw_bson import RawBSONDocument
from bson.son import SON

from .types import Keyword

__all__ = [
    "encode",
    "decode",
    "normalize_field_selector",
    "to_object_id",
    "get_id",
]

# Values already in wire form. Checked before generic mappings since SON
# and RawBSONDocument are mappings themselves.
_WIRE_NATIVE = (SON, RawBSONDocument, DBRef)


def encode(value: Any) -> Any:
    """
    Encode a native value into its wire representation.

    Kinds are handled from specific to general. Values already in wire
    form, and any kind not listed below, pass through unchanged.

    - ``None``, ``bool`` and ``datetime`` are returned as is.
    - ``Fraction`` becomes a ``float`` (lossy).
    - ``Decimal`` becomes ``Decimal128`` (exact up to 34 digits).
    - ``Keyword`` becomes a plain ``str``; ``Enum`` members become their name.
    - Mappings become ``SON`` documents in iteration order, with keys and
      values encoded recursively.
    - Lists, tuples and sets become lists of encoded elements.

    Args:
        value: The native value to encode.

    Returns:
        The wire representation of ``value``.
    """
    if value is None:
        return None

    elif isinstance(value, (bool, datetime)):
        return value

    elif isinstance(value, Fraction):
        return float(value)

    elif isinstance(value, Decimal):
        return Decimal128(value)

    elif isinstance(value, Keyword):
        return value.name

    elif isinstance(value, Enum):
        return value.name

    elif isinstance(value, _WIRE_NATIVE):
        return value

    elif isinstance(value, Mapping):
        document = SON()
        for key, item in value.items():
            document[encode(key)] = encode(item)
        return document

    elif isinstance(value, (list, tuple, set, frozenset)):
        return [encode(item) for item in value]

    # Anything else (str, int, float, ObjectId, Binary, GridOut...) is
    # already understood by the driver.
    return value


def decode(value: Any, keywordize: bool = True) -> Any:
    """
    Decode a wire value into native Python data.

    - ``Decimal128`` becomes ``decimal.Decimal``, never a float.
    - Documents become ``dict``; keys are ``Keyword`` when ``keywordize``
      is true and plain ``str`` otherwise, at every nesting depth.
    - Lists become lists with every element decoded.
    - ``DBRef`` is returned unresolved; other values pass through.

    Args:
        value: The wire value to decode.
        keywordize: Whether document keys become keywords.

    Returns:
        The native representation of ``value``.
    """
    if value is None:
        return None

    elif isinstance(value, Decimal128):
        return value.to_decimal()

    elif isinstance(value, DBRef):
        return value

    elif isinstance(value, Mapping):
        make_key = Keyword if keywordize else str
        return {make_key(key): decode(item, keywordize) for key, item in value.items()}

    elif isinstance(value, (list, tuple)):
        return [decode(item, keywordize) for item in value]

    return value


def normalize_field_selector(selector: Any) -> Any:
    """
    Normalize a field selector into a wire projection document.

    Args:
        selector: A wire document, a sequence of field names, or any
                  value the codec can encode (usually a dict of
                  field -> 1/0).

    Returns:
        The projection document. Sequences of names map every name to 1;
        duplicate names collapse to a single key.

    Example:
        >>> normalize_field_selector(["name", "age"])
        SON([('name', 1), ('age', 1)])
    """
    if isinstance(selector, _WIRE_NATIVE):
        return selector

    if isinstance(selector, (list, tuple)):
        return SON((encode(field), 1) for field in selector)

    return encode(selector)


def to_object_id(value: Any) -> ObjectId:
    """
    Coerce a value into an ObjectId.

    Args:
        value: An ``ObjectId``, a 24 character hex string, or a
               ``datetime`` (producing an id usable in range queries).

    Returns:
        The ObjectId. An ObjectId input is returned unchanged.

    Raises:
        TypeError: If ``value`` cannot be turned into an ObjectId.
        bson.errors.InvalidId: If a string is not a valid id.
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str):
        return ObjectId(value)
    if isinstance(value, datetime):
        return ObjectId.from_datetime(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to ObjectId")


def get_id(document: Mapping[str, Any]) -> Any:
    """Return the ``_id`` of a native or wire document, or None."""
    return document.get("_id")
