"""
JSON Document Value Model for the Cosmos DB SQL emulator.

This module classifies the JSON-like values held in documents, provides
null-safe path traversal over nested objects, and defines the ``UNDEFINED``
marker that distinguishes a missing property from an explicit JSON ``null``.

Value kinds follow Cosmos DB type ordering:

    undefined < null < boolean < number < string < array < object

Example:
    >>> doc = {'id': '1', 'address': {'city': 'Oslo'}}
    >>> resolve_path(doc, ('address', 'city'))
    'Oslo'
    >>> resolve_path(doc, ('address', 'zip')) is UNDEFINED
    True

Author: MockCosmos Team
Version: 1.0.0
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Sequence


class _Undefined:
    """
    Marker for a property that does not exist.

    Singleton; compare with ``is``. Falsy so that it never accidentally
    satisfies a predicate.
    """

    _instance = None

    def __new__(cls) -> '_Undefined':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Undefined"

    def __copy__(self) -> '_Undefined':
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> '_Undefined':
        return self


UNDEFINED = _Undefined()


class ValueKind(Enum):
    """
    Kinds of JSON-like values, in Cosmos DB sort order.

    The integer value is the cross-kind sort rank used by ORDER BY.
    """
    UNDEFINED = 0
    NULL = 1
    BOOLEAN = 2
    NUMBER = 3
    STRING = 4
    ARRAY = 5
    OBJECT = 6

    def is_ordinal(self) -> bool:
        """Check if kind supports ordering operators (>, >=, <, <=)."""
        return self in (ValueKind.NUMBER, ValueKind.STRING)

    def __str__(self) -> str:
        return self.name.lower()


def kind_of(value: Any) -> ValueKind:
    """
    Classify a value.

    ``bool`` is checked before numbers because ``bool`` subclasses ``int``.

    Args:
        value: Any JSON-like value, or UNDEFINED

    Returns:
        ValueKind of the value

    Raises:
        TypeError: If value is not JSON-like
    """
    if value is UNDEFINED:
        return ValueKind.UNDEFINED
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    raise TypeError(f"Unsupported document value type: {type(value).__name__}")


def is_number(value: Any) -> bool:
    """Check if value is a JSON number (bool excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def resolve_path(document: Any, segments: Sequence[str]) -> Any:
    """
    Walk a property path through nested objects.

    Args:
        document: Root document
        segments: Path segments with the source alias already stripped

    Returns:
        Resolved value, or UNDEFINED if any segment is missing or a
        non-object is indexed. An empty path returns the document itself.
    """
    current = document
    for segment in segments:
        if not isinstance(current, dict) or segment not in current:
            return UNDEFINED
        current = current[segment]
    return current


def set_path(target: Dict[str, Any], segments: Sequence[str], value: Any) -> None:
    """
    Write a value at a nested path, creating intermediate objects.

    An intermediate that exists but is not an object is replaced.

    Args:
        target: Object to write into
        segments: Non-empty path segments
        value: Value to store
    """
    if not segments:
        raise ValueError("Cannot set a value at an empty path")

    current = target
    for segment in segments[:-1]:
        child = current.get(segment)
        if not isinstance(child, dict):
            child = {}
            current[segment] = child
        current = child
    current[segments[-1]] = value


def to_text(value: Any) -> str:
    """
    Textual form of a value for string functions.

    Strings are returned as-is; everything else is rendered as compact JSON
    (``true``, ``12``, ``1.5``, ``["a",1]``).
    """
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
