"""Native value shapes.

A key-value preference store persists only a small closed set of shapes:
integers, floats, booleans, text, binary blobs, timestamps, and lists or
string-keyed mappings of those. Everything else must be converted to one of
these shapes before it reaches a store.

Notes
-----
``bool`` is a subclass of ``int`` in Python but is a distinct native kind here.
Checks use exact kinds so that a stored ``True`` never decodes as ``1``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Union

NativeValue = Union[
    int,
    float,
    bool,
    str,
    bytes,
    datetime,
    "list[NativeValue]",
    "dict[str, NativeValue]",
]


class NativeKind(str, Enum):
    """The closed set of native shapes."""

    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TEXT = "text"
    BLOB = "blob"
    TIMESTAMP = "timestamp"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def native_kind(value: Any) -> NativeKind | None:
    """
    Classify the top-level shape of a value.

    Parameters
    ----------
    value:
        Any Python object.

    Returns
    -------
    NativeKind | None
        The native kind of ``value``, or None if its top-level type is not
        native. Elements of sequences and mappings are not inspected.
    """
    # bool before int: bool is an int subclass.
    if isinstance(value, bool):
        return NativeKind.BOOLEAN
    if isinstance(value, int):
        return NativeKind.INTEGER
    if isinstance(value, float):
        return NativeKind.FLOAT
    if isinstance(value, str):
        return NativeKind.TEXT
    if isinstance(value, bytes):
        return NativeKind.BLOB
    if isinstance(value, datetime):
        return NativeKind.TIMESTAMP
    if isinstance(value, list):
        return NativeKind.SEQUENCE
    if isinstance(value, dict):
        return NativeKind.MAPPING
    return None


def is_native(value: Any) -> bool:
    """Return True if ``value`` and everything nested in it is a native shape."""
    kind = native_kind(value)
    if kind is None:
        return False
    if kind is NativeKind.SEQUENCE:
        return all(is_native(item) for item in value)
    if kind is NativeKind.MAPPING:
        return all(isinstance(k, str) and is_native(v) for k, v in value.items())
    return True


def copy_native(value: NativeValue) -> NativeValue:
    """
    Return a structural copy of a native value.

    Lists and mappings are rebuilt; scalars (all immutable) are shared.
    """
    if isinstance(value, list):
        return [copy_native(item) for item in value]
    if isinstance(value, dict):
        return {k: copy_native(v) for k, v in value.items()}
    return value
