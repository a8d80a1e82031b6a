"""
Tagged JSON representation of native values.

JSON has no blob or timestamp type, so text-based stores persist those shapes
as single-key tag objects:

- ``bytes``    -> ``{"$bytes": "<base64>"}``
- ``datetime`` -> ``{"$datetime": "<isoformat>"}``
- a mapping with any key starting with ``$`` -> ``{"$map": {...}}``

Every other native shape maps onto JSON directly. The encoding is
deterministic for a given value (sorted keys, compact separators).
"""

from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime
from typing import Any

from ..native import NativeValue

BYTES_TAG = "$bytes"
DATETIME_TAG = "$datetime"
MAP_TAG = "$map"


def to_json_tree(value: NativeValue) -> Any:
    """
    Convert a native value into a JSON-compatible tree.

    Raises
    ------
    TypeError
        If ``value`` contains a non-native object.
    """
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, bytes):
        return {BYTES_TAG: base64.b64encode(value).decode("ascii")}
    if isinstance(value, datetime):
        return {DATETIME_TAG: value.isoformat()}
    if isinstance(value, list):
        return [to_json_tree(item) for item in value]
    if isinstance(value, dict):
        tree = {key: to_json_tree(item) for key, item in value.items()}
        if any(key.startswith("$") for key in value):
            return {MAP_TAG: tree}
        return tree
    raise TypeError(f"Not a native value: {type(value).__name__}")


def from_json_tree(tree: Any) -> NativeValue:
    """
    Rebuild a native value from a tree produced by :func:`to_json_tree`.

    Raises
    ------
    ValueError
        If the tree contains an unknown or malformed tag, or a JSON null.
    """
    if tree is None:
        raise ValueError("null is not a native value")
    if isinstance(tree, (bool, int, float, str)):
        return tree
    if isinstance(tree, list):
        return [from_json_tree(item) for item in tree]
    if not isinstance(tree, dict):
        raise ValueError(f"Unexpected JSON value: {type(tree).__name__}")

    tagged = [key for key in tree if key.startswith("$")]
    if not tagged:
        return {key: from_json_tree(item) for key, item in tree.items()}
    if len(tree) != 1:
        raise ValueError(f"Malformed tag object with keys {sorted(tree)}")

    tag, payload = next(iter(tree.items()))
    if tag == BYTES_TAG and isinstance(payload, str):
        try:
            return base64.b64decode(payload.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise ValueError("Malformed $bytes payload") from exc
    if tag == DATETIME_TAG and isinstance(payload, str):
        return datetime.fromisoformat(payload)
    if tag == MAP_TAG and isinstance(payload, dict):
        return {key: from_json_tree(item) for key, item in payload.items()}
    raise ValueError(f"Unknown or malformed tag: {tag!r}")


def dumps_native(value: NativeValue) -> str:
    """Serialize a native value as deterministic tagged JSON text."""
    return json.dumps(to_json_tree(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def loads_native(text: str) -> NativeValue:
    """
    Parse tagged JSON text into a native value.

    Raises
    ------
    ValueError
        If ``text`` is not valid JSON or not a tagged native tree.
    """
    return from_json_tree(json.loads(text))
