"""
KeyValueStore public API.

This module defines the only surface the typed façade uses from an underlying
preference store: get, set and remove of a single key. Stores speak purely in
native values; they never see conversions or typed values.

Notes
-----
- Implementations must make each single-key operation atomic. Concurrent
  writers race with last-writer-wins semantics.
- Absence is reported as None. None is never a native value.
"""

from __future__ import annotations

from typing import Any, Protocol

from ..native import NativeValue, is_native
from .errors import InvalidKeyError, NativeShapeError


class KeyValueStore(Protocol):
    """Persistence API for native values keyed by text."""

    def raw_get(self, key: str) -> NativeValue | None:
        """
        Read the native value stored under a key.

        Parameters
        ----------
        key:
            Non-empty key.

        Returns
        -------
        NativeValue | None
            The stored value, or None if the key is absent.
        """
        raise NotImplementedError

    def raw_set(self, key: str, value: NativeValue) -> None:
        """
        Store a native value under a key, replacing any previous value.

        Raises
        ------
        NativeShapeError
            If ``value`` is not a native value.
        """
        raise NotImplementedError

    def raw_remove(self, key: str) -> None:
        """Remove a key. Removing an absent key is a no-op."""
        raise NotImplementedError


def require_key(key: Any) -> str:
    """
    Validate a store key.

    Raises
    ------
    InvalidKeyError
        If ``key`` is not a non-empty string.
    """
    if not isinstance(key, str) or not key:
        raise InvalidKeyError(f"Keys must be non-empty strings, got {key!r}")
    return key


def require_native(key: str, value: Any) -> NativeValue:
    """
    Validate that a value may be written to a store.

    Raises
    ------
    NativeShapeError
        If ``value`` (or anything nested in it) is outside the native shapes.
    """
    if not is_native(value):
        raise NativeShapeError(
            f"Value for {key!r} is not a native value: {type(value).__name__}"
        )
    return value
