"""Domain exceptions for key-value stores."""

from __future__ import annotations

from ..errors import TypedDefaultsError


class StoreError(TypedDefaultsError):
    """Base error for key-value store operations."""


class InvalidKeyError(StoreError):
    """Raised when a key is not a non-empty string."""


class NativeShapeError(StoreError):
    """Raised when a value outside the native shape set is written to a store."""


class StoreIOError(StoreError):
    """Raised when a file-backed store cannot be written."""
