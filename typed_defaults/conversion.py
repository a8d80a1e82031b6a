"""
Conversion protocol and its generic compositions.

A conversion pairs a value type with one native shape:

- ``decode(native)`` reconstructs a value, or returns INVALID.
- ``encode(value)`` produces a native value, ABSENT (nothing to store), or
  INVALID (this instance cannot be represented).

Neither method raises for a shape mismatch or an encoder failure. Conversions
are frozen, stateless objects and may be shared freely across threads.

Collections follow an all-or-nothing policy: one bad element makes the whole
collection INVALID, in both directions.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Final, Generic, Literal, Mapping, Protocol, Sequence, TypeVar, Union

from .native import NativeKind, NativeValue, native_kind

T = TypeVar("T")


class Outcome(Enum):
    """Markers returned instead of a value."""

    INVALID = "invalid"
    ABSENT = "absent"

    def __repr__(self) -> str:
        return self.name


INVALID: Final = Outcome.INVALID
ABSENT: Final = Outcome.ABSENT

Decoded = Union[T, Literal[Outcome.INVALID]]
Encoded = Union[NativeValue, Literal[Outcome.ABSENT, Outcome.INVALID]]


class Conversion(Protocol[T]):
    """
    Two-way conversion between a value type and a native shape.

    Invariants
    ----------
    - ``decode(encode(v)) == v`` for every value the application stores.
    - ``decode`` returns INVALID for any native value ``encode`` could not
      have produced; it never coerces between kinds.
    """

    def decode(self, native: Any) -> Decoded[T]:
        """
        Reconstruct a value from a native value.

        Parameters
        ----------
        native:
            A value read from a store. It is never None; absent keys are
            handled by the caller before decode is reached.

        Returns
        -------
        T | INVALID
            The decoded value, or INVALID on any shape mismatch.
        """
        ...

    def encode(self, value: T) -> Encoded:
        """
        Produce the native representation of a value.

        Returns
        -------
        NativeValue | ABSENT | INVALID
            The native value; ABSENT if there is deliberately nothing to store;
            INVALID if this instance cannot be represented.
        """
        ...


def is_invalid(result: object) -> bool:
    """Return True if a decode or encode result is the INVALID marker."""
    return result is INVALID


# Primitive conversions


@dataclass(frozen=True, slots=True)
class PassthroughConversion(Generic[T]):
    """
    Identity conversion for values the store already accepts as-is.

    Attributes
    ----------
    kind:
        The exact native kind accepted in both directions.
    """

    kind: NativeKind

    def decode(self, native: Any) -> Decoded[T]:
        if native_kind(native) is not self.kind:
            return INVALID
        return native

    def encode(self, value: T) -> Encoded:
        if native_kind(value) is not self.kind:
            return INVALID
        return value  # type: ignore[return-value]


@dataclass(frozen=True, slots=True)
class BlobConversion:
    """Binary blobs; encode also accepts bytearray and memoryview."""

    def decode(self, native: Any) -> Decoded[bytes]:
        if native_kind(native) is not NativeKind.BLOB:
            return INVALID
        return native

    def encode(self, value: bytes | bytearray | memoryview) -> Encoded:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        return INVALID


@dataclass(frozen=True, slots=True)
class PathConversion:
    """
    Filesystem paths, stored as text.

    Only concrete ``Path`` values are accepted: decode always rebuilds a
    ``Path`` for the running platform, so pure paths would not round-trip.
    """

    def decode(self, native: Any) -> Decoded[Path]:
        if native_kind(native) is not NativeKind.TEXT or not native:
            return INVALID
        return Path(native)

    def encode(self, value: Path) -> Encoded:
        if not isinstance(value, Path):
            return INVALID
        return os.fspath(value)


INT: Final[Conversion[int]] = PassthroughConversion(NativeKind.INTEGER)
FLOAT: Final[Conversion[float]] = PassthroughConversion(NativeKind.FLOAT)
BOOL: Final[Conversion[bool]] = PassthroughConversion(NativeKind.BOOLEAN)
STR: Final[Conversion[str]] = PassthroughConversion(NativeKind.TEXT)
DATETIME: Final[Conversion[Any]] = PassthroughConversion(NativeKind.TIMESTAMP)
BYTES: Final[Conversion[bytes]] = BlobConversion()
PATH: Final[Conversion[Path]] = PathConversion()


# Generic compositions


@dataclass(frozen=True, slots=True)
class OptionalConversion(Generic[T]):
    """
    Optional-of-T.

    None has no native representation: encoding None yields ABSENT, which a
    store façade turns into a key removal. Decode only ever sees present
    values and delegates to the inner conversion.
    """

    inner: Conversion[T]

    def decode(self, native: Any) -> Decoded[T | None]:
        return self.inner.decode(native)

    def encode(self, value: T | None) -> Encoded:
        if value is None:
            return ABSENT
        return self.inner.encode(value)


@dataclass(frozen=True, slots=True)
class ListConversion(Generic[T]):
    """List-of-T with order preserved and all-or-nothing element handling."""

    element: Conversion[T]

    def decode(self, native: Any) -> Decoded[list[T]]:
        if native_kind(native) is not NativeKind.SEQUENCE:
            return INVALID
        out: list[T] = []
        for item in native:
            decoded = self.element.decode(item)
            if decoded is INVALID:
                return INVALID
            out.append(decoded)
        return out

    def encode(self, value: Sequence[T]) -> Encoded:
        if isinstance(value, (str, bytes, bytearray)) or not isinstance(value, Sequence):
            return INVALID
        out: list[NativeValue] = []
        for item in value:
            encoded = self.element.encode(item)
            # An absent element has no place in a native sequence.
            if isinstance(encoded, Outcome):
                return INVALID
            out.append(encoded)
        return out


@dataclass(frozen=True, slots=True)
class MappingConversion(Generic[T]):
    """String-keyed mapping-of-T with all-or-nothing value handling."""

    value_conversion: Conversion[T]

    def decode(self, native: Any) -> Decoded[dict[str, T]]:
        if native_kind(native) is not NativeKind.MAPPING:
            return INVALID
        out: dict[str, T] = {}
        for key, item in native.items():
            if not isinstance(key, str):
                return INVALID
            decoded = self.value_conversion.decode(item)
            if decoded is INVALID:
                return INVALID
            out[key] = decoded
        return out

    def encode(self, value: Mapping[str, T]) -> Encoded:
        if not isinstance(value, Mapping):
            return INVALID
        out: dict[str, NativeValue] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                return INVALID
            encoded = self.value_conversion.encode(item)
            if isinstance(encoded, Outcome):
                return INVALID
            out[key] = encoded
        return out


def optional_of(inner: Conversion[T]) -> OptionalConversion[T]:
    """Compose an optional conversion over ``inner``."""
    return OptionalConversion(inner)


def list_of(element: Conversion[T]) -> ListConversion[T]:
    """Compose a list conversion over ``element``."""
    return ListConversion(element)


def mapping_of(value_conversion: Conversion[T]) -> MappingConversion[T]:
    """Compose a string-keyed mapping conversion over ``value_conversion``."""
    return MappingConversion(value_conversion)
