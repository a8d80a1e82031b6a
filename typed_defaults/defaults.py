"""
Typed façade over a KeyValueStore.

``value`` and ``set_value`` are the whole public surface: each call is a
single request against the store, delegating all shape knowledge to the
conversion it is given. There is no cached state and no process-wide store;
the store is always passed in explicitly.

Failure policy
--------------
- Absent key: ``value`` returns the default unchanged.
- Undecodable entry: ``value`` returns the default. The entry is not touched.
- Unencodable value: ``set_value`` writes nothing; the store is unchanged.
- Absent optional: ``set_value`` removes the key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TypeVar

from .conversion import ABSENT, INVALID, Conversion
from .stores.api import KeyValueStore

log = logging.getLogger(__name__)

T = TypeVar("T")


def value(store: KeyValueStore, key: str, *, default: T, conversion: Conversion[T]) -> T:
    """
    Read a typed value.

    Parameters
    ----------
    store:
        Store to read from.
    key:
        Entry key.
    default:
        Returned when the key is absent or its entry cannot be decoded.
    conversion:
        Conversion for the value type.

    Returns
    -------
    T
        The decoded value, or ``default``.
    """
    native = store.raw_get(key)
    if native is None:
        return default
    decoded = conversion.decode(native)
    if decoded is INVALID:
        log.debug("Entry %r could not be decoded; using default", key)
        return default
    return decoded


def set_value(store: KeyValueStore, new_value: T, key: str, *, conversion: Conversion[T]) -> None:
    """
    Write a typed value.

    Parameters
    ----------
    store:
        Store to write to.
    new_value:
        Value to persist.
    key:
        Entry key.
    conversion:
        Conversion for the value type.
    """
    encoded = conversion.encode(new_value)
    if encoded is ABSENT:
        store.raw_remove(key)
        return
    if encoded is INVALID:
        log.warning("Value for %r cannot be represented; store left unchanged", key)
        return
    store.raw_set(key, encoded)


@dataclass(frozen=True, slots=True)
class TypedDefaults:
    """
    A store handle with the typed operations bound to it.

    Attributes
    ----------
    store:
        The underlying key-value store.
    """

    store: KeyValueStore

    def value(self, key: str, *, default: T, conversion: Conversion[T]) -> T:
        """See :func:`value`."""
        return value(self.store, key, default=default, conversion=conversion)

    def set_value(self, new_value: T, key: str, *, conversion: Conversion[T]) -> None:
        """See :func:`set_value`."""
        set_value(self.store, new_value, key, conversion=conversion)

    def remove(self, key: str) -> None:
        """Remove a key regardless of its type."""
        self.store.raw_remove(key)
