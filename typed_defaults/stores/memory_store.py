"""In-process KeyValueStore."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ..native import NativeValue, copy_native
from .api import KeyValueStore, require_key, require_native


@dataclass(slots=True)
class MemoryStore(KeyValueStore):
    """
    Dictionary-backed store guarded by a lock.

    Values are copied on write and on read, so callers never share mutable
    lists or mappings with the store.
    """

    _entries: dict[str, NativeValue] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def raw_get(self, key: str) -> NativeValue | None:
        """See KeyValueStore.raw_get."""
        require_key(key)
        with self._lock:
            value = self._entries.get(key)
        return None if value is None else copy_native(value)

    def raw_set(self, key: str, value: NativeValue) -> None:
        """See KeyValueStore.raw_set."""
        require_key(key)
        stored = copy_native(require_native(key, value))
        with self._lock:
            self._entries[key] = stored

    def raw_remove(self, key: str) -> None:
        """See KeyValueStore.raw_remove."""
        require_key(key)
        with self._lock:
            self._entries.pop(key, None)

    def keys(self) -> list[str]:
        """Return the stored keys in insertion order."""
        with self._lock:
            return list(self._entries)
