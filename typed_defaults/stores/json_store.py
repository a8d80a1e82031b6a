"""
File-backed KeyValueStore.

All entries live in one JSON document using the tagged representation from
:mod:`typed_defaults.stores.native_json`.

Design constraints
------------------
- Writes are atomic (a uniquely named temp file + replace); a reader never
  sees a partial file, even with several writers on one path.
- Every operation re-reads the file, so entries written by another store
  instance on the same path are always visible.
- A missing, unreadable or corrupt file reads as an empty store. The next
  write replaces it.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..native import NativeValue
from .api import KeyValueStore, require_key, require_native
from .errors import StoreIOError
from .native_json import from_json_tree, to_json_tree

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class JsonFileStore(KeyValueStore):
    """
    JSON-file-backed store.

    Parameters
    ----------
    path:
        Path to the JSON document; `~` is expanded. The parent directory is
        created on first write.

    Threading
    ---------
    Operations on one instance are serialized by a lock. Separate instances
    (or processes) sharing a path get last-writer-wins per document write.
    """

    path: Path
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path).expanduser())

    def _read_tree(self) -> dict[str, Any]:
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as exc:
            log.warning("Cannot read settings file %s: %s", self.path, exc)
            return {}
        try:
            tree = json.loads(data.decode("utf-8"))
        except (RecursionError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            log.warning("Ignoring corrupt settings file %s: %s", self.path, exc)
            return {}
        if not isinstance(tree, dict):
            log.warning("Ignoring settings file %s: top level is not an object", self.path)
            return {}
        return tree

    def _write_tree(self, tree: dict[str, Any]) -> None:
        temp_path: Path | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                newline="\n",
                dir=self.path.parent,
                prefix=self.path.name + ".",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                json.dump(tree, handle, indent=2, sort_keys=True, ensure_ascii=False)
                handle.write("\n")
            os.replace(temp_path, self.path)
        except OSError as exc:
            if temp_path is not None:
                try:
                    temp_path.unlink(missing_ok=True)
                except OSError:
                    pass
            raise StoreIOError(f"Failed to write settings file: {self.path} ({exc!s})") from exc

    def raw_get(self, key: str) -> NativeValue | None:
        """See KeyValueStore.raw_get."""
        require_key(key)
        with self._lock:
            tree = self._read_tree()
        if key not in tree:
            return None
        try:
            return from_json_tree(tree[key])
        except (RecursionError, ValueError) as exc:
            log.warning("Ignoring malformed entry %r in %s: %s", key, self.path, exc)
            return None

    def raw_set(self, key: str, value: NativeValue) -> None:
        """See KeyValueStore.raw_set."""
        require_key(key)
        encoded = to_json_tree(require_native(key, value))
        with self._lock:
            tree = self._read_tree()
            tree[key] = encoded
            self._write_tree(tree)

    def raw_remove(self, key: str) -> None:
        """See KeyValueStore.raw_remove."""
        require_key(key)
        with self._lock:
            tree = self._read_tree()
            if key not in tree:
                return
            del tree[key]
            self._write_tree(tree)
