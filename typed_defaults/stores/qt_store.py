"""
QSettings-backed KeyValueStore.

QSettings is the platform preference store (registry on Windows, plist on
macOS, INI elsewhere). Its backends disagree on which value types survive a
round trip, so each entry is written as a prefixed tagged-JSON string and every
native shape comes back exactly as written.

Notes
-----
Entries written by other code (without the prefix) are surfaced as-is when
they are native values, typically plain strings or lists of strings.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

from PySide6.QtCore import QSettings

from ..native import NativeValue, is_native
from .api import KeyValueStore, require_key, require_native
from .errors import StoreIOError
from .native_json import dumps_native, loads_native

log = logging.getLogger(__name__)

ENTRY_PREFIX = "typed_defaults:"


@dataclass(frozen=True, slots=True)
class QtSettingsStore(KeyValueStore):
    """
    Store entries in a QSettings object.

    Parameters
    ----------
    settings:
        The QSettings instance to read and write. The store serializes access
        to it with a lock.
    """

    settings: QSettings
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def _sync(self) -> None:
        self.settings.sync()
        if self.settings.status() == QSettings.Status.AccessError:
            raise StoreIOError(f"Failed to write settings: {self.settings.fileName()}")

    def raw_get(self, key: str) -> NativeValue | None:
        """See KeyValueStore.raw_get."""
        require_key(key)
        with self._lock:
            if not self.settings.contains(key):
                return None
            raw = self.settings.value(key)

        if isinstance(raw, str) and raw.startswith(ENTRY_PREFIX):
            try:
                return loads_native(raw[len(ENTRY_PREFIX) :])
            except (RecursionError, ValueError) as exc:
                log.warning("Ignoring malformed entry %r in %s: %s", key, self.settings.fileName(), exc)
                return None
        if raw is not None and is_native(raw):
            return raw
        return None

    def raw_set(self, key: str, value: NativeValue) -> None:
        """See KeyValueStore.raw_set."""
        require_key(key)
        text = ENTRY_PREFIX + dumps_native(require_native(key, value))
        with self._lock:
            self.settings.setValue(key, text)
            self._sync()

    def raw_remove(self, key: str) -> None:
        """See KeyValueStore.raw_remove."""
        require_key(key)
        with self._lock:
            self.settings.remove(key)
            self._sync()


def open_qt_settings_store(path: Path) -> QtSettingsStore:
    """
    Open an INI-format QSettings store at an explicit path.

    Parameters
    ----------
    path:
        INI file location. Created on first write.

    Returns
    -------
    QtSettingsStore
        Ready-to-use store.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    return QtSettingsStore(settings=QSettings(str(path), QSettings.Format.IniFormat))


def open_user_settings_store(organization: str, application: str) -> QtSettingsStore:
    """Open the platform-native user settings for an application."""
    return QtSettingsStore(settings=QSettings(organization, application))
