from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

pytest.importorskip("PySide6.QtCore")

from PySide6.QtCore import QSettings  # noqa: E402

from typed_defaults.conversion import INT, list_of, mapping_of, optional_of  # noqa: E402
from typed_defaults.defaults import TypedDefaults  # noqa: E402
from typed_defaults.stores.errors import NativeShapeError  # noqa: E402
from typed_defaults.stores.qt_store import (  # noqa: E402
    QtSettingsStore,
    open_qt_settings_store,
)


def test_every_native_shape_round_trips(tmp_path: Path) -> None:
    store = open_qt_settings_store(tmp_path / "settings.ini")
    samples = {
        "int": 42,
        "float": 2.5,
        "bool": False,
        "text": "123",
        "blob": b"\x00\xff",
        "stamp": datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
        "list": [1, "a", [True]],
        "map": {"k": [1.5], "$odd": "x"},
    }
    for key, sample in samples.items():
        store.raw_set(key, sample)

    reopened = open_qt_settings_store(tmp_path / "settings.ini")
    for key, sample in samples.items():
        restored = reopened.raw_get(key)
        assert restored == sample
        assert type(restored) is type(sample)


def test_remove_and_absent(tmp_path: Path) -> None:
    store = open_qt_settings_store(tmp_path / "settings.ini")
    assert store.raw_get("k") is None
    store.raw_set("k", 1)
    store.raw_remove("k")
    assert store.raw_get("k") is None


def test_foreign_string_entries_are_surfaced_as_text(tmp_path: Path) -> None:
    path = tmp_path / "settings.ini"
    settings = QSettings(str(path), QSettings.Format.IniFormat)
    settings.setValue("legacy", "plain text")
    settings.sync()

    store = QtSettingsStore(settings=settings)

    assert store.raw_get("legacy") == "plain text"


def test_malformed_entry_reads_as_absent(tmp_path: Path) -> None:
    settings = QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat)
    settings.setValue("k", "typed_defaults:{broken")
    store = QtSettingsStore(settings=settings)

    assert store.raw_get("k") is None


def test_non_native_value_is_rejected(tmp_path: Path) -> None:
    store = open_qt_settings_store(tmp_path / "settings.ini")
    with pytest.raises(NativeShapeError):
        store.raw_set("k", (1, 2))  # type: ignore[arg-type]


def test_typed_defaults_over_qsettings(tmp_path: Path) -> None:
    defaults = TypedDefaults(open_qt_settings_store(tmp_path / "settings.ini"))
    conversion = optional_of(mapping_of(list_of(INT)))

    assert defaults.value("grid", default=None, conversion=conversion) is None
    defaults.set_value({"row": [1, 2]}, "grid", conversion=conversion)
    assert defaults.value("grid", default=None, conversion=conversion) == {"row": [1, 2]}

    defaults.set_value(None, "grid", conversion=conversion)
    assert defaults.store.raw_get("grid") is None
