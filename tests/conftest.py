from __future__ import annotations

from pathlib import Path

import pytest

from typed_defaults.stores.api import KeyValueStore
from typed_defaults.stores.json_store import JsonFileStore
from typed_defaults.stores.memory_store import MemoryStore


@pytest.fixture(params=["memory", "json"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> KeyValueStore:
    """A fresh, empty store for each supported in-process backend."""
    if request.param == "memory":
        return MemoryStore()
    return JsonFileStore(path=tmp_path / "settings.json")
