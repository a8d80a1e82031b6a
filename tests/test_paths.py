from __future__ import annotations

from pathlib import Path

import pytest

from typed_defaults.paths import default_data_root, default_store_path, open_json_store

_ROOT_VARS = ("TYPED_DEFAULTS_HOME", "LOCALAPPDATA", "APPDATA", "XDG_CONFIG_HOME")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for var in _ROOT_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_explicit_home_wins(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("TYPED_DEFAULTS_HOME", str(tmp_path / "home"))
    clean_env.setenv("LOCALAPPDATA", str(tmp_path / "Local"))
    assert default_data_root() == tmp_path / "home"


def test_prefers_local_appdata(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("LOCALAPPDATA", str(tmp_path / "Local"))
    clean_env.setenv("APPDATA", str(tmp_path / "Roaming"))
    assert default_data_root() == tmp_path / "Local" / "typed_defaults"


def test_falls_back_to_roaming(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("APPDATA", str(tmp_path / "Roaming"))
    assert default_data_root() == tmp_path / "Roaming" / "typed_defaults"


def test_uses_xdg_config_home(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    assert default_data_root() == tmp_path / "xdg" / "typed_defaults"


def test_falls_back_to_home_config(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("HOME", str(tmp_path))
    clean_env.setenv("USERPROFILE", str(tmp_path))
    assert default_data_root() == tmp_path / ".config" / "typed_defaults"


@pytest.mark.parametrize("name", ["", "  ", "a/b", "a\\b", "c:", ".."])
def test_unsafe_app_names_are_rejected(name: str) -> None:
    with pytest.raises(ValueError):
        default_store_path(name, data_root=Path("/tmp"))


def test_open_json_store_uses_default_location(
    clean_env: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    clean_env.setenv("TYPED_DEFAULTS_HOME", str(tmp_path))
    store = open_json_store("viewer")
    assert store.path == tmp_path / "viewer.json"

    store.raw_set("zoom", 1.5)
    assert (tmp_path / "viewer.json").exists()
