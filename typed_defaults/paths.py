"""
Default locations for file-backed settings.

Resolution order for the data root:

1) ``TYPED_DEFAULTS_HOME`` (used as-is)
2) ``%LOCALAPPDATA%``, then ``%APPDATA%`` (Windows)
3) ``$XDG_CONFIG_HOME``
4) ``~/.config``

Each of 2-4 is joined with ``typed_defaults``.
"""

from __future__ import annotations

import os
from pathlib import Path

from .stores.json_store import JsonFileStore

HOME_ENV_VAR = "TYPED_DEFAULTS_HOME"
APP_DIR_NAME = "typed_defaults"


def default_data_root() -> Path:
    """
    Resolve the directory that holds settings files.

    Returns
    -------
    pathlib.Path
        The data root. It is not created.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()

    for var in ("LOCALAPPDATA", "APPDATA", "XDG_CONFIG_HOME"):
        value = os.environ.get(var)
        if value:
            return Path(value) / APP_DIR_NAME

    return Path.home() / ".config" / APP_DIR_NAME


def default_store_path(app_name: str, data_root: Path | None = None) -> Path:
    """
    Return the settings file path for an application.

    Parameters
    ----------
    app_name:
        Simple file-name-safe application name.
    data_root:
        Optional override for the data root.

    Raises
    ------
    ValueError
        If ``app_name`` is empty or contains path separators or reserved
        characters.
    """
    name = app_name.strip()
    if not name:
        raise ValueError("Application name must not be empty.")
    if any(ch in name for ch in r'\/:*?"<>|'):
        raise ValueError(f"Application name contains invalid characters: {name!r}")
    if name in {".", ".."}:
        raise ValueError("Application name must not be '.' or '..'.")

    root = data_root if data_root is not None else default_data_root()
    return root / f"{name}.json"


def open_json_store(app_name: str, data_root: Path | None = None) -> JsonFileStore:
    """Open the JSON settings file for an application at its default location."""
    return JsonFileStore(path=default_store_path(app_name, data_root))
