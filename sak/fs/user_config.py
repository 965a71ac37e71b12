"""Directories and files in the per-user configuration location."""

from __future__ import annotations

import os
import sys
from typing import BinaryIO


def user_config_dir() -> str:
    """Return the platform's per-user configuration directory.

    Windows uses %AppData%, macOS ``~/Library/Application Support`` and other
    systems ``$XDG_CONFIG_HOME`` or ``~/.config``. Raises OSError when the
    needed environment variables are missing or invalid.
    """
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA", "")
        if not app_data:
            raise OSError("%AppData% is not defined")
        return app_data

    if sys.platform == "darwin":
        home = os.environ.get("HOME", "")
        if not home:
            raise OSError("$HOME is not defined")
        return os.path.join(home, "Library", "Application Support")

    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if not xdg:
        home = os.environ.get("HOME", "")
        if not home:
            raise OSError("neither $XDG_CONFIG_HOME nor $HOME are defined")
        return os.path.join(home, ".config")
    if not os.path.isabs(xdg):
        raise OSError("path in $XDG_CONFIG_HOME is relative")
    return xdg


def mk_user_config_dir(name: str, *parts: str) -> str:
    """Create ``<config dir>/name/*parts`` (mode 0o755) and return its path."""
    if not name:
        raise ValueError("name cannot be empty")

    full_path = os.path.normpath(os.path.join(user_config_dir(), name, *parts))
    os.makedirs(full_path, 0o755, exist_ok=True)
    return full_path


def mk_user_config_file(name: str, *parts: str) -> BinaryIO:
    """Open ``<config dir>/name/*parts`` for binary reading and writing.

    The last element of *parts* is the file name, the others are directories
    created as needed (mode 0o755). The file is created with mode 0o644 if
    missing; an existing file keeps its content.
    """
    if not name:
        raise ValueError("name cannot be empty")
    if not parts:
        raise ValueError("no path components provided")

    *dir_parts, file_name = parts
    dir_path = os.path.normpath(os.path.join(user_config_dir(), name, *dir_parts))
    os.makedirs(dir_path, 0o755, exist_ok=True)

    full_path = os.path.join(dir_path, file_name)
    return open(
        full_path,
        "r+b",
        opener=lambda path, _flags: os.open(path, os.O_RDWR | os.O_CREAT, 0o644),
    )