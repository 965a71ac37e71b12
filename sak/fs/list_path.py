"""Listing of files and directories below a root directory."""

from __future__ import annotations

import enum
import os
import stat
from collections.abc import Iterable


class Flags(enum.IntFlag):
    """What :func:`list_path` includes and how deep it goes."""

    DIR = 1
    FILE = 2
    RECURSIVE = 4


def _extension(name: str) -> str:
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def list_path(
    directory: str | os.PathLike[str],
    flags: Flags | int,
    file_ext: Iterable[str] | None = None,
) -> list[str]:
    """Return the paths below *directory* selected by *flags*.

    Entries are visited in name order, a directory before its contents.
    *file_ext* filters files by extension (with the dot, case-insensitive);
    when empty or None every file is included. Unreadable entries below the
    root are skipped; an unreadable or missing root raises OSError.
    """
    flags = Flags(flags)
    include_dir = Flags.DIR in flags
    include_file = Flags.FILE in flags
    recursive = Flags.RECURSIVE in flags
    extensions = {ext.lower() for ext in file_ext or ()}

    root = os.path.normpath(os.fspath(directory))
    if not stat.S_ISDIR(os.lstat(root).st_mode):
        return []

    results: list[str] = []

    def visit(path: str, is_root: bool) -> None:
        try:
            with os.scandir(path) as iterator:
                entries = sorted(iterator, key=lambda entry: entry.name)
        except OSError:
            if is_root:
                raise
            return

        for entry in entries:
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError:
                continue
            child = os.path.join(path, entry.name)
            if is_dir:
                if include_dir:
                    results.append(child)
                if recursive:
                    visit(child, False)
            elif include_file and (
                not extensions or _extension(entry.name).lower() in extensions
            ):
                results.append(child)

    visit(root, True)
    return results