"""Safe extraction of ZIP archives."""

from __future__ import annotations

import os
import shutil
import zipfile


class IllegalPathError(ValueError):
    """An archive entry would land outside the target directory."""

    def __init__(self, entry_name: str) -> None:
        super().__init__(f"illegal file path: {entry_name}")
        self.entry_name = entry_name


def _is_absolute(path: str) -> bool:
    if path.startswith(("/", "\\")):
        return True
    return len(path) >= 2 and path[1] == ":" and path[0].isascii() and path[0].isalpha()


def _destination(target: str, entry_name: str) -> str:
    name = entry_name.replace("\\", "/")
    clean = name.removeprefix("./").removeprefix("/").removeprefix("./")

    if _is_absolute(name):
        raise IllegalPathError(entry_name)
    if ".." in name.removeprefix("/").split("/"):
        raise IllegalPathError(entry_name)

    destination = os.path.normpath(os.path.join(target, clean.replace("/", os.sep)))
    try:
        relative = os.path.relpath(destination, target)
    except ValueError as exc:
        raise IllegalPathError(entry_name) from exc
    if relative == ".." or relative.startswith(".." + os.sep):
        raise IllegalPathError(entry_name)
    return destination


def _entry_mode(info: zipfile.ZipInfo) -> int:
    return (info.external_attr >> 16) & 0o777 or 0o755


def unzip(zip_path: str | os.PathLike[str], target_directory: str | os.PathLike[str]) -> None:
    """Extract every entry of *zip_path* into *target_directory*.

    The target is created if needed. Absolute entry names and names that
    climb out of the target raise IllegalPathError. Extracted files get mode
    0o755.
    """
    target = os.path.normpath(os.fspath(target_directory))
    with zipfile.ZipFile(zip_path) as archive:
        os.makedirs(target, 0o755, exist_ok=True)

        for info in archive.infolist():
            destination = _destination(target, info.filename)

            if info.is_dir():
                os.makedirs(destination, _entry_mode(info), exist_ok=True)
                continue

            os.makedirs(os.path.dirname(destination), 0o755, exist_ok=True)
            with open(destination, "wb") as out:
                os.chmod(destination, 0o755)
                with archive.open(info) as source:
                    shutil.copyfileobj(source, out)