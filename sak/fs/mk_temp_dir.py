"""Temporary directories with a cleanup callable."""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Callable

_SEPARATORS = tuple(sep for sep in (os.sep, os.altsep, "/") if sep)


def mk_temp_dir(pattern: str = "") -> tuple[str, Callable[[], None]]:
    """Create a directory in the system temporary location.

    The last ``*`` in *pattern* is replaced by a random string; without a
    ``*`` the random string is appended. Returns the directory path and a
    function that removes it with everything inside; calling that function
    again is harmless.
    """
    if any(sep in pattern for sep in _SEPARATORS):
        raise ValueError(f"pattern contains path separator: {pattern!r}")

    prefix, star, suffix = pattern.rpartition("*")
    if not star:
        prefix, suffix = pattern, ""

    path = tempfile.mkdtemp(prefix=prefix, suffix=suffix)

    def cleanup() -> None:
        shutil.rmtree(path, ignore_errors=True)

    return path, cleanup