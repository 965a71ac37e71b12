"""SHA-256 digests of files on disk."""

from __future__ import annotations

import hashlib
import os

_CHUNK_SIZE = 64 * 1024


def sha256_file(file_path: str | os.PathLike[str]) -> str:
    """Return the SHA-256 digest of the file at *file_path* as lowercase hex.

    Raises OSError if the file cannot be opened or read.
    """
    digest = hashlib.sha256()
    with open(file_path, "rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()