"""Download requests, their responses and progress accounting."""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

_TRACK_INTERVAL = 0.1


class _Writable(Protocol):
    def write(self, data: bytes, /) -> Any: ...


@dataclass
class Request:
    """A file to fetch from *url* into *file_path* with extra *headers*."""

    url: str
    file_path: str
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(eq=False)
class Response:
    """The state of one download, updated while it runs."""

    request: Request
    status_code: int = 0
    size: int = 0
    downloaded: int = 0
    progress: float = 0.0
    error: BaseException | None = None
    done: threading.Event = field(default_factory=threading.Event, repr=False)
    cancel_requested: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False
    )

    def wait(self) -> None:
        """Block until the download ends; raise the error it ended with."""
        self.done.wait()
        if self.error is not None:
            raise self.error

    def is_complete(self) -> bool:
        """Return True once the download has ended."""
        return self.done.is_set()

    def cancel(self) -> None:
        """Ask the download to stop."""
        self.cancel_requested.set()

    def read_bytes(self) -> bytes:
        """Return the content of the downloaded file."""
        try:
            with open(self.request.file_path, "rb") as handle:
                return handle.read()
        except OSError as exc:
            raise OSError(
                exc.errno, f"failed to read file: {exc.strerror}", exc.filename
            ) from exc

    def track(self, callback: Callable[[int, int, float], None]) -> None:
        """Report progress to *callback* until the download ends.

        *callback* receives the downloaded bytes, the total size and the
        progress fraction whenever the downloaded count changed, checked
        every 100 ms. Raises the download's error once it ends.
        """
        last_seen = -1
        while True:
            finished = self.done.wait(_TRACK_INTERVAL)
            if self.downloaded != last_seen:
                last_seen = self.downloaded
                callback(self.downloaded, self.size, self.progress)
            if finished:
                self.wait()
                return


@dataclass
class ProgressWriter:
    """A writer that reports every successful write to *callback*."""

    file: _Writable
    callback: Callable[[int], None] | None = None

    def write(self, data: bytes) -> int:
        """Write *data* to the file and return the number of bytes written."""
        written = self.file.write(data)
        if written is None:
            written = len(data)
        if self.callback is not None:
            self.callback(written)
        return written


def _fspath(path: str | os.PathLike[str]) -> str:
    return os.fspath(path)