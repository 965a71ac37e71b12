"""Resumable file downloads with retries and bounded parallelism."""

from __future__ import annotations

import logging
import math
import os
import queue
import re
import threading
from collections.abc import Callable, Iterable, Iterator
from typing import BinaryIO

from requests import RequestException, Session
from requests import Response as HTTPResponse

from sak.fetch.types import ProgressWriter, Request, Response

logger = logging.getLogger(__name__)

IDLE_TIMEOUT = 30.0
_CHUNK_SIZE = 64 * 1024
_SLOT_POLL = 0.05
_CONTENT_RANGE = re.compile(r"bytes ([+-]?\d+)-([+-]?\d+)/([+-]?\d+)")
_END = object()


class DownloadError(Exception):
    """A download failed or was canceled."""


def fibonacci(n: int) -> int:
    """Return the *n*-th Fibonacci number (``n`` itself for ``n <= 1``)."""
    if n <= 1:
        return n
    previous, current = 0, 1
    for _ in range(n - 1):
        previous, current = current, previous + current
    return current


def _open_for_writing(path: str, _flags: int) -> int:
    return os.open(path, os.O_WRONLY | os.O_CREAT, 0o644)


def _canceled() -> DownloadError:
    return DownloadError("download canceled")


def _advance(response: Response, written: int) -> None:
    response.downloaded += written
    if response.size > 0:
        response.progress = response.downloaded / response.size


def _content_length(http: HTTPResponse) -> int:
    if http.headers.get("Content-Encoding"):
        return -1
    try:
        return int(http.headers["Content-Length"])
    except (KeyError, ValueError):
        return -1


def _total_size(http: HTTPResponse, offset: int) -> int:
    content_range = http.headers.get("Content-Range")
    if content_range:
        match = _CONTENT_RANGE.match(content_range)
        if match:
            return int(match[3])
    return offset + _content_length(http)


def _download_with_retries(
    session: Session,
    response: Response,
    retries: int,
    offset: int,
    handle: BinaryIO,
    writer: ProgressWriter,
) -> None:
    request = response.request
    cancel = response.cancel_requested
    attempt = 0

    while attempt <= retries:
        if cancel.is_set():
            response.error = _canceled()
            return

        if attempt > 0:
            delay = fibonacci(attempt + 1)
            logger.warning(
                "failed to download file; retrying in %ss (attempt=%d, error=%s, url=%s)",
                delay,
                attempt,
                response.error,
                request.url,
            )
            if cancel.wait(delay):
                response.error = _canceled()
                return

        headers = dict(request.headers)
        ranged = offset > 0
        if ranged:
            headers["Range"] = f"bytes={offset}-"

        try:
            http = session.get(
                request.url,
                headers=headers,
                stream=True,
                timeout=(IDLE_TIMEOUT, IDLE_TIMEOUT),
            )
        except RequestException as exc:
            response.error = DownloadError(f"request error: {exc}")
            attempt += 1
            continue

        with http:
            if cancel.is_set():
                response.error = _canceled()
                return

            status = http.status_code

            # The server ignored the range: start over from scratch.
            if ranged and status == 200:
                try:
                    handle.truncate(0)
                    handle.seek(0)
                except OSError as exc:
                    response.status_code = status
                    response.size = 0
                    response.error = DownloadError(f"truncate failed: {exc}")
                offset = 0
                continue

            response.downloaded = offset

            if status == 416:
                response.status_code = status
                response.size = offset
                response.progress = offset / response.size if response.size else math.nan
                return

            if status not in (404, 410) and not 200 <= status < 300:
                response.error = DownloadError(f"unexpected status: {status}")
                attempt += 1
                continue

            response.size = _total_size(http, offset)
            start_offset = offset

            try:
                for chunk in http.iter_content(_CHUNK_SIZE):
                    if cancel.is_set():
                        response.error = _canceled()
                        return
                    writer.write(chunk)
            except (RequestException, OSError) as exc:
                if cancel.is_set():
                    response.error = _canceled()
                    return
                try:
                    new_offset = handle.seek(0, os.SEEK_END)
                except OSError as seek_exc:
                    response.error = DownloadError(
                        f"seek after partial download failed: {seek_exc}"
                    )
                    return
                offset = new_offset
                response.error = DownloadError(
                    f"download interrupted (wrote {new_offset - start_offset} bytes), "
                    f"will resume: {exc}"
                )
                attempt += 1
                continue

            if response.size == -1:
                response.size = response.downloaded
                response.progress = 1.0

            response.status_code = status
            response.error = None
            return


def _run(session: Session, response: Response, retries: int) -> None:
    try:
        path = response.request.file_path
        try:
            offset = os.stat(path).st_size
        except OSError:
            offset = 0

        try:
            handle = open(path, "wb", opener=_open_for_writing)
        except OSError as exc:
            response.error = DownloadError(f"could not open file: {exc}")
            return

        with handle:
            try:
                handle.seek(offset)
            except OSError as exc:
                response.error = DownloadError(f"could not seek: {exc}")
                return

            writer = ProgressWriter(handle, lambda written: _advance(response, written))
            _download_with_retries(session, response, retries, offset, handle, writer)
    except Exception as exc:  # keep the failure on the response, not in the thread
        response.error = DownloadError(f"download failed: {exc}")
    finally:
        response.done.set()


def download_file(session: Session, request: Request, retries: int = 0) -> Response:
    """Start downloading *request* in the background and return its Response.

    An existing partial file is resumed with a Range request; failures are
    retried up to *retries* times with Fibonacci backoff in seconds.
    """
    response = Response(request=request)
    threading.Thread(
        target=_run,
        args=(session, response, retries),
        name=f"download {request.url}",
        daemon=True,
    ).start()
    return response


def download_files(
    session: Session,
    requests: Iterable[Request],
    parallel: int,
    retries: int = 0,
) -> tuple[Iterator[Response], Callable[[], None]]:
    """Download *requests* with at most *parallel* running at once.

    Returns an iterator yielding each Response as its download starts and a
    function that cancels every running download and any not yet started.
    """
    if parallel < 1:
        raise ValueError("parallel must be at least 1")

    pending = list(requests)
    results: queue.Queue[object] = queue.Queue()
    stop = threading.Event()
    slots = threading.Semaphore(parallel)
    lock = threading.Lock()
    started: list[Response] = []

    def cancel_all() -> None:
        stop.set()
        with lock:
            active = list(started)
        for response in active:
            response.cancel()

    def worker(request: Request) -> None:
        while not slots.acquire(timeout=_SLOT_POLL):
            if stop.is_set():
                return
        try:
            if stop.is_set():
                return
            response = download_file(session, request, retries)
            with lock:
                started.append(response)
                if stop.is_set():
                    response.cancel()
            results.put(response)
            response.done.wait()
        finally:
            slots.release()

    def supervise() -> None:
        workers = [threading.Thread(target=worker, args=(request,), daemon=True) for request in pending]
        for thread in workers:
            thread.start()
        for thread in workers:
            thread.join()
        results.put(_END)

    threading.Thread(target=supervise, name="download supervisor", daemon=True).start()

    def responses() -> Iterator[Response]:
        while (item := results.get()) is not _END:
            yield item  # type: ignore[misc]

    return responses(), cancel_all