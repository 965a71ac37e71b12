import contextlib
import re
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from sak.fetch.download import DownloadError, download_file, download_files, fibonacci
from sak.fetch.types import Request


@contextlib.contextmanager
def serve(handle):
    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            handle(self)

        def log_message(self, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


def reply(handler, status, body=b"", headers=None):
    handler.send_response(status)
    for key, value in (headers or {}).items():
        handler.send_header(key, value)
    handler.end_headers()
    if body:
        handler.wfile.write(body)


@pytest.fixture
def session():
    with requests.Session() as http_session:
        yield http_session


@pytest.mark.parametrize(
    ("content", "status", "headers", "existing", "expected_status"),
    [
        (b"Hello, World!", 200, {}, b"", 200),
        (b"Test content with length", 200, {"Content-Length": "24"}, b"", 200),
        (
            b"Hello, World! This is a long file for testing resume functionality.",
            206,
            {"Content-Range": "bytes 6-66/67"},
            b"Hello,",
            206,
        ),
        (b"", 416, {}, b"Complete file", 416),
        (b"", 404, {}, b"", 404),
    ],
    ids=["successful", "content-length", "resume", "already-complete", "not-found"],
)
def test_download_file(tmp_path, session, content, status, headers, existing, expected_status):
    def handle(h):
        if status == 206 and existing:
            body = content[len(existing):]
        elif status in (200, 206):
            body = content
        else:
            body = b""
        reply(h, status, body, headers)

    path = tmp_path / "download.txt"
    if existing:
        path.write_bytes(existing)

    with serve(handle) as url:
        request = Request(url=url, file_path=str(path))
        response = download_file(session, request, 1)
        assert response.request is request
        response.wait()

    assert response.status_code == expected_status
    assert response.is_complete()
    if status in (200, 206):
        assert path.read_bytes() == content
        assert response.size > 0
        assert response.progress == 1.0
        assert response.size == response.downloaded


def test_download_file_server_error(tmp_path, session):
    with serve(lambda h: reply(h, 500)) as url:
        response = download_file(session, Request(url=url, file_path=str(tmp_path / "f.txt")), 1)
        with pytest.raises(DownloadError, match="unexpected status: 500"):
            response.wait()


def test_download_file_cancel(tmp_path, session):
    def handle(h):
        time.sleep(0.3)
        reply(h, 200, b"This should not complete")

    with serve(handle) as url:
        response = download_file(session, Request(url=url, file_path=str(tmp_path / "c.txt")), 0)
        timer = threading.Timer(0.05, response.cancel)
        timer.start()
        with pytest.raises(DownloadError, match="canceled"):
            response.wait()
        timer.join()

    assert response.is_complete()


def test_download_with_retries(tmp_path, session):
    attempts = []
    lock = threading.Lock()

    def handle(h):
        with lock:
            attempts.append(1)
            count = len(attempts)
        if count < 3:
            reply(h, 500)
        else:
            reply(h, 200, b"Success after retries")

    path = tmp_path / "retry_test.txt"
    with serve(handle) as url:
        response = download_file(session, Request(url=url, file_path=str(path)), 3)
        response.wait()

    assert response.status_code == 200
    assert len(attempts) == 3
    assert path.read_bytes() == b"Success after retries"


FULL_CONTENT = b"0123456789abcdefghijklmnopqrstuvwxyz"


def range_handler(h):
    match = re.match(r"bytes=(\d+)-", h.headers.get("Range") or "")
    if match and int(match[1]) < len(FULL_CONTENT):
        start = int(match[1])
        reply(
            h,
            206,
            FULL_CONTENT[start:],
            {"Content-Range": f"bytes {start}-{len(FULL_CONTENT) - 1}/{len(FULL_CONTENT)}"},
        )
        return
    reply(h, 200, FULL_CONTENT)


def test_download_with_range_request(tmp_path, session):
    path = tmp_path / "range_test.txt"
    path.write_bytes(FULL_CONTENT[:10])

    with serve(range_handler) as url:
        response = download_file(session, Request(url=url, file_path=str(path)), 1)
        response.wait()

    assert path.read_bytes() == FULL_CONTENT
    assert response.status_code == 206
    assert response.size == len(FULL_CONTENT)
    assert response.progress == 1.0


def test_download_restarts_when_range_ignored(tmp_path, session):
    path = tmp_path / "ignored.txt"
    path.write_bytes(b"garbage")

    with serve(lambda h: reply(h, 200, FULL_CONTENT)) as url:
        response = download_file(session, Request(url=url, file_path=str(path)), 0)
        response.wait()

    assert response.status_code == 200
    assert path.read_bytes() == FULL_CONTENT


def test_download_sends_request_headers(tmp_path, session):
    seen = []

    def handle(h):
        seen.append(h.headers.get("Authorization"))
        reply(h, 200, b"ok")

    path = tmp_path / "h.txt"
    with serve(handle) as url:
        request = Request(url=url, file_path=str(path), headers={"Authorization": "Bearer token"})
        response = download_file(session, request, 0)
        response.wait()

    assert seen == ["Bearer token"]
    assert response.status_code == 200
    assert response.read_bytes() == b"ok"


def test_download_file_open_error(tmp_path, session):
    path = tmp_path / "missing" / "file.txt"
    response = download_file(session, Request(url="http://127.0.0.1:9", file_path=str(path)), 1)

    with pytest.raises(DownloadError, match="could not open file"):
        response.wait()


def test_track_reports_completed_download(tmp_path, session):
    body = b"x" * 5000
    calls = []
    with serve(lambda h: reply(h, 200, body, {"Content-Length": str(len(body))})) as url:
        response = download_file(session, Request(url=url, file_path=str(tmp_path / "t.bin")), 0)
        response.track(lambda done, total, progress: calls.append((done, total, progress)))

    assert calls[-1] == (5000, 5000, 1.0)


def test_download_files(tmp_path, session):
    contents = [b"Content 1", b"Content 2", b"Content 3"]

    def handle(h):
        time.sleep(0.01)
        reply(h, 200, contents[int(h.path.strip("/"))])

    with serve(handle) as url:
        requests_ = [
            Request(url=f"{url}/{index}", file_path=str(tmp_path / f"file_{index}.txt"))
            for index in range(3)
        ]
        responses, cancel_all = download_files(session, requests_, 2, 1)
        received = []
        for response in responses:
            response.wait()
            received.append(response)
        cancel_all()
        cancel_all()

    by_index = {int(response.request.url.rsplit("/", 1)[1]): response for response in received}
    assert len(received) == 3
    assert sorted(by_index) == [0, 1, 2]
    assert [response.status_code for response in received] == [200, 200, 200]
    assert [response.is_complete() for response in received] == [True, True, True]
    assert [by_index[index].read_bytes() for index in range(3)] == contents


def test_download_files_cancel_all(tmp_path, session):
    with serve(lambda h: reply(h, 200, b"content")) as url:
        requests_ = [
            Request(url=url, file_path=str(tmp_path / f"cancel_{index}.txt")) for index in range(3)
        ]
        responses, cancel_all = download_files(session, requests_, 1)
        cancel_all()
        received = list(responses)

    assert len(received) <= 3
    assert all(response.cancel_requested.is_set() for response in received)


def test_download_files_parallelism(tmp_path, session):
    lock = threading.Lock()
    state = {"active": 0, "max": 0}

    def handle(h):
        with lock:
            state["active"] += 1
            state["max"] = max(state["max"], state["active"])
        time.sleep(0.05)
        with lock:
            state["active"] -= 1
        reply(h, 200, b"content")

    with serve(handle) as url:
        requests_ = [
            Request(url=url, file_path=str(tmp_path / f"parallel_{index}.txt")) for index in range(5)
        ]
        responses, cancel_all = download_files(session, requests_, 2, 1)
        received = []
        for response in responses:
            response.wait()
            received.append(response)
        cancel_all()

    assert len(received) == 5
    assert 1 <= state["max"] <= 2


def test_download_files_rejects_zero_parallel(session):
    with pytest.raises(ValueError, match="parallel"):
        download_files(session, [], 0)


@pytest.mark.parametrize(
    ("n", "expected"),
    [(0, 0), (1, 1), (2, 1), (3, 2), (4, 3), (5, 5), (6, 8), (7, 13)],
)
def test_fibonacci(n, expected):
    assert fibonacci(n) == expected