"""An HTTP client for text, JSON and file downloads with retries."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any
from urllib.parse import urlsplit

from requests import RequestException, Session
from requests import Response as HTTPResponse

from sak.fetch import download
from sak.fetch.download import IDLE_TIMEOUT, fibonacci
from sak.fetch.types import Request, Response

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/133.0.0.0 Safari/537.36"
)
DEFAULT_CONTENT_TYPE = "application/json"


class FetchError(Exception):
    """A request failed or the server answered with an error status."""

    def __init__(self, message: str, response: HTTPResponse | None = None) -> None:
        super().__init__(message)
        self.response = response

    @property
    def status_code(self) -> int | None:
        """The HTTP status of the failed response, if one was received."""
        return None if self.response is None else self.response.status_code


def _status_line(http: HTTPResponse) -> str:
    return f"{http.status_code} {http.reason or ''}".strip()


def _validate_url(url: str) -> None:
    if any(ord(char) < 0x20 or char == "\x7f" for char in url):
        raise ValueError("invalid control character in URL")
    if url.startswith(":"):
        raise ValueError("missing protocol scheme")
    urlsplit(url)


class Fetch:
    """Client sending *headers* with every request and retrying *retries* times."""

    def __init__(self, headers: Mapping[str, str] | None = None, retries: int = 0) -> None:
        merged = dict(headers or {})
        merged.setdefault("User-Agent", USER_AGENT)
        merged.setdefault("Content-Type", DEFAULT_CONTENT_TYPE)

        self.headers: dict[str, str] = merged
        self.retries = retries

        self._session = Session()
        self._session.headers.update(merged)
        self._download_session = Session()

    def new_request(self, url: str, file_path: str) -> Request:
        """Build a download request for *url* saved at *file_path*."""
        try:
            _validate_url(url)
        except ValueError as exc:
            raise FetchError(f"failed to create request: {exc}") from exc

        headers = dict(self.headers)
        headers["User-Agent"] = USER_AGENT
        return Request(url=url, file_path=file_path, headers=headers)

    def download_file(self, request: Request) -> Response:
        """Start downloading *request* in the background."""
        return download.download_file(self._download_session, request, self.retries)

    def download_files(
        self, requests: Iterable[Request], parallel: int
    ) -> tuple[Iterator[Response], Callable[[], None]]:
        """Download *requests* with at most *parallel* running at once."""
        return download.download_files(
            self._download_session, requests, parallel, self.retries
        )

    def get_text(self, url: str) -> str:
        """GET *url* and return its body as text."""
        http = self._get(url, None)
        if http.status_code >= 400:
            logger.error("error getting text (status=%d, url=%s)", http.status_code, url)
            raise FetchError(_status_line(http), response=http)
        return http.content.decode("utf-8", errors="replace")

    def get_result(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> tuple[HTTPResponse, Any]:
        """GET *url* with extra *headers*; return the response and its decoded JSON.

        The decoded value is None for an empty body.
        """
        http = self._get(url, headers)
        if http.status_code >= 400:
            logger.error("error getting result (status=%d, url=%s)", http.status_code, url)
            raise FetchError(_status_line(http), response=http)
        if not http.content:
            return http, None
        try:
            return http, http.json()
        except ValueError as exc:
            raise FetchError(f"invalid JSON response: {exc}", response=http) from exc

    def _get(self, url: str, headers: Mapping[str, str] | None) -> HTTPResponse:
        attempt = 1
        while True:
            http: HTTPResponse | None = None
            error: RequestException | None = None
            try:
                http = self._session.get(
                    url,
                    headers=dict(headers) if headers else None,
                    timeout=(IDLE_TIMEOUT, IDLE_TIMEOUT),
                )
            except RequestException as exc:
                error = exc

            failed = error is not None or (http is not None and http.status_code >= 400)
            if not failed or attempt > self.retries:
                if error is not None:
                    logger.error("request failed (error=%s, url=%s)", error, url)
                    raise FetchError(str(error)) from error
                assert http is not None
                return http

            delay = fibonacci(attempt + 1)
            logger.warning(
                "failed to get data; retrying in %ss (attempt=%d, error=%s, status=%s, url=%s)",
                delay,
                attempt,
                error,
                None if http is None else http.status_code,
                url,
            )
            if http is not None:
                http.close()
            time.sleep(delay)
            attempt += 1