"""Cookies read from Netscape cookie files and rendered as a header."""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass

_FIELD_COUNT = 7


@dataclass(frozen=True)
class Cookie:
    """A name/value pair of an HTTP cookie."""

    name: str = ""
    value: str = ""


def get_file_cookies(file_path: str | os.PathLike[str]) -> list[Cookie]:
    """Read the cookies of a Netscape-format cookie file.

    Blank lines, comment lines and lines without exactly seven
    tab-separated fields are skipped. Raises OSError if the file cannot
    be read.
    """
    cookies: list[Cookie] = []
    with open(file_path, encoding="utf-8", newline="\n") as handle:
        for raw in handle:
            line = raw.removesuffix("\n").removesuffix("\r")
            if not line or line.startswith("#"):
                continue

            fields = line.split("\t")
            if len(fields) != _FIELD_COUNT:
                continue

            cookies.append(Cookie(name=fields[5], value=fields[6]))
    return cookies


def cookies_to_header(cookies: Iterable[Cookie]) -> str:
    """Join *cookies* into a ``Cookie`` header value: ``a=1; b=2``."""
    return "; ".join(f"{cookie.name}={cookie.value}" for cookie in cookies)