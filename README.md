# sak

A small library of everyday helpers:

- **`sak.crypto.sha256_file`**: SHA-256 digests of files.
- **`sak.fs`**: directory listing, temporary directories, per-user
  configuration directories and files, and safe ZIP extraction.
- **`sak.fetch`**: Netscape cookie files, text and JSON over HTTP with
  retries, and background file downloads that resume and report progress.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Hashing a file

```python
from sak.crypto.sha256_file import sha256_file

print(sha256_file("archive.zip"))  # 64 lowercase hex characters
```

An `OSError` is raised if the file cannot be opened or read.

## Listing paths

```python
from sak.fs.list_path import Flags, list_path

# every .py file below src/, at any depth
sources = list_path("src", Flags.FILE | Flags.RECURSIVE, [".py"])

# directories directly inside docs/
folders = list_path("docs", Flags.DIR, None)
```

`Flags.DIR` includes directories, `Flags.FILE` includes files and
`Flags.RECURSIVE` descends into subdirectories. Entries come in name order,
a directory before its contents. Extensions are given with the dot and match
regardless of case; with no extensions every file matches. A missing root
raises `OSError`; unreadable entries below it are skipped.

## Temporary directories

```python
from sak.fs.mk_temp_dir import mk_temp_dir

path, cleanup = mk_temp_dir("myapp-*")
try:
    ...
finally:
    cleanup()
```

The last `*` in the pattern is replaced by a random string (without one the
random string is appended). `cleanup` removes the directory and everything
in it, and may be called more than once. A pattern containing a path
separator raises `ValueError`.

## Configuration directories and files

```python
from sak.fs.user_config import mk_user_config_dir, mk_user_config_file, user_config_dir

print(user_config_dir())  # e.g. ~/.config on Linux

settings_dir = mk_user_config_dir("myapp", "settings")
with mk_user_config_file("myapp", "config.json") as handle:
    handle.write(b"{}")
```

`mk_user_config_dir` creates `<config dir>/name/...` and returns its path.
`mk_user_config_file` creates the directories, then opens the file (the last
part) for binary reading and writing, creating it if missing and keeping
existing content. An empty name, or no parts for the file, raises
`ValueError`.

## Extracting archives

```python
from sak.fs.unzip import IllegalPathError, unzip

try:
    unzip("bundle.zip", "out")
except IllegalPathError as exc:
    print("refused:", exc.entry_name)
```

The target directory is created if needed. Entries with absolute paths
(including Windows drive paths) or `..` segments raise `IllegalPathError`.
Extracted files get mode `0o755`.

## Cookies

```python
from sak.fetch.cookies import Cookie, cookies_to_header, get_file_cookies

cookies = get_file_cookies("cookies.txt")
header = cookies_to_header(cookies)  # "name=value; other=value"
```

Blank lines, `#` comments and lines without exactly seven tab-separated
fields are skipped.

## HTTP

```python
from sak.fetch.client import Fetch, FetchError

client = Fetch({"Authorization": "Bearer token"}, retries=3)

text = client.get_text("https://example.com/")
http_response, data = client.get_result("https://example.com/api", {"X-Extra": "1"})
```

Every request carries the client's headers; `User-Agent` and
`Content-Type: application/json` are added when not given. Failed requests
and error statuses are retried up to `retries` times, waiting 1, 2, 3, 5, …
seconds (Fibonacci). Once retries are spent, an error status or connection
failure raises `FetchError`, whose `status_code` holds the HTTP status when
there was one. `get_result` returns the `requests` response together with
the decoded JSON (`None` for an empty body).

## Downloads

```python
request = client.new_request("https://example.com/big.iso", "big.iso")
response = client.download_file(request)
response.track(lambda done, total, progress: print(f"{progress:.0%}"))
data = response.read_bytes()
```

`download_file` runs in a background thread and returns a `Response` whose
`status_code`, `size`, `downloaded` and `progress` update as it runs.
`wait()` blocks until it ends and raises its error, `is_complete()` tells
whether it has ended, `cancel()` stops it, and `track()` calls back every
100 ms while the byte count changes.

An existing file is resumed with a `Range` request; if the server ignores
the range the file is started over, and a `416` answer counts as already
complete. `404` and `410` end the download without error; other non-2xx
statuses are retried. Failures raise `DownloadError` from `wait()`.

```python
requests = [client.new_request(url, path) for url, path in jobs]
responses, cancel_all = client.download_files(requests, parallel=2)
for response in responses:
    response.wait()
```

`download_files` yields each `Response` as its download starts, with at most
`parallel` running at once; `cancel_all()` stops running downloads and any
not yet started. The same functions are available without a client in
`sak.fetch.download` (`download_file`, `download_files`), taking a
`requests.Session` directly.

## What it does not do

This is a library only: it installs no command-line program.