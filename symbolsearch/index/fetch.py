"""Transports that fetch raw partition files.

Fetchers only move text. Parsing and caching belong to the loader. Every
failure surfaces as ``PartitionFetchError`` so the loader has one thing to
catch.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import requests

from ..errors import PartitionFetchError

FETCH_TIMEOUT_SECONDS = 10.0


class PartitionFetcher(Protocol):
    """Anything that can return the text of a named partition file."""

    def fetch(self, filename: str) -> str:
        ...


def read_text(path: Path) -> str:
    """Read ``path`` as utf-8 (dropping a leading BOM), falling back to latin-1."""
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    return path.read_bytes().decode("utf-8", errors="replace")


class DirectoryPartitionFetcher:
    """Read partition files from a local documentation ``search`` directory."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def fetch(self, filename: str) -> str:
        path = self.root / filename
        try:
            return read_text(path)
        except OSError as exc:
            raise PartitionFetchError(filename, cause=exc) from exc


def _response_text(resp: requests.Response) -> str:
    """Decode a response body, treating a missing charset as utf-8.

    ``requests`` assumes ISO-8859-1 for ``text/*`` without a charset, which
    would garble non-ASCII labels.
    """
    content_type = resp.headers.get("content-type", "")
    if "charset=" in content_type.lower():
        return resp.text
    return resp.content.decode("utf-8-sig", errors="replace")


class HttpPartitionFetcher:
    """Fetch partition files relative to a base URL with ``requests``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()

    def url_for(self, filename: str) -> str:
        return f"{self.base_url}/{filename.lstrip('/')}"

    def fetch(self, filename: str) -> str:
        try:
            resp = self._session.get(self.url_for(filename), timeout=self.timeout)
        except requests.RequestException as exc:
            raise PartitionFetchError(filename, cause=exc) from exc

        if resp.status_code >= 400:
            raise PartitionFetchError(filename, reason=f"{resp.status_code} {resp.reason}")
        return _response_text(resp)

    def close(self) -> None:
        self._session.close()


__all__ = [
    "DirectoryPartitionFetcher",
    "FETCH_TIMEOUT_SECONDS",
    "HttpPartitionFetcher",
    "PartitionFetcher",
    "read_text",
]
