"""Conversions between filesystem paths and file: URLs."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname


def path_to_url(path: str | Path) -> str:
    """Absolute ``file:`` URL for *path*."""
    return Path(path).resolve().as_uri()


def url_to_path(url: str) -> Path:
    """Convert a ``file:`` URL to a resolved path.

    Raises ValueError for other schemes, remote hosts, a path that is
    empty or not absolute, and a query or fragment.
    """
    parsed = urlparse(url)
    if parsed.scheme != "file":
        raise ValueError(f"not a file URL: {url!r}")
    if parsed.netloc not in ("", "localhost"):
        raise ValueError(f"file URL has a remote host: {url!r}")
    if not parsed.path:
        raise ValueError(f"file URL has no path: {url!r}")
    if not parsed.path.startswith("/"):
        raise ValueError(f"file URL path is not absolute: {url!r}")
    if parsed.query or parsed.fragment:
        raise ValueError(f"file URL has a query or fragment: {url!r}")
    return Path(url2pathname(parsed.path)).resolve()


def is_url(value: str) -> bool:
    return value.startswith("file:")
