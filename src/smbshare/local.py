"""
Local-storage collaborator used by upload and download.

Every OSError is re-raised as LocalIOError so transfer code only has to deal
with the SDK's own error hierarchy.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Union
from urllib.parse import unquote, urlparse

from smbshare.exceptions import LocalIOError, UsageError

LocalLocation = Union[str, "os.PathLike[str]"]


def resolve_local_path(location: LocalLocation) -> Path:
    """
    Turn a local path or ``file://`` URL into a Path.

    Raises:
        UsageError: For any other URL scheme (``smb://``, ``http://``...).
    """
    if isinstance(location, os.PathLike):
        return Path(location)
    if not isinstance(location, str) or not location:
        raise UsageError(f"Expected a local path, got {location!r}")

    if "://" not in location:
        return Path(location)

    parsed = urlparse(location)
    if parsed.scheme.lower() != "file":
        raise UsageError(
            f"Only local files are supported, got a '{parsed.scheme}' URL: {location}"
        )
    if parsed.netloc not in ("", "localhost"):
        raise UsageError(f"file:// URL points to another host: {location}")
    return Path(unquote(parsed.path))


@contextmanager
def _translate(path: Path, operation: str) -> Iterator[None]:
    try:
        yield
    except OSError as e:
        raise LocalIOError(
            str(path), operation, detail=e.strerror or str(e), errno=e.errno, cause=e
        ) from e


class LocalStorage:
    """Thin wrapper over the local file system."""

    def is_reachable(self, path: Path) -> bool:
        """True when ``path`` is an existing regular file we can open."""
        with _translate(path, "stat"):
            return path.is_file() and os.access(path, os.R_OK)

    def exists(self, path: Path) -> bool:
        with _translate(path, "stat"):
            return path.exists()

    def size(self, path: Path) -> int:
        with _translate(path, "stat"):
            return path.stat().st_size

    def open_read(self, path: Path) -> BinaryIO:
        with _translate(path, "open"):
            return open(path, "rb")

    def open_write(self, path: Path) -> BinaryIO:
        """Open an existing file for writing without truncating it."""
        with _translate(path, "open"):
            return open(path, "r+b")

    def create_empty(self, path: Path) -> None:
        with _translate(path, "create"):
            with open(path, "wb"):
                pass

    def remove(self, path: Path) -> None:
        with _translate(path, "remove"):
            path.unlink()

    def read(self, handle: BinaryIO, path: Path, size: int) -> bytes:
        with _translate(path, "read"):
            return handle.read(size)

    def seek(self, handle: BinaryIO, path: Path, offset: int) -> None:
        with _translate(path, "seek"):
            handle.seek(offset)

    def tell(self, handle: BinaryIO, path: Path) -> int:
        with _translate(path, "tell"):
            return handle.tell()

    def write(self, handle: BinaryIO, path: Path, data: bytes) -> None:
        with _translate(path, "write"):
            handle.write(data)

    def sync(self, handle: BinaryIO, path: Path) -> None:
        """Flush Python buffers and fsync to durable storage."""
        with _translate(path, "sync"):
            handle.flush()
            os.fsync(handle.fileno())


__all__ = ["LocalLocation", "LocalStorage", "resolve_local_path"]
