"""
Protocol session contract.

A SessionContext is one stateful, non-thread-safe handle to a connected
share. All methods block. The core only ever reaches a session through a
CommandLane, so implementations need no locking of their own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum


class EntryType(IntEnum):
    """Protocol-level entry type tag."""

    FILE = 0
    DIRECTORY = 1
    LINK = 2


@dataclass(frozen=True)
class StatRecord:
    """Raw protocol metadata. ``ctime`` is the creation time."""

    size: int
    type: EntryType = EntryType.FILE
    mtime: int = 0
    mtime_nsec: int = 0
    ctime: int = 0
    ctime_nsec: int = 0


class FileHandle(ABC):
    """Open remote file."""

    @property
    @abstractmethod
    def optimal_chunk_size(self) -> int:
        """Largest chunk a single read or write request carries."""

    @abstractmethod
    def fstat(self) -> StatRecord: ...

    @abstractmethod
    def seek(self, offset: int) -> int:
        """Move to ``offset``; return the offset actually reached."""

    @abstractmethod
    def read(self) -> bytes:
        """Read one chunk at the current position. Empty means end of file."""

    @abstractmethod
    def write(self, chunk: bytes) -> int:
        """Write ``chunk`` at the current position; return bytes written."""

    @abstractmethod
    def fsync(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    def __enter__(self) -> "FileHandle":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class SessionContext(ABC):
    """Connected share. Not thread-safe."""

    @abstractmethod
    def connect(self, server: str, share: str, user: str) -> None: ...

    @abstractmethod
    def disconnect(self) -> None: ...

    @abstractmethod
    def stat(self, path: str) -> StatRecord: ...

    @abstractmethod
    def listdir(self, path: str) -> list[tuple[str, StatRecord]]:
        """Raw directory entries, possibly including ``.`` and ``..``."""

    @abstractmethod
    def mkdir(self, path: str) -> None: ...

    @abstractmethod
    def rmdir(self, path: str) -> None: ...

    @abstractmethod
    def unlink(self, path: str) -> None: ...

    @abstractmethod
    def rename(self, path: str, to: str) -> None: ...

    @abstractmethod
    def open_for_read(self, path: str) -> FileHandle: ...

    @abstractmethod
    def open_for_create_write(self, path: str) -> FileHandle:
        """Open ``path`` for writing, creating it or truncating existing content."""
