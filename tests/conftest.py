"""
Pytest configuration and fixtures for smbshare tests.

MemorySession is an in-process share implementing the SessionContext
contract, instrumented so tests can assert on call order and overlap.
"""

from __future__ import annotations

import threading
import time
from collections import Counter

import pytest

from smbshare.client import SMBShareClient
from smbshare.exceptions import ProtocolError, ShareConnectionError
from smbshare.session.base import EntryType, FileHandle, SessionContext, StatRecord

STATUS_OBJECT_NAME_NOT_FOUND = 0xC0000034
STATUS_OBJECT_NAME_COLLISION = 0xC0000035
STATUS_DIRECTORY_NOT_EMPTY = 0xC0000101
STATUS_UNEXPECTED_NETWORK_ERROR = 0xC00000C4

MTIME = 1_700_000_000
CTIME = 1_600_000_000


def _norm(path: str) -> str:
    return path.replace("\\", "/").strip("/")


def _parent(path: str) -> str:
    return path.rsplit("/", 1)[0] if "/" in path else ""


class MemoryFileHandle(FileHandle):
    """Open file on a MemorySession."""

    def __init__(self, session: MemorySession, path: str) -> None:
        self._session = session
        self._path = path
        self._position = 0
        self.closed = False

    @property
    def optimal_chunk_size(self) -> int:
        return self._session.chunk_size

    def fstat(self) -> StatRecord:
        return self._session.stat(self._path)

    def seek(self, offset: int) -> int:
        with self._session.call("seek"):
            self._position = offset + self._session.seek_bias
            return self._position

    def read(self) -> bytes:
        with self._session.call("read"):
            self._session.reads += 1
            limit = self._session.fail_read_after
            if limit is not None and self._session.reads > limit:
                raise ProtocolError(
                    "read", path=self._path, status=STATUS_UNEXPECTED_NETWORK_ERROR
                )
            data = self._session.files[self._path]
            chunk = bytes(data[self._position : self._position + self._session.chunk_size])
            self._position += len(chunk)
            return chunk

    def write(self, chunk: bytes) -> int:
        with self._session.call("write"):
            self._session.writes += 1
            limit = self._session.fail_write_after
            if limit is not None and self._session.writes > limit:
                raise ProtocolError(
                    "write", path=self._path, status=STATUS_UNEXPECTED_NETWORK_ERROR
                )
            size = len(chunk)
            if self._session.max_write is not None:
                size = min(size, self._session.max_write)
            data = self._session.files[self._path]
            data[self._position : self._position + size] = chunk[:size]
            self._position += size
            return size

    def fsync(self) -> None:
        with self._session.call("fsync"):
            self._session.fsyncs[self._path] += 1

    def close(self) -> None:
        with self._session.call("close"):
            self.closed = True
            self._session.open_handles.discard(self)
            if self._session.fail_close:
                raise ProtocolError("close", path=self._path, status=STATUS_UNEXPECTED_NETWORK_ERROR)


class MemorySession(SessionContext):
    """In-memory share with instrumentation."""

    def __init__(self, chunk_size: int = 4, call_delay: float = 0.0) -> None:
        self.chunk_size = chunk_size
        self.call_delay = call_delay
        self.files: dict[str, bytearray] = {}
        self.dirs: set[str] = {""}
        self.connected: tuple[str, str, str] | None = None

        # Instrumentation
        self.calls: list[str] = []
        self.fsyncs: Counter[str] = Counter()
        self.open_handles: set[MemoryFileHandle] = set()
        self.active = 0
        self.max_active = 0
        self.threads: set[str] = set()
        self._lock = threading.Lock()

        # Fault injection
        self.reads = 0
        self.writes = 0
        self.fail_read_after: int | None = None
        self.fail_write_after: int | None = None
        self.max_write: int | None = None
        self.seek_bias = 0
        self.fail_connect = False
        self.fail_close = False

    # -- instrumentation ------------------------------------------------

    def call(self, op: str):
        session = self

        class _Call:
            def __enter__(self_inner):
                with session._lock:
                    session.active += 1
                    session.max_active = max(session.max_active, session.active)
                    session.calls.append(op)
                    session.threads.add(threading.current_thread().name)
                if session.call_delay:
                    time.sleep(session.call_delay)

            def __exit__(self_inner, *exc):
                with session._lock:
                    session.active -= 1
                return False

        return _Call()

    def _missing(self, op: str, path: str) -> ProtocolError:
        return ProtocolError(op, path=path, status=STATUS_OBJECT_NAME_NOT_FOUND)

    # -- SessionContext -------------------------------------------------

    def connect(self, server: str, share: str, user: str) -> None:
        with self.call("connect"):
            if self.fail_connect:
                raise ShareConnectionError("Access denied", server=server, share=share)
            self.connected = (server, share, user)

    def disconnect(self) -> None:
        with self.call("disconnect"):
            self.connected = None

    def stat(self, path: str) -> StatRecord:
        path = _norm(path)
        with self.call("stat"):
            if path in self.dirs:
                return StatRecord(size=0, type=EntryType.DIRECTORY, mtime=MTIME, ctime=CTIME)
            if path in self.files:
                return StatRecord(
                    size=len(self.files[path]),
                    type=EntryType.FILE,
                    mtime=MTIME,
                    mtime_nsec=500_000_000,
                    ctime=CTIME,
                )
            raise self._missing("stat", path)

    def listdir(self, path: str) -> list[tuple[str, StatRecord]]:
        path = _norm(path)
        with self.call("listdir"):
            if path not in self.dirs:
                raise self._missing("list", path)
        here = StatRecord(size=0, type=EntryType.DIRECTORY, mtime=MTIME, ctime=CTIME)
        entries = [(".", here), ("..", here)]
        for d in sorted(self.dirs):
            if d and _parent(d) == path:
                entries.append((d.rsplit("/", 1)[-1], self.stat(d)))
        for f in sorted(self.files):
            if _parent(f) == path:
                entries.append((f.rsplit("/", 1)[-1], self.stat(f)))
        return entries

    def mkdir(self, path: str) -> None:
        path = _norm(path)
        with self.call("mkdir"):
            if path in self.dirs or path in self.files:
                raise ProtocolError("mkdir", path=path, status=STATUS_OBJECT_NAME_COLLISION)
            if _parent(path) not in self.dirs:
                raise self._missing("mkdir", path)
            self.dirs.add(path)

    def rmdir(self, path: str) -> None:
        path = _norm(path)
        with self.call("rmdir"):
            if path not in self.dirs:
                raise self._missing("rmdir", path)
            children = [p for p in (*self.dirs, *self.files) if p and _parent(p) == path]
            if children:
                raise ProtocolError("rmdir", path=path, status=STATUS_DIRECTORY_NOT_EMPTY)
            self.dirs.discard(path)

    def unlink(self, path: str) -> None:
        path = _norm(path)
        with self.call("unlink"):
            if path not in self.files:
                raise self._missing("unlink", path)
            del self.files[path]

    def rename(self, path: str, to: str) -> None:
        path, to = _norm(path), _norm(to)
        with self.call("rename"):
            if path in self.files:
                self.files[to] = self.files.pop(path)
            elif path in self.dirs:
                self.dirs.discard(path)
                self.dirs.add(to)
            else:
                raise self._missing("rename", path)

    def open_for_read(self, path: str) -> FileHandle:
        path = _norm(path)
        with self.call("open_read"):
            if path not in self.files:
                raise self._missing("open", path)
            handle = MemoryFileHandle(self, path)
            self.open_handles.add(handle)
            return handle

    def open_for_create_write(self, path: str) -> FileHandle:
        path = _norm(path)
        with self.call("open_write"):
            if _parent(path) not in self.dirs:
                raise self._missing("create", path)
            self.files[path] = bytearray()
            handle = MemoryFileHandle(self, path)
            self.open_handles.add(handle)
            return handle


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def session() -> MemorySession:
    """Empty in-memory share with 4-byte chunks."""
    return MemorySession(chunk_size=4)


@pytest.fixture
def client(session: MemorySession):
    """Client connected to ``share`` on the in-memory session."""
    c = SMBShareClient("testserver", session=session)
    c.connect_share("share").result(timeout=5)
    yield c
    c.close()


@pytest.fixture
def reset_sdk_settings():
    """Reset SDK settings before and after test."""
    from smbshare.config import reset_settings

    reset_settings()
    yield
    reset_settings()
