"""
SessionContext backed by smbprotocol's ``smbclient`` API.

Each SMB2Session keeps a private connection cache, so two sessions never
share a TCP connection even when they point at the same server.
"""

from __future__ import annotations

import stat as stat_module
from contextlib import contextmanager
from typing import Any, Iterator

import smbclient
from smbprotocol.exceptions import SMBException

from smbshare.config import ShareSettings, get_settings
from smbshare.exceptions import ProtocolError, ShareConnectionError
from smbshare.logging import get_logger
from smbshare.models.connection import Credential
from smbshare.session.base import EntryType, FileHandle, SessionContext, StatRecord

logger = get_logger(__name__)

# Used only when the negotiated connection does not report a size
FALLBACK_CHUNK_SIZE = 64 * 1024


def _status_of(exc: BaseException) -> int | None:
    """Pull the NT status out of an smbprotocol exception."""
    status = getattr(exc, "ntstatus", None)
    if status is None:
        status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


@contextmanager
def _translate(operation: str, path: str | None = None) -> Iterator[None]:
    """Re-raise library errors as ProtocolError."""
    try:
        yield
    except (SMBException, OSError) as e:
        raise ProtocolError(
            operation, path=path, status=_status_of(e), detail=str(e), cause=e
        ) from e


def _split_ns(ns: int) -> tuple[int, int]:
    seconds, nsec = divmod(int(ns), 1_000_000_000)
    return seconds, nsec


def _stat_record(st: Any) -> StatRecord:
    """Project an SMBStatResult onto a StatRecord."""
    if stat_module.S_ISDIR(st.st_mode):
        entry_type = EntryType.DIRECTORY
    elif stat_module.S_ISLNK(st.st_mode):
        entry_type = EntryType.LINK
    else:
        entry_type = EntryType.FILE

    mtime_ns = getattr(st, "st_mtime_ns", None)
    if mtime_ns is None:
        mtime_ns = int(st.st_mtime * 1_000_000_000)
    # smbclient reports the creation time as st_ctime
    ctime_ns = getattr(st, "st_ctime_ns", None)
    if ctime_ns is None:
        ctime_ns = int(st.st_ctime * 1_000_000_000)

    mtime, mtime_nsec = _split_ns(mtime_ns)
    ctime, ctime_nsec = _split_ns(ctime_ns)
    return StatRecord(
        size=int(st.st_size),
        type=entry_type,
        mtime=mtime,
        mtime_nsec=mtime_nsec,
        ctime=ctime,
        ctime_nsec=ctime_nsec,
    )


class SMB2FileHandle(FileHandle):
    """Unbuffered smbclient file object."""

    def __init__(self, session: SMB2Session, raw: Any, path: str, for_write: bool) -> None:
        self._session = session
        self._raw = raw
        self._path = path
        connection = getattr(raw.fd, "connection", None)
        attr = "max_write_size" if for_write else "max_read_size"
        self._chunk_size = int(getattr(connection, attr, 0) or FALLBACK_CHUNK_SIZE)

    @property
    def optimal_chunk_size(self) -> int:
        return self._chunk_size

    def fstat(self) -> StatRecord:
        return self._session.stat(self._path)

    def seek(self, offset: int) -> int:
        with _translate("seek", self._path):
            return self._raw.seek(offset)

    def read(self) -> bytes:
        with _translate("read", self._path):
            return self._raw.read(self._chunk_size) or b""

    def write(self, chunk: bytes) -> int:
        with _translate("write", self._path):
            return self._raw.write(chunk)

    def fsync(self) -> None:
        with _translate("flush", self._path):
            self._raw.fd.flush()

    def close(self) -> None:
        with _translate("close", self._path):
            self._raw.close()


class SMB2Session(SessionContext):
    """
    SMB2/3 session over smbprotocol.

    Example:
        >>> session = SMB2Session(Credential(user="alice", password="pw"))
        >>> session.connect("nas.local", "media", "alice")
        >>> session.stat("movies/intro.mkv").size
        1048576
    """

    def __init__(
        self,
        credential: Credential | None = None,
        settings: ShareSettings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._credential = credential or Credential(user=self._settings.default_user)
        self._connection_cache: dict = {}
        self._server: str | None = None
        self._share: str | None = None

    def _unc(self, path: str) -> str:
        if self._server is None or self._share is None:
            raise ProtocolError("resolve", path=path, detail="share is not connected")
        relative = path.replace("/", "\\").strip("\\")
        root = f"\\\\{self._server}\\{self._share}"
        return f"{root}\\{relative}" if relative else root

    def _kwargs(self) -> dict:
        return {"connection_cache": self._connection_cache, "port": self._settings.port}

    def connect(self, server: str, share: str, user: str) -> None:
        username = f"{self._credential.domain}\\{user}" if self._credential.domain else user
        logger.debug(f"Connecting to \\\\{server}\\{share} as {username}")
        try:
            smbclient.register_session(
                server,
                username=username,
                password=self._credential.password,
                port=self._settings.port,
                encrypt=self._settings.encrypt,
                connection_timeout=int(self._settings.connect_timeout),
                require_signing=self._settings.require_signing,
                connection_cache=self._connection_cache,
            )
            self._server, self._share = server, share
            # Tree connect is lazy; touching the root validates the share name
            smbclient.stat(self._unc(""), **self._kwargs())
        except (SMBException, OSError, ValueError) as e:
            self._server = self._share = None
            raise ShareConnectionError(
                f"Could not connect: {e}", server=server, share=share, cause=e
            ) from e

    def disconnect(self) -> None:
        if self._server is None:
            return
        server, share = self._server, self._share
        try:
            smbclient.delete_session(
                server, port=self._settings.port, connection_cache=self._connection_cache
            )
        except (SMBException, OSError) as e:
            raise ShareConnectionError(
                f"Could not disconnect: {e}", server=server, share=share, cause=e
            ) from e
        finally:
            self._server = self._share = None

    def stat(self, path: str) -> StatRecord:
        with _translate("stat", path):
            return _stat_record(smbclient.stat(self._unc(path), **self._kwargs()))

    def listdir(self, path: str) -> list[tuple[str, StatRecord]]:
        with _translate("list", path):
            return [
                (entry.name, _stat_record(entry.stat(follow_symlinks=False)))
                for entry in smbclient.scandir(self._unc(path), **self._kwargs())
            ]

    def mkdir(self, path: str) -> None:
        with _translate("mkdir", path):
            smbclient.mkdir(self._unc(path), **self._kwargs())

    def rmdir(self, path: str) -> None:
        with _translate("rmdir", path):
            smbclient.rmdir(self._unc(path), **self._kwargs())

    def unlink(self, path: str) -> None:
        with _translate("unlink", path):
            smbclient.remove(self._unc(path), **self._kwargs())

    def rename(self, path: str, to: str) -> None:
        with _translate("rename", path):
            smbclient.rename(self._unc(path), self._unc(to), **self._kwargs())

    def open_for_read(self, path: str) -> FileHandle:
        with _translate("open", path):
            raw = smbclient.open_file(self._unc(path), mode="rb", buffering=0, **self._kwargs())
        return SMB2FileHandle(self, raw, path, for_write=False)

    def open_for_create_write(self, path: str) -> FileHandle:
        with _translate("create", path):
            raw = smbclient.open_file(self._unc(path), mode="wb", buffering=0, **self._kwargs())
        return SMB2FileHandle(self, raw, path, for_write=True)
