"""
Chunked transfer engine.

Runs on a CommandLane worker and drives one session chunk by chunk. Each
transfer takes an optional progress callback that doubles as a cancellation
point: returning ``False`` stops the transfer after the chunk just handled.
Stopping is a normal, successful outcome with a partial result, never an
error. A callback returning ``None`` counts as "continue".

Callbacks run synchronously on the lane; a slow callback stalls every other
operation queued for the same session.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Union

from smbshare.exceptions import (
    LocalIOError,
    ProtocolError,
    SeekMismatchError,
    SMBShareError,
    UsageError,
)
from smbshare.local import LocalStorage
from smbshare.logging import get_logger
from smbshare.models.transfer import TransferResult
from smbshare.session.base import FileHandle, SessionContext

logger = get_logger(__name__)

# progress(bytes_done, total) -> continue?
ReadProgress = Callable[[int, int], Union[bool, None]]
# progress(bytes_written) -> continue?
WriteProgress = Callable[[int], Union[bool, None]]
# on_chunk(chunk_offset, file_size, chunk) -> continue?
ChunkCallback = Callable[[int, int, bytes], Union[bool, None]]


def _should_continue(callback: Callable[..., Union[bool, None]] | None, *args) -> bool:
    if callback is None:
        return True
    decision = callback(*args)
    return decision is None or bool(decision)


def _same_path(a: str, b: str) -> bool:
    def norm(p: str) -> str:
        return p.replace("\\", "/").strip("/").lower()

    return norm(a) == norm(b)


@contextmanager
def _closing(handle: FileHandle, path: str) -> Iterator[FileHandle]:
    """Close ``handle`` on every exit path without masking the original error."""
    try:
        yield handle
    except BaseException:
        try:
            handle.close()
        except SMBShareError as e:
            logger.warning(f"Close of '{path}' failed after an earlier error: {e}")
        raise
    else:
        handle.close()


class TransferEngine:
    """
    Chunked read/write/copy/upload/download against one session.

    Not thread-safe: every method must run on the session's lane.
    """

    def __init__(self, session: SessionContext, local: LocalStorage | None = None) -> None:
        self._session = session
        self._local = local or LocalStorage()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _seek(handle: FileHandle, path: str, offset: int) -> None:
        achieved = handle.seek(offset)
        if achieved != offset:
            raise SeekMismatchError(offset, achieved, path=path)

    @staticmethod
    def _write_all(handle: FileHandle, path: str, chunk: bytes) -> None:
        view = memoryview(chunk)
        while view:
            written = handle.write(bytes(view))
            if written <= 0:
                raise ProtocolError("write", path=path, detail="server accepted 0 bytes")
            view = view[written:]

    def _discard_local(self, path: Path) -> None:
        try:
            if self._local.exists(path):
                self._local.remove(path)
        except LocalIOError as e:
            logger.warning(f"Could not remove partial download '{path}': {e}")

    def _discard_remote(self, path: str) -> None:
        try:
            self._session.unlink(path)
        except SMBShareError as e:
            logger.warning(f"Could not remove partial upload '{path}': {e}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read(
        self,
        path: str,
        offset: int = 0,
        length: int | None = None,
        progress: ReadProgress | None = None,
    ) -> bytes:
        """
        Read ``length`` bytes from ``offset`` into memory.

        Args:
            path: Remote file path.
            offset: First byte to read.
            length: Bytes to read, ``None`` for everything up to end of file.
                Lengths past the end are clamped to the file size.
            progress: Callback(bytes_read, expected_total).

        Returns:
            The bytes read. Empty when ``offset`` is at or past end of file.
        """
        if offset < 0:
            raise UsageError(f"Offset must be >= 0, got {offset}")
        if length is not None and length < 0:
            raise UsageError(f"Length must be >= 0, got {length}")

        with _closing(self._session.open_for_read(path), path) as handle:
            size = handle.fstat().size
            if offset >= size:
                logger.debug(f"Read of '{path}' at {offset} is past end ({size} bytes)")
                return b""

            remaining = size - offset
            total = remaining if length is None else min(length, remaining)
            if total == 0:
                return b""

            self._seek(handle, path, offset)
            buffer = bytearray()
            while True:
                chunk = handle.read()
                if not chunk:
                    break
                buffer += chunk
                if not _should_continue(progress, min(len(buffer), total), total):
                    logger.debug(f"Read of '{path}' stopped by caller at {len(buffer)} bytes")
                    break
                if len(buffer) >= total:
                    break

        return bytes(buffer[:total])

    def stream(
        self,
        path: str,
        offset: int,
        on_chunk: ChunkCallback,
    ) -> int:
        """
        Push file contents chunk by chunk without accumulating them.

        Args:
            path: Remote file path.
            offset: First byte to deliver.
            on_chunk: Callback(chunk_offset, file_size, chunk).

        Returns:
            Total bytes delivered to ``on_chunk``.
        """
        if offset < 0:
            raise UsageError(f"Offset must be >= 0, got {offset}")

        delivered = 0
        with _closing(self._session.open_for_read(path), path) as handle:
            size = handle.fstat().size
            if offset >= size:
                return 0

            self._seek(handle, path, offset)
            position = offset
            while True:
                chunk = handle.read()
                if not chunk:
                    break
                keep_going = _should_continue(on_chunk, position, size, chunk)
                position += len(chunk)
                delivered += len(chunk)
                if not keep_going:
                    break

        return delivered

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write(
        self,
        data: bytes | bytearray | memoryview,
        path: str,
        progress: WriteProgress | None = None,
    ) -> TransferResult:
        """
        Create or truncate ``path`` and write ``data`` to it.

        A failed chunk leaves whatever was already written on the server.
        """
        payload = memoryview(data).cast("B")
        result = TransferResult(total_size=len(payload))

        with _closing(self._session.open_for_create_write(path), path) as handle:
            chunk_size = handle.optimal_chunk_size
            while True:
                start = result.bytes_transferred
                chunk = payload[start : start + chunk_size]
                if not chunk:
                    break
                written = handle.write(bytes(chunk))
                if written <= 0:
                    raise ProtocolError("write", path=path, detail="server accepted 0 bytes")
                result.bytes_transferred += written
                result.chunks_count += 1
                if not _should_continue(progress, result.bytes_transferred):
                    result.completed = False
                    break
            handle.fsync()

        logger.debug(f"Wrote {result.bytes_transferred:,} bytes to '{path}'")
        return result

    def copy(
        self,
        source_path: str,
        destination_path: str,
        progress: ReadProgress | None = None,
    ) -> TransferResult:
        """
        Copy a remote file by reading it through the client.

        There is no server-side copy; every byte crosses the network twice.
        """
        if _same_path(source_path, destination_path):
            raise UsageError(f"Source and destination are the same: {source_path}")

        with _closing(self._session.open_for_read(source_path), source_path) as source:
            total = source.fstat().size
            result = TransferResult(total_size=total)
            with _closing(
                self._session.open_for_create_write(destination_path), destination_path
            ) as destination:
                while True:
                    chunk = source.read()
                    if not chunk:
                        break
                    self._write_all(destination, destination_path, chunk)
                    result.bytes_transferred += len(chunk)
                    result.chunks_count += 1
                    if not _should_continue(progress, result.bytes_transferred, total):
                        result.completed = False
                        break
                destination.fsync()

        logger.debug(
            f"Copied {result.bytes_transferred:,}/{total:,} bytes "
            f"'{source_path}' -> '{destination_path}'"
        )
        return result

    # ------------------------------------------------------------------
    # Local <-> remote
    # ------------------------------------------------------------------

    def upload(
        self,
        local_path: Path,
        remote_path: str,
        progress: WriteProgress | None = None,
        remove_partial: bool = False,
    ) -> TransferResult:
        """
        Upload a local file to ``remote_path``.

        Args:
            local_path: Existing local file.
            remote_path: Remote destination, created or truncated.
            progress: Callback(bytes_written).
            remove_partial: Delete the remote file if the upload fails after
                it was created. By default a failed upload leaves partial
                remote content. A remote file that could not be opened is
                never touched.
        """
        if not self._local.is_reachable(local_path):
            raise LocalIOError(str(local_path), "open", detail="file is not reachable")

        result = TransferResult(total_size=self._local.size(local_path))
        created = False
        try:
            with self._local.open_read(local_path) as source:
                destination = self._session.open_for_create_write(remote_path)
                created = True
                with _closing(destination, remote_path):
                    chunk_size = destination.optimal_chunk_size
                    offset = 0
                    while True:
                        # A short remote write leaves the local cursor ahead
                        if self._local.tell(source, local_path) != offset:
                            self._local.seek(source, local_path, offset)
                        chunk = self._local.read(source, local_path, chunk_size)
                        if not chunk:
                            break
                        written = destination.write(chunk)
                        if written <= 0:
                            raise ProtocolError(
                                "write", path=remote_path, detail="server accepted 0 bytes"
                            )
                        offset += written
                        result.bytes_transferred = offset
                        result.chunks_count += 1
                        if not _should_continue(progress, offset):
                            result.completed = False
                            break
                    destination.fsync()
        except Exception:
            if remove_partial and created:
                self._discard_remote(remote_path)
            raise

        logger.debug(f"Uploaded {result.bytes_transferred:,} bytes '{local_path}' -> '{remote_path}'")
        return result

    def download(
        self,
        remote_path: str,
        local_path: Path,
        progress: ReadProgress | None = None,
    ) -> TransferResult:
        """
        Download ``remote_path`` to a local file.

        Any existing local file is removed first, so the destination never
        mixes old and new bytes. If the transfer fails after that point,
        including a failed close of the remote file, the local file is
        deleted before the error propagates. A failure to open or stat the
        remote file leaves an existing local file untouched.
        """
        source = self._session.open_for_read(remote_path)
        reset = False
        try:
            with _closing(source, remote_path):
                total = source.fstat().size
                result = TransferResult(total_size=total)

                if self._local.exists(local_path):
                    self._local.remove(local_path)
                reset = True
                self._local.create_empty(local_path)

                with self._local.open_write(local_path) as target:
                    while True:
                        chunk = source.read()
                        if not chunk:
                            break
                        self._local.write(target, local_path, chunk)
                        result.bytes_transferred += len(chunk)
                        result.chunks_count += 1
                        if not _should_continue(progress, result.bytes_transferred, total):
                            result.completed = False
                            break
                    self._local.sync(target, local_path)
        except Exception:
            if reset:
                self._discard_local(local_path)
            raise

        logger.debug(f"Downloaded {result.bytes_transferred:,} bytes '{remote_path}' -> '{local_path}'")
        return result


__all__ = ["TransferEngine", "ReadProgress", "WriteProgress", "ChunkCallback"]
