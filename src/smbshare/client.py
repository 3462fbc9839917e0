"""
SMB share client.

Every public operation is queued on the client's CommandLane and returns a
``concurrent.futures.Future``. Operations may be called from any thread;
they run one at a time, in call order, against the single session the
client owns.

Each operation also accepts ``completion=callback(result, error)``. The
callback fires exactly once, on the lane's worker thread.
"""

from __future__ import annotations

from concurrent.futures import Future
from functools import partial
from typing import Any, Callable

from smbshare.config import ShareSettings, get_settings
from smbshare.directory import DirectoryEnumerator
from smbshare.exceptions import SMBShareError, UsageError
from smbshare.lane import CommandLane, Completion
from smbshare.local import LocalLocation, LocalStorage, resolve_local_path
from smbshare.logging import get_logger
from smbshare.models.connection import Credential
from smbshare.session.base import SessionContext
from smbshare.transfer import ChunkCallback, ReadProgress, TransferEngine, WriteProgress

logger = get_logger(__name__)


def _raise(error: BaseException) -> None:
    raise error


class SMBShareClient:
    """
    Client for one share on one server.

    Example:
        >>> client = SMBShareClient("nas.local", Credential(user="alice", password="pw"))
        >>> client.connect_share("media").result()
        >>> for item in client.list_directory("movies").result():
        ...     print(item.name, item.size)
        >>> data = client.read_file("notes.txt").result()
        >>> client.close()

    Progress callbacks double as cancellation: return ``False`` to stop after
    the current chunk. The operation then succeeds with the partial result.
    """

    def __init__(
        self,
        server: str,
        credential: Credential | None = None,
        session: SessionContext | None = None,
        settings: ShareSettings | None = None,
        local: LocalStorage | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self.server = server
        self.credential = credential or Credential(user=self._settings.default_user)
        if session is None:
            from smbshare.session.smb2 import SMB2Session

            session = SMB2Session(self.credential, self._settings)
        # Only ever touched from lane callables
        self._session = session
        self._engine = TransferEngine(session, local)
        self._directory = DirectoryEnumerator(session)
        self._lane = CommandLane(name=f"{self._settings.lane_name_prefix}_{server}")
        self._share: str | None = None

    @property
    def share(self) -> str | None:
        """Name of the connected share, if any."""
        return self._share

    @property
    def lane(self) -> CommandLane:
        return self._lane

    def _submit(
        self,
        completion: Completion | None,
        func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Future:
        if completion is None:
            return self._lane.submit(func, *args, **kwargs)
        return self._lane.enqueue(partial(func, *args, **kwargs), completion)

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def _connect(self, name: str) -> None:
        self._session.connect(self.server, name, self.credential.user)
        self._share = name
        logger.info(f"Connected to \\\\{self.server}\\{name}")

    def _disconnect(self) -> None:
        self._session.disconnect()
        logger.info(f"Disconnected from \\\\{self.server}\\{self._share}")
        self._share = None

    def connect_share(self, name: str, completion: Completion | None = None) -> Future:
        """Connect to share ``name``. Must complete before any other operation."""
        return self._submit(completion, self._connect, name)

    def disconnect_share(self, completion: Completion | None = None) -> Future:
        """Disconnect from the current share."""
        return self._submit(completion, self._disconnect)

    # ------------------------------------------------------------------
    # Metadata and CRUD
    # ------------------------------------------------------------------

    def list_directory(self, path: str, completion: Completion | None = None) -> Future:
        """List ``path``; resolves to a list of AttributeRecord."""
        return self._submit(completion, self._directory.list, path)

    def attributes_of_item(self, path: str, completion: Completion | None = None) -> Future:
        """Stat ``path``; resolves to an AttributeRecord."""
        return self._submit(completion, self._directory.attributes, path)

    def create_directory(self, path: str, completion: Completion | None = None) -> Future:
        return self._submit(completion, self._session.mkdir, path)

    def remove_directory(self, path: str, completion: Completion | None = None) -> Future:
        return self._submit(completion, self._session.rmdir, path)

    def remove_file(self, path: str, completion: Completion | None = None) -> Future:
        return self._submit(completion, self._session.unlink, path)

    def move_item(
        self, path: str, to_path: str, completion: Completion | None = None
    ) -> Future:
        """Move or rename ``path`` to ``to_path``."""
        return self._submit(completion, self._session.rename, path, to_path)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def read_file(
        self,
        path: str,
        offset: int = 0,
        length: int | None = None,
        progress: ReadProgress | None = None,
        completion: Completion | None = None,
    ) -> Future:
        """
        Read a file into memory.

        Args:
            path: Remote file path.
            offset: First byte to read.
            length: Bytes to read (None = to end of file).
            progress: Callback(bytes_read, expected_total) -> continue?
            completion: Optional callback(result, error).

        Returns:
            Future resolving to bytes. Empty if ``offset`` is past end of file.
        """
        return self._submit(completion, self._engine.read, path, offset, length, progress)

    def stream_file(
        self,
        path: str,
        on_chunk: ChunkCallback,
        offset: int = 0,
        completion: Completion | None = None,
    ) -> Future:
        """
        Push a file chunk by chunk to ``on_chunk(chunk_offset, file_size, chunk)``.

        Only one chunk is held in memory at a time. Resolves to the number of
        bytes delivered.
        """
        return self._submit(completion, self._engine.stream, path, offset, on_chunk)

    def write_file(
        self,
        data: bytes | bytearray | memoryview,
        path: str,
        progress: WriteProgress | None = None,
        completion: Completion | None = None,
    ) -> Future:
        """
        Create (or truncate) ``path`` and write ``data`` to it.

        Resolves to a TransferResult. If a chunk fails the remote file keeps
        whatever was written before the failure.
        """
        return self._submit(completion, self._engine.write, data, path, progress)

    def copy_item(
        self,
        path: str,
        to_path: str,
        progress: ReadProgress | None = None,
        completion: Completion | None = None,
    ) -> Future:
        """Copy a remote file through the client. Resolves to a TransferResult."""
        return self._submit(completion, self._engine.copy, path, to_path, progress)

    def upload_item(
        self,
        local_path: LocalLocation,
        remote_path: str,
        progress: WriteProgress | None = None,
        remove_partial: bool = False,
        completion: Completion | None = None,
    ) -> Future:
        """
        Upload a local file.

        Args:
            local_path: Local path or ``file://`` URL. Anything else fails
                with UsageError before any I/O.
            remote_path: Remote destination.
            progress: Callback(bytes_written) -> continue?
            remove_partial: Delete the remote file if the upload fails.
            completion: Optional callback(result, error).
        """
        try:
            source = resolve_local_path(local_path)
        except UsageError as e:
            return self._submit(completion, _raise, e)
        return self._submit(
            completion, self._engine.upload, source, remote_path, progress, remove_partial
        )

    def download_item(
        self,
        remote_path: str,
        local_path: LocalLocation,
        progress: ReadProgress | None = None,
        completion: Completion | None = None,
    ) -> Future:
        """
        Download a remote file, replacing any existing local file.

        A failed download never leaves a partial local file behind.
        """
        try:
            destination = resolve_local_path(local_path)
        except UsageError as e:
            return self._submit(completion, _raise, e)
        return self._submit(completion, self._engine.download, remote_path, destination, progress)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _disconnect_on_close(self) -> None:
        if self._share is None:
            return
        try:
            self._disconnect()
        except SMBShareError as e:
            logger.warning(f"Disconnect during close failed: {e}")

    def close(self, wait: bool = True) -> None:
        """
        Disconnect (if connected) and stop the lane.

        Operations already queued run first. Operations submitted afterwards
        fail with LaneClosedError.
        """
        if not self._lane.closed:
            self._lane.submit(self._disconnect_on_close)
        self._lane.close(wait=wait)

    def __enter__(self) -> "SMBShareClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        share = self._share or "-"
        return f"SMBShareClient(\\\\{self.server}\\{share}, user={self.credential.qualified_user!r})"
