"""
Asyncio facade over SMBShareClient.

The session still lives on its own lane thread; each coroutine just awaits
the lane's future, so the event loop is never blocked by protocol calls.
Progress callbacks keep running on the lane thread, not on the loop.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import Future

from smbshare.client import SMBShareClient
from smbshare.config import ShareSettings
from smbshare.local import LocalLocation, LocalStorage
from smbshare.models.connection import Credential
from smbshare.models.files import AttributeRecord
from smbshare.models.transfer import TransferResult
from smbshare.session.base import SessionContext
from smbshare.transfer import ChunkCallback, ReadProgress, WriteProgress


async def _wait(future: Future):
    return await asyncio.wrap_future(future)


class AsyncSMBShareClient:
    """
    Asynchronous share client.

    Example:
        >>> async with AsyncSMBShareClient("nas.local", share="media") as client:
        ...     entries = await client.list_directory("movies")
        ...     await client.download_item("movies/intro.mkv", "./intro.mkv")
    """

    def __init__(
        self,
        server: str,
        credential: Credential | None = None,
        share: str | None = None,
        session: SessionContext | None = None,
        settings: ShareSettings | None = None,
        local: LocalStorage | None = None,
    ) -> None:
        self._client = SMBShareClient(
            server, credential=credential, session=session, settings=settings, local=local
        )
        self._auto_share = share

    @classmethod
    def from_client(cls, client: SMBShareClient) -> "AsyncSMBShareClient":
        """Wrap an existing sync client (they then share one lane)."""
        instance = cls.__new__(cls)
        instance._client = client
        instance._auto_share = None
        return instance

    @property
    def sync(self) -> SMBShareClient:
        """Underlying future-based client."""
        return self._client

    @property
    def share(self) -> str | None:
        return self._client.share

    async def connect_share(self, name: str) -> None:
        await _wait(self._client.connect_share(name))

    async def disconnect_share(self) -> None:
        await _wait(self._client.disconnect_share())

    async def list_directory(self, path: str) -> list[AttributeRecord]:
        return await _wait(self._client.list_directory(path))

    async def attributes_of_item(self, path: str) -> AttributeRecord:
        return await _wait(self._client.attributes_of_item(path))

    async def create_directory(self, path: str) -> None:
        await _wait(self._client.create_directory(path))

    async def remove_directory(self, path: str) -> None:
        await _wait(self._client.remove_directory(path))

    async def remove_file(self, path: str) -> None:
        await _wait(self._client.remove_file(path))

    async def move_item(self, path: str, to_path: str) -> None:
        await _wait(self._client.move_item(path, to_path))

    async def read_file(
        self,
        path: str,
        offset: int = 0,
        length: int | None = None,
        progress: ReadProgress | None = None,
    ) -> bytes:
        return await _wait(self._client.read_file(path, offset, length, progress))

    async def stream_file(self, path: str, on_chunk: ChunkCallback, offset: int = 0) -> int:
        return await _wait(self._client.stream_file(path, on_chunk, offset))

    async def write_file(
        self,
        data: bytes | bytearray | memoryview,
        path: str,
        progress: WriteProgress | None = None,
    ) -> TransferResult:
        return await _wait(self._client.write_file(data, path, progress))

    async def copy_item(
        self, path: str, to_path: str, progress: ReadProgress | None = None
    ) -> TransferResult:
        return await _wait(self._client.copy_item(path, to_path, progress))

    async def upload_item(
        self,
        local_path: LocalLocation,
        remote_path: str,
        progress: WriteProgress | None = None,
        remove_partial: bool = False,
    ) -> TransferResult:
        return await _wait(
            self._client.upload_item(local_path, remote_path, progress, remove_partial)
        )

    async def download_item(
        self,
        remote_path: str,
        local_path: LocalLocation,
        progress: ReadProgress | None = None,
    ) -> TransferResult:
        return await _wait(self._client.download_item(remote_path, local_path, progress))

    async def close(self) -> None:
        """Disconnect and stop the lane without blocking the loop."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._client.close)

    async def __aenter__(self) -> "AsyncSMBShareClient":
        if self._auto_share:
            await self.connect_share(self._auto_share)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
