"""
Tests for AsyncSMBShareClient.
"""

from __future__ import annotations

import asyncio

import pytest

from smbshare.aio import AsyncSMBShareClient
from smbshare.client import SMBShareClient
from smbshare.exceptions import ProtocolError, UsageError
from smbshare.models.files import FileKind

from tests.conftest import MemorySession


@pytest.fixture
def memory() -> MemorySession:
    session = MemorySession(chunk_size=4)
    session.dirs.add("docs")
    session.files["docs/a.txt"] = bytearray(b"0123456789")
    return session


class TestAsyncClient:
    """Tests for the asyncio facade."""

    @pytest.mark.asyncio
    async def test_context_manager_connects_and_closes(self, memory):
        async with AsyncSMBShareClient("nas", share="media", session=memory) as client:
            assert client.share == "media"
            assert memory.connected == ("nas", "media", "guest")
        assert memory.connected is None

    @pytest.mark.asyncio
    async def test_listing_and_attributes(self, memory):
        async with AsyncSMBShareClient("nas", share="media", session=memory) as client:
            entries = await client.list_directory("docs")
            record = await client.attributes_of_item("docs/a.txt")

        assert [(e.name, e.kind) for e in entries] == [("a.txt", FileKind.FILE)]
        assert record.size == 10

    @pytest.mark.asyncio
    async def test_read_write_copy(self, memory):
        async with AsyncSMBShareClient("nas", share="media", session=memory) as client:
            await client.write_file(b"fresh data", "docs/b.txt")
            await client.copy_item("docs/b.txt", "docs/c.txt")
            data = await client.read_file("docs/c.txt", 6)
        assert data == b"data"

    @pytest.mark.asyncio
    async def test_crud(self, memory):
        async with AsyncSMBShareClient("nas", share="media", session=memory) as client:
            await client.create_directory("new")
            await client.move_item("docs/a.txt", "new/a.txt")
            await client.remove_file("new/a.txt")
            await client.remove_directory("new")
        assert "new" not in memory.dirs
        assert memory.files == {}

    @pytest.mark.asyncio
    async def test_stream(self, memory):
        chunks = []
        async with AsyncSMBShareClient("nas", share="media", session=memory) as client:
            delivered = await client.stream_file("docs/a.txt", lambda o, t, c: chunks.append(c))
        assert delivered == 10
        assert len(chunks) == 3

    @pytest.mark.asyncio
    async def test_upload_download(self, memory, tmp_path):
        source = tmp_path / "in.bin"
        source.write_bytes(b"abcdefgh")
        target = tmp_path / "out.bin"
        async with AsyncSMBShareClient("nas", share="media", session=memory) as client:
            await client.upload_item(source, "docs/in.bin")
            result = await client.download_item("docs/in.bin", target)
        assert target.read_bytes() == b"abcdefgh"
        assert result.chunks_count == 2

    @pytest.mark.asyncio
    async def test_errors_raise(self, memory):
        async with AsyncSMBShareClient("nas", share="media", session=memory) as client:
            with pytest.raises(ProtocolError):
                await client.read_file("missing")
            with pytest.raises(UsageError):
                await client.download_item("docs/a.txt", "smb://other/share/x")

    @pytest.mark.asyncio
    async def test_gather_keeps_fifo_on_lane(self, memory):
        async with AsyncSMBShareClient("nas", share="media", session=memory) as client:
            await asyncio.gather(
                *(client.write_file(bytes([i]) * 5, f"docs/f{i}") for i in range(10))
            )
        assert memory.max_active == 1
        assert all(bytes(memory.files[f"docs/f{i}"]) == bytes([i]) * 5 for i in range(10))

    @pytest.mark.asyncio
    async def test_from_client_shares_lane(self, memory):
        sync_client = SMBShareClient("nas", session=memory)
        client = AsyncSMBShareClient.from_client(sync_client)
        assert client.sync is sync_client
        await client.connect_share("media")
        assert sync_client.share == "media"
        await client.disconnect_share()
        await client.close()
