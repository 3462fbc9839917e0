"""
smbshare: SMB2/3 share client.

One client owns one protocol session and one command lane. Operations can be
called from any thread and run strictly in call order.

Usage:
    >>> from smbshare import SMBShareClient, Credential
    >>>
    >>> with SMBShareClient("nas.local", Credential(user="alice", password="pw")) as client:
    ...     client.connect_share("media").result()
    ...     data = client.read_file("notes.txt").result()

Asyncio:
    >>> from smbshare import AsyncSMBShareClient
    >>>
    >>> async with AsyncSMBShareClient("nas.local", share="media") as client:
    ...     await client.upload_item("./report.pdf", "docs/report.pdf")
"""

from smbshare.aio import AsyncSMBShareClient
from smbshare.client import SMBShareClient
from smbshare.config import ShareSettings, configure_settings, get_settings, reset_settings
from smbshare.exceptions import (
    LaneClosedError,
    LocalIOError,
    ProtocolError,
    SeekMismatchError,
    ShareConnectionError,
    SMBShareError,
    UsageError,
)
from smbshare.lane import CommandLane
from smbshare.models import AttributeRecord, Credential, FileKind, TransferResult

__version__ = "0.1.0"

__all__ = [
    # Clients
    "SMBShareClient",
    "AsyncSMBShareClient",
    "CommandLane",
    # Models
    "AttributeRecord",
    "Credential",
    "FileKind",
    "TransferResult",
    # Config
    "ShareSettings",
    "get_settings",
    "configure_settings",
    "reset_settings",
    # Errors
    "SMBShareError",
    "ShareConnectionError",
    "ProtocolError",
    "LocalIOError",
    "SeekMismatchError",
    "UsageError",
    "LaneClosedError",
]
