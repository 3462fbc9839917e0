"""
Protocol session adapters.
"""

from smbshare.session.base import EntryType, FileHandle, SessionContext, StatRecord
from smbshare.session.smb2 import SMB2FileHandle, SMB2Session

__all__ = [
    "EntryType",
    "FileHandle",
    "SessionContext",
    "StatRecord",
    "SMB2FileHandle",
    "SMB2Session",
]
