"""
Pydantic models for smbshare.
"""

from smbshare.models.connection import Credential
from smbshare.models.files import AttributeRecord, FileKind
from smbshare.models.transfer import TransferResult

__all__ = [
    "AttributeRecord",
    "Credential",
    "FileKind",
    "TransferResult",
]
