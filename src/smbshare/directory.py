"""
Directory enumeration and attribute projection.
"""

from __future__ import annotations

import posixpath
from datetime import datetime, timezone

from smbshare.models.files import AttributeRecord, FileKind
from smbshare.session.base import EntryType, SessionContext, StatRecord

PSEUDO_ENTRIES = frozenset({".", ".."})


def _timestamp(seconds: int, nsec: int) -> datetime:
    """Convert a protocol (seconds, nanoseconds) pair to aware UTC datetime."""
    return datetime.fromtimestamp(seconds + nsec / 1_000_000_000, tz=timezone.utc)


def project_attributes(name: str, stat: StatRecord) -> AttributeRecord:
    """Build an AttributeRecord from raw protocol metadata."""
    kind = FileKind.DIRECTORY if stat.type == EntryType.DIRECTORY else FileKind.FILE
    return AttributeRecord(
        name=name,
        size=stat.size,
        kind=kind,
        modified_at=_timestamp(stat.mtime, stat.mtime_nsec),
        created_at=_timestamp(stat.ctime, stat.ctime_nsec),
    )


def item_name(path: str) -> str:
    """Last path component, accepting either separator."""
    normalized = path.replace("\\", "/").rstrip("/")
    return posixpath.basename(normalized) or normalized


class DirectoryEnumerator:
    """Lists directories and stats items. Must only run on the session's lane."""

    def __init__(self, session: SessionContext) -> None:
        self._session = session

    def list(self, path: str) -> list[AttributeRecord]:
        """
        List directory contents.

        The ``.`` and ``..`` pseudo-entries are dropped.
        """
        return [
            project_attributes(name, stat)
            for name, stat in self._session.listdir(path)
            if name not in PSEUDO_ENTRIES
        ]

    def attributes(self, path: str) -> AttributeRecord:
        return project_attributes(item_name(path), self._session.stat(path))
