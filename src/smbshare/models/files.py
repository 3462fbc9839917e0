"""
File attribute models.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FileKind(str, Enum):
    """Kind of a remote entry."""

    FILE = "file"
    DIRECTORY = "directory"


class AttributeRecord(BaseModel):
    """Normalized metadata for one remote entry."""

    model_config = ConfigDict(frozen=True)

    name: str
    size: int = Field(ge=0)
    kind: FileKind
    modified_at: datetime
    created_at: datetime

    @property
    def is_directory(self) -> bool:
        return self.kind == FileKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind == FileKind.FILE
