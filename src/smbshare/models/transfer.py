"""
Models for transfer operations.
"""

from __future__ import annotations

from pydantic import BaseModel


class TransferResult(BaseModel):
    """Outcome of a write, copy, upload or download."""

    bytes_transferred: int = 0
    total_size: int = 0
    chunks_count: int = 0
    # False when the progress callback asked to stop early
    completed: bool = True

    def __repr__(self) -> str:
        state = "complete" if self.completed else "stopped"
        return (
            f"TransferResult({state}, {self.bytes_transferred:,}/{self.total_size:,} bytes, "
            f"{self.chunks_count} chunks)"
        )
