"""
Exceptions for smbshare.

Every error delivered through a client future or completion callback is an
SMBShareError subclass. A progress callback asking to stop is never an error.
"""

from __future__ import annotations


class SMBShareError(Exception):
    """Base exception for all smbshare errors."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self._original_cause = cause
        # Keep the cause reachable without printing a second traceback
        self.__suppress_context__ = True

    def __str__(self) -> str:
        return self.message


class ShareConnectionError(SMBShareError):
    """Connecting to or disconnecting from a share failed."""

    def __init__(
        self,
        message: str,
        server: str | None = None,
        share: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.server = server
        self.share = share
        if server and share:
            message = f"{message} (\\\\{server}\\{share})"
        elif server:
            message = f"{message} ({server})"
        super().__init__(message, cause=cause)


class ProtocolError(SMBShareError):
    """A remote stat/CRUD/read/write request failed."""

    def __init__(
        self,
        operation: str,
        path: str | None = None,
        status: int | None = None,
        detail: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.operation = operation
        self.path = path
        self.status = status
        message = f"{operation} failed"
        if path:
            message += f" for '{path}'"
        if status is not None:
            message += f" [status 0x{status:08x}]"
        if detail:
            message += f": {detail}"
        super().__init__(message, cause=cause)


class LocalIOError(SMBShareError):
    """A local open/read/write/remove/reachability operation failed."""

    def __init__(
        self,
        path: str,
        operation: str,
        detail: str | None = None,
        errno: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.path = path
        self.operation = operation
        self.errno = errno
        message = f"Local {operation} failed for '{path}'"
        if detail:
            message += f": {detail}"
        super().__init__(message, cause=cause)


class SeekMismatchError(SMBShareError):
    """Seek landed somewhere other than the requested offset (overflow)."""

    def __init__(self, requested: int, achieved: int, path: str | None = None) -> None:
        self.requested = requested
        self.achieved = achieved
        self.path = path
        where = f" in '{path}'" if path else ""
        super().__init__(
            f"Seek overflow{where}: requested offset {requested}, reached {achieved}"
        )


class UsageError(SMBShareError):
    """Invalid caller input, such as a non-local upload source."""


class LaneClosedError(SMBShareError):
    """Operation submitted after the command lane was closed."""

    def __init__(self, name: str | None = None) -> None:
        self.name = name
        label = f" '{name}'" if name else ""
        super().__init__(f"Command lane{label} is closed")


__all__ = [
    "SMBShareError",
    "ShareConnectionError",
    "ProtocolError",
    "LocalIOError",
    "SeekMismatchError",
    "UsageError",
    "LaneClosedError",
]
