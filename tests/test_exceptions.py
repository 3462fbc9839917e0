"""
Tests for smbshare exceptions.
"""

import pytest

from smbshare.exceptions import (
    LaneClosedError,
    LocalIOError,
    ProtocolError,
    SeekMismatchError,
    ShareConnectionError,
    SMBShareError,
    UsageError,
)


class TestSMBShareError:
    """Tests for base SMBShareError."""

    def test_basic_error(self):
        error = SMBShareError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"

    def test_error_with_cause(self):
        cause = ValueError("Original error")
        error = SMBShareError("Wrapped error", cause=cause)
        assert error._original_cause is cause
        assert str(error) == "Wrapped error"

    @pytest.mark.parametrize(
        "error",
        [
            ShareConnectionError("x"),
            ProtocolError("stat"),
            LocalIOError("/tmp/x", "open"),
            SeekMismatchError(1, 2),
            UsageError("bad"),
            LaneClosedError(),
        ],
    )
    def test_hierarchy(self, error):
        assert isinstance(error, SMBShareError)


class TestShareConnectionError:
    def test_includes_unc(self):
        error = ShareConnectionError("Access denied", server="nas", share="media")
        assert error.server == "nas"
        assert error.share == "media"
        assert "\\\\nas\\media" in str(error)


class TestProtocolError:
    def test_status_formatting(self):
        error = ProtocolError("read", path="a.txt", status=0xC0000034, detail="not found")
        assert error.status == 0xC0000034
        assert error.operation == "read"
        assert "0xc0000034" in str(error)
        assert "a.txt" in str(error)
        assert "not found" in str(error)

    def test_minimal(self):
        assert str(ProtocolError("write")) == "write failed"


class TestLocalIOError:
    def test_fields(self):
        error = LocalIOError("/tmp/x", "remove", detail="busy", errno=16)
        assert error.path == "/tmp/x"
        assert error.operation == "remove"
        assert error.errno == 16
        assert "busy" in str(error)


class TestSeekMismatchError:
    def test_offsets(self):
        error = SeekMismatchError(100, 50, path="big.iso")
        assert error.requested == 100
        assert error.achieved == 50
        assert "100" in str(error) and "50" in str(error)
        assert "big.iso" in str(error)


class TestLaneClosedError:
    def test_name(self):
        error = LaneClosedError("smb2_queue_nas")
        assert error.name == "smb2_queue_nas"
        assert "smb2_queue_nas" in str(error)
