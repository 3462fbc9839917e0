"""
smbshare CLI entry point.

Usage:
    python -m smbshare --server nas.local --share media ls
    python -m smbshare get docs/report.pdf
"""

from smbshare.cli import main

if __name__ == "__main__":
    main()
