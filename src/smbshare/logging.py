"""
Logging helpers.

All SDK loggers live under the ``smbshare`` namespace. The SDK never installs
handlers on import; applications (or the CLI) call setup_logging().
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from rich.logging import RichHandler

ROOT_LOGGER = "smbshare"


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the SDK namespace."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def setup_logging(level: str | None = None, json_output: bool | None = None) -> logging.Logger:
    """
    Configure the SDK root logger.

    Args:
        level: Log level name. Defaults to settings.log_level.
        json_output: Emit JSON lines instead of rich console output.
            Defaults to settings.log_json.

    Returns:
        The configured ``smbshare`` logger.
    """
    from smbshare.config import get_settings

    settings = get_settings()
    level = level or settings.log_level
    if json_output is None:
        json_output = settings.log_json

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    if json_output:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
    else:
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


__all__ = ["get_logger", "setup_logging", "JSONFormatter"]
