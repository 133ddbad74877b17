"""Logging for sttsync.

Messages start with a ``[area]`` tag (``[sync]``, ``[store]``, ``[config]``,
``[timeout]``) and carry context such as ``field`` or ``provider_id`` in
``extra``. The console shows the tagged message only; the optional log file
also records the extras as JSON.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """Append a record's extras as sorted JSON after the message."""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return timestamp.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if not extras:
            return message
        return f"{message} | {json.dumps(extras, sort_keys=True, default=str)}"


class SttSyncLogger:
    """The ``sttsync`` logger with a console handler and an optional daily file."""

    def __init__(self, log_dir: Optional[Path] = None):
        self.logger = logging.getLogger("sttsync")
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        console_handler = logging.StreamHandler(sys.stderr)
        level_name = os.getenv("STTSYNC_LOG_LEVEL", "WARNING").upper()
        console_handler.setLevel(getattr(logging, level_name, logging.WARNING))
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        self.logger.addHandler(console_handler)

        if log_dir:
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / f"sttsync_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                StructuredFormatter("%(asctime)s [%(levelname)s] %(message)s")
            )
            self.logger.addHandler(file_handler)

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.warning(message, *args, **kwargs)


_logger: Optional[SttSyncLogger] = None


def get_logger() -> SttSyncLogger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = SttSyncLogger()
    return _logger


def init_logger(log_dir: Optional[Path] = None) -> SttSyncLogger:
    """Reconfigure the global logger, optionally writing to ``log_dir``."""
    global _logger
    _logger = SttSyncLogger(log_dir=log_dir)
    return _logger
