"""
Logging setup for the record validator CLI.
"""

import logging
import sys
from datetime import datetime
from typing import Optional, TextIO


class ConsoleFormatter(logging.Formatter):
    """[HH:MM:SS.mmm] LEVEL [logger] message"""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        parts = [
            f"[{timestamp}]",
            f"{record.levelname:8}",
            f"[{record.name}]",
            record.getMessage(),
        ]
        if record.exc_info:
            parts.append(self.formatException(record.exc_info))
        return " ".join(parts)


def setup_logging(level: str = "WARNING", stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Configure the record_validator package logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        stream: Output stream, stderr when omitted so JSON on stdout stays clean
    """
    root_logger = logging.getLogger("record_validator")
    root_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(ConsoleFormatter())
    root_logger.addHandler(handler)

    root_logger.debug("Logging configured")
    return root_logger
