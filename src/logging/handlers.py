# src/logging/handlers.py — v2
"""Log handler construction: console stream and size-rotated files."""

from __future__ import annotations

import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

_SIZE_UNITS: dict[str, int] = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


def parse_size(size_str: str) -> int:
    """Parse a size string like '10MB' or '512 KB' into bytes."""
    match = re.match(r"^(\d+)\s*(B|KB|MB|GB)$", size_str.strip(), re.IGNORECASE)
    if not match:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    return int(match.group(1)) * _SIZE_UNITS[match.group(2).upper()]


def create_console_handler(formatter: logging.Formatter) -> logging.Handler:
    """Stderr handler with the given formatter (stdout is left to CLI output)."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    return handler


def create_rotating_handler(
    log_file: str | Path,
    formatter: logging.Formatter,
    rotation: str = "10MB",
    retention: int = 30,
) -> RotatingFileHandler:
    """Size-rotated file handler; parent directories are created.

    Args:
        log_file: Path to log file (``~`` is expanded).
        formatter: Formatter applied to every record.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated backups to keep.
    """
    if retention < 0:
        raise ValueError("retention must be >= 0")
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler
