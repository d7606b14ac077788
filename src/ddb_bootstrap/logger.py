"""Logging configuration for copy jobs."""
from __future__ import annotations

import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

__all__ = ["setup_logger"]


def setup_logger(
        log_dir: Optional[Union[str, Path]] = None,
        *,
        level: int = logging.INFO,
        filename_prefix: str = "ddb_bootstrap",
        console: bool = True,
        rotate: bool = False,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 3,
        force: bool = False,
) -> Optional[Path]:
    """
    Configure root logging for a copy job.

    When ``log_dir`` is given, a timestamped log file is created there so that
    several section processes started together each keep their own file.

    Args:
        log_dir: Directory for the log file, or None for console only
        level: Logging level (default: INFO)
        filename_prefix: Prefix for the log filename
        console: If True, also log to stderr
        rotate: If True, use RotatingFileHandler instead of FileHandler
        max_bytes: Maximum log file size before rotation (if rotate=True)
        backup_count: Number of backup files to keep (if rotate=True)
        force: If True, remove existing handlers before adding new ones

    Returns:
        Path to the created log file, or None when logging to console only
    """
    root = logging.getLogger()

    if force:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    root.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)-8s %(threadName)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    log_path = None
    if log_dir is not None:
        log_dir = Path(log_dir).expanduser().resolve()
        log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = log_dir / f"{filename_prefix}_{timestamp}.log"

        if rotate:
            file_handler = RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        else:
            file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")

        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if log_path is not None:
        root.info("Logging initialized: %s", log_path)
    return log_path
