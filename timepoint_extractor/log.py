"""Logging setup for the timepoint extractor.

Modules log through ``logging.getLogger(__name__)``; ``setup_logging`` wires the
package logger to the console and to a file in the application data directory.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import APP_LOG_FILE

PACKAGE_LOGGER = "timepoint_extractor"


def setup_logging(level: str = "INFO", log_dir: Optional[Path] = None) -> logging.Logger:
    """Configure the package logger once and return it."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, level.upper()))

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logger.addHandler(console_handler)

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_dir / APP_LOG_FILE, encoding="utf-8")
        except OSError as e:
            logger.warning("File logging disabled: %s", e)
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
                )
            )
            logger.addHandler(file_handler)

    return logger


__all__ = ["setup_logging", "PACKAGE_LOGGER"]
