"""Logging setup shared by the CLI and the interactive player."""
from __future__ import annotations

import logging
import sys
from typing import Optional

PROJECT_LOGGERS = ("scene_mechanics", "replay_core", "apps")


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """Attach a console handler (and optionally a file handler) to the project loggers.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
    """
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    file_handler: Optional[logging.Handler] = None
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)

    for name in PROJECT_LOGGERS:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        # Avoid duplicate records when called twice in one process.
        if logger.hasHandlers():
            logger.handlers.clear()
        logger.addHandler(console_handler)
        if file_handler is not None:
            logger.addHandler(file_handler)
        logger.propagate = False

    logging.getLogger("replay_core").debug("Logging initialized.")
