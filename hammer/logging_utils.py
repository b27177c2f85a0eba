"""
Logging helpers for the load generator.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional


LOGGER_NAME = "hammer"


def configure_logging(log_path: Optional[Path] = None, *, verbose: bool = False) -> logging.Logger:
    """Initialise a stderr logger, also writing to *log_path* when given."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
