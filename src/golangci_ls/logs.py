from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}"


def setup_logging(log_level: str, log_file: Optional[Path] = None) -> None:
    """Send logs to stderr, and to ``log_file`` when given.

    stdout is reserved for the LSP stream.
    """
    logger.remove()
    logger.add(sys.stderr, level=log_level, format=LOG_FORMAT)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(str(log_file), level=log_level, format=LOG_FORMAT)
        logger.debug("logging to {}", log_file)
