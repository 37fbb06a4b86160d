"""Logging setup for the increment command-line entry point."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | int = logging.WARNING) -> logging.Logger:
    """Configure root logging once for the process.

    Library modules only ever call ``logging.getLogger(__name__)``; this is
    for entry points (the CLI) that own the process.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(level=level, format=LOG_FORMAT)
    return logging.getLogger("increment")
