"""
Logging setup for Cedar.

Modules log through `logging.getLogger(__name__)`; this only decides where
the `cedar` logger's records go.
"""

import logging
from typing import Optional

from rich.logging import RichHandler

_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_HANDLER_MARKER = "_cedar_handler"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach a rich console handler (and optionally a file handler) to the
    `cedar` logger. Calling it again replaces the handlers it installed.

    Args:
        level: Log level name
        log_file: Optional path for a plain-text log file

    Returns:
        The configured `cedar` logger
    """
    logger = logging.getLogger("cedar")
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    console_handler = RichHandler(rich_tracebacks=True, show_path=False)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    setattr(console_handler, _HANDLER_MARKER, True)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        setattr(file_handler, _HANDLER_MARKER, True)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
