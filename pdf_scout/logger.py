"""Logging setup for PdfScout.

Console records are written with :func:`tqdm.write` to stderr, so they land
above the progress bars instead of tearing them, and stdout stays free for
the run directory the CLI prints.  ``--log-file`` adds a rotating file copy.

    from pdf_scout.logger import get_logger
    log = get_logger("crawler")      # -> "PdfScout.crawler"
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

from tqdm import tqdm

LOGGER_NAME: Final[str] = "PdfScout"
LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class TqdmHandler(logging.Handler):
    """Emit records through ``tqdm.write`` on the current ``sys.stderr``."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=sys.stderr)
        except Exception:  # pylint: disable=broad-except
            self.handleError(record)


def configure(level: Union[int, str] = "INFO", log_file: str | Path | None = None) -> logging.Logger:
    """Replace the handlers of the ``PdfScout`` logger and return it."""
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    for handler in list(lg.handlers):
        lg.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    console = TqdmHandler()
    console.setFormatter(formatter)
    lg.addHandler(console)

    if log_file is not None:
        file_handler = RotatingFileHandler(
            filename=str(log_file), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        lg.addHandler(file_handler)

    lg.propagate = False
    return lg


def get_logger(name: str | None = None) -> logging.Logger:
    """``PdfScout`` or its child ``PdfScout.<name>``."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


logger: logging.Logger = configure()

__all__ = ["logger", "configure", "get_logger", "TqdmHandler", "LOGGER_NAME", "LOG_FORMAT"]
