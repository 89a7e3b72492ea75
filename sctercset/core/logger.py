"""Logging for sctercset.

Every module logs through a child of the ``sctercset`` logger. Handlers live
only on that package logger: a RichHandler on the shared console, plus an
optional plain-text file handler added by ``configure_logging``.
"""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "sctercset"
DEFAULT_LOG_FILE = Path("/var/log/sctercset/sctercset.log")
FALLBACK_LOG_FILE = Path("/tmp/sctercset.log")
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

console = Console()


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for module ``name``; output goes through the package handlers."""
    _package_logger()
    return logging.getLogger(name)


def _open_log_file(log_file: Path) -> logging.FileHandler:
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_file)
    except PermissionError:
        FALLBACK_LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(FALLBACK_LOG_FILE)


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """Set the package log level and optionally mirror records to a file.

    Args:
        verbose: Log at DEBUG instead of INFO
        log_file: Also write records here; "-" means the default
            /var/log/sctercset/sctercset.log (or /tmp/sctercset.log when that
            directory is not writable)

    Calling this again changes the level but never adds a second file handler.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = _package_logger()
    logger.setLevel(level)

    if log_file and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        target = DEFAULT_LOG_FILE if log_file == "-" else Path(log_file)
        handler = _open_log_file(target)
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        logger.info(f"Logging to {handler.baseFilename}")

    return logger
