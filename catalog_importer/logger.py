"""Console and rotating-file logging for import runs."""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP stack chatter that drowns out per-item progress
NOISY_LOGGERS = ("urllib3", "cloudscraper", "charset_normalizer", "asyncio")


def _has_console(logger: logging.Logger) -> bool:
    return any(type(h) is logging.StreamHandler for h in logger.handlers)


def _has_file(logger: logging.Logger, path: str) -> bool:
    return any(isinstance(h, RotatingFileHandler) and h.baseFilename == path for h in logger.handlers)


def setup_logger(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> logging.Logger:
    """
    Configure the package logger for a run.

    The console shows `level` and above. The log file, when given, also keeps
    DEBUG records so every rule fallback of a run can be reviewed afterwards.
    Calling it again does not add duplicate handlers.
    """
    logger = logging.getLogger("catalog_importer")
    logger.setLevel(logging.DEBUG if log_file else level)
    fmt = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    if not _has_console(logger):
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        logger.addHandler(console)
    for h in logger.handlers:
        if type(h) is logging.StreamHandler:
            h.setLevel(level)

    if log_file:
        path = os.path.abspath(log_file)
        if not _has_file(logger, path):
            os.makedirs(os.path.dirname(path), exist_ok=True)
            # 2MB per run log, keep 5
            fh = RotatingFileHandler(path, maxBytes=2 * 1024 * 1024, backupCount=5, encoding="utf-8")
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(fmt)
            logger.addHandler(fh)

    return logger
