"""
Logging configuration for tagpage.

Quiet by default: only warnings from tagpage reach stderr.
"""

import logging
import sys
import warnings
from pathlib import Path

OPS_LOG_FILENAME = "tagpage-ops.log"


def configure_quiet_mode(quiet: bool = True):
    """
    Configure logging to keep CLI output clean.

    Args:
        quiet: If True, only warnings and errors are shown. If False,
            informational messages are shown as well.
    """
    level = logging.WARNING if quiet else logging.INFO
    if quiet:
        # Suppress Python warnings (deprecation etc.) from dependencies
        warnings.filterwarnings("ignore")
    logging.getLogger("tagpage").setLevel(level)
    logging.getLogger("yaml").setLevel(logging.ERROR)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    warnings.filterwarnings("default")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    logging.getLogger("tagpage").setLevel(logging.DEBUG)


def configure_ops_log(directory):
    """Configure a persistent operations log.

    Writes to {directory}/tagpage-ops.log using a rotating file handler
    (1MB max, 3 backups). Always active regardless of --verbose.
    Returns the handler so it can be removed by the caller.
    """
    from logging.handlers import RotatingFileHandler

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / OPS_LOG_FILENAME

    tagpage_logger = logging.getLogger("tagpage")
    for existing in tagpage_logger.handlers:
        if (isinstance(existing, RotatingFileHandler)
                and Path(existing.baseFilename) == log_path.resolve()):
            return existing

    handler = RotatingFileHandler(
        str(log_path),
        maxBytes=1_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    tagpage_logger.addHandler(handler)
    # Let INFO through to the file even in quiet mode
    if tagpage_logger.level == logging.NOTSET or tagpage_logger.level > logging.INFO:
        tagpage_logger.setLevel(logging.INFO)

    return handler


def remove_ops_log(handler) -> None:
    """Detach and close a handler returned by configure_ops_log()."""
    if handler is None:
        return
    logging.getLogger("tagpage").removeHandler(handler)
    handler.close()
