"""
Error log for the tagpage CLI.

The CLI prints a one-line message; the full traceback goes to
``$TAGPAGE_HOME/tagpage-errors.log``.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path

from .config import tagpage_home

ERROR_LOG_FILENAME = "tagpage-errors.log"

_SEPARATOR = "=" * 60


def format_error_entry(exc: BaseException, context: str = "") -> str:
    """One log entry: separator, UTC timestamp and context, then the traceback."""
    header = f"[{datetime.now(timezone.utc).isoformat()}]"
    if context:
        header = f"{header} {context}"
    trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return f"\n{_SEPARATOR}\n{header}\n{trace}"


def log_exception(exc: BaseException, context: str = "") -> Path:
    """
    Append an exception to the error log.

    Returns the log path whether or not the write succeeded.
    """
    log_path = tagpage_home() / ERROR_LOG_FILENAME
    entry = format_error_entry(exc, context)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        # Tracebacks can quote note content; owner-only
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a", encoding="utf-8") as f:
            f.write(entry)
    except OSError:
        pass  # The user still sees the message
    return log_path
