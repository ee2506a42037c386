"""
Logging configuration — central setup for the CLI.

Called once at startup by main.py. Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

Console level, highest precedence first:
    --debug  >  --verbose  >  --quiet  >  MAZIQ_LOG_LEVEL  >  WARNING

Optional file output via MAZIQ_LOG_FILE / MAZIQ_LOG_FILE_LEVEL.
Installer output is never logged here; it travels as TaskEvents.

Two internal loggers are chatty at DEBUG: the event bus logs every
published event (one per installer output line) and the adapter
registry logs every registration. Unless ``trace_internals`` is set
they are held at INFO, so a DEBUG log file stays readable.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path

LOG_LEVEL_ENV = "MAZIQ_LOG_LEVEL"

# WARNING and above: the message alone, the CLI prints its own context
_FMT_MINIMAL = "%(message)s"

# INFO: timestamped with module context
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_DATEFMT_VERBOSE = "%H:%M:%S"

# DEBUG and file: tasks run on worker threads, so the thread name is the task context
_FMT_THREADED = "%(asctime)s %(levelname)-5s [%(threadName)s] %(name)s:%(lineno)d: %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

CHATTY_LOGGERS = (
    "maziq.core.services.event_bus",
    "maziq.adapters.registry",
)


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Console level name from the CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return (environ or {}).get(LOG_LEVEL_ENV) or "WARNING"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    trace_internals: bool = False,
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file; parent directories are
            created.
        log_file_level: Optional separate level for the log file.
            Defaults to the same as ``level``.
        trace_internals: Let ``CHATTY_LOGGERS`` log at DEBUG too.
    """
    numeric_level = _parse_level(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_console_handler(numeric_level))

    # Effective root level = minimum of console and file levels
    effective_level = numeric_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)
        root.addHandler(_file_handler(Path(log_file).expanduser(), file_level))
    root.setLevel(effective_level)

    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if trace_internals else logging.INFO)

    # Don't propagate exceptions from logging itself
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    if level <= logging.DEBUG:
        fmt, datefmt = _FMT_THREADED, _DATEFMT_DEBUG
    elif level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT_VERBOSE
    else:
        fmt, datefmt = _FMT_MINIMAL, None
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: Path, level: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FMT_THREADED, datefmt=_DATEFMT_FILE))
    return handler


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
