"""Logging for codechat.

The client shares the terminal with the conversation, so diagnostics stay
out of the way: warnings and errors by default, a log file when one is
configured (``logging.file`` or ``CODECHAT_LOG``), and stderr only when it
is an interactive terminal. Each ``-v`` raises the verbosity by one step:

    0 error, 1 warning (default), 2 info, 3 verbose, 4 trace
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codechat.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("codechat")

DEFAULT_VERBOSITY = 1

_VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)

_NAMED_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "verbose": VERBOSE,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

# Libraries that log on every request; they follow codechat only at trace.
_CHATTY_LOGGERS = ("LiteLLM", "httpx", "httpcore")

_FORMAT = "%(asctime)s %(levelname)s: %(message)s"

_initialized = False


class _Formatter(logging.Formatter):
    """``12:30:01 warning: message``"""

    def __init__(self) -> None:
        super().__init__(_FORMAT, datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Effective level for a logging config.

    An explicit verbosity wins over a level name. Out-of-range verbosities
    clamp to the ends of the scale, unknown names fall back to warning.
    """
    if config is not None and config.verbose is not None:
        step = min(max(config.verbose, 0), len(_VERBOSITY_LEVELS) - 1)
        return _VERBOSITY_LEVELS[step]
    if config is not None and config.level:
        return _NAMED_LEVELS.get(config.level.lower(), logging.WARNING)
    return _VERBOSITY_LEVELS[DEFAULT_VERBOSITY]


def _log_file(config: LoggingConfig | None) -> str | None:
    path = (config.file if config else None) or os.environ.get("CODECHAT_LOG")
    return os.path.expanduser(path) if path else None


def _build_handlers(config: LoggingConfig | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    path = _log_file(config)
    if path:
        try:
            handlers.append(logging.FileHandler(path, mode="a", encoding="utf-8"))
        except OSError as e:
            if sys.stderr.isatty():
                print(f"codechat: cannot open log file {path}: {e}", file=sys.stderr)
    if not handlers and sys.stderr.isatty():
        handlers.append(logging.StreamHandler(sys.stderr))
    return handlers


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Attach handlers to the ``codechat`` logger.

    Only the first call has an effect; the CLI calls this once the merged
    configuration is known.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    level = resolve_level(config)
    logger.setLevel(level)
    formatter = _Formatter()
    for handler in _build_handlers(config):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    third_party = level if level <= TRACE else max(level, logging.WARNING)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party)


def reset_logging() -> None:
    """Close and detach all handlers so setup_logging() runs again."""
    global _initialized
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    _initialized = False


def get_logger(name: str | None = None) -> logging.Logger:
    """``get_logger("session")`` -> the ``codechat.session`` logger."""
    return logger.getChild(name) if name else logger
