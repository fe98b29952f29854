"""Logging for flowprof.

Every module logs through ``get_logger(__name__)``, so all records end up
under the ``flowprof`` logger. That logger owns a single stderr handler,
which keeps stdout free for the CLI's tables and report summary. The start-up
level comes from ``FLOWPROF_LOG_LEVEL`` (a level name such as ``DEBUG``) when
set, otherwise INFO. The CLI's ``--verbose`` and ``--quiet`` flags override it
through ``level_for_flags()``.
"""

import logging
import os
import sys
from typing import Optional

ROOT_LOGGER_NAME = "flowprof"
LOG_LEVEL_ENV = "FLOWPROF_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_ROOT_LOGGER_CONFIGURED = False


def default_level() -> int:
    """Return the level named by ``FLOWPROF_LOG_LEVEL``, or INFO.

    Unknown names fall back to INFO; the ``flowprof`` logger reports them
    once it is configured.
    """
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    level = logging.getLevelName(name) if name else logging.INFO
    return level if isinstance(level, int) else logging.INFO


def level_for_flags(verbose: bool = False, quiet: bool = False) -> int:
    """Map the CLI verbosity flags to a level; ``verbose`` wins over ``quiet``.

    With neither flag the ``FLOWPROF_LOG_LEVEL`` default applies.
    """
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return default_level()


def setup_root_logger(
    level: Optional[int] = None,
    format_string: Optional[str] = None,
    handler: Optional[logging.Handler] = None,
) -> None:
    """Attach the single flowprof handler; later calls are no-ops.

    Args:
        level: Logging level (default: ``default_level()``).
        format_string: Custom format string (default: ``LOG_FORMAT``).
        handler: Custom handler (default: a stderr StreamHandler).
    """
    global _ROOT_LOGGER_CONFIGURED

    if _ROOT_LOGGER_CONFIGURED:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(default_level() if level is None else level)
    root_logger.handlers.clear()

    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(format_string or LOG_FORMAT))
    root_logger.addHandler(handler)

    # pytest's caplog hooks the root logger
    root_logger.propagate = True

    _ROOT_LOGGER_CONFIGURED = True

    requested = os.environ.get(LOG_LEVEL_ENV, "").strip()
    if requested and not isinstance(logging.getLevelName(requested.upper()), int):
        root_logger.warning(f"Ignoring unknown {LOG_LEVEL_ENV}={requested!r}")


def get_logger(name: str) -> logging.Logger:
    """Return a module logger that defers to the ``flowprof`` logger.

    Args:
        name: Logger name, normally the calling module's ``__name__``.
    """
    setup_root_logger()

    logger = logging.getLogger(name)
    logger.setLevel(logging.NOTSET)
    return logger


def set_global_log_level(level: int) -> None:
    """Set the level of the ``flowprof`` logger and its handlers."""
    setup_root_logger()

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)


def enable_debug_logging() -> None:
    set_global_log_level(logging.DEBUG)


def disable_debug_logging() -> None:
    set_global_log_level(logging.INFO)


def reset_logging() -> None:
    """Drop the handler and level so the next call configures afresh (tests)."""
    global _ROOT_LOGGER_CONFIGURED
    _ROOT_LOGGER_CONFIGURED = False

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.handlers.clear()
    root_logger.setLevel(logging.NOTSET)


setup_root_logger()
