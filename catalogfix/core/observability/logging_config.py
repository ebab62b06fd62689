"""
Logging for the catalogfix CLI.

    console level:  --debug > --verbose > --quiet > $CFX_LOG_LEVEL > WARNING
    log file:       $CFX_LOG_FILE, at $CFX_LOG_FILE_LEVEL (else the console level)

Reconcile results go to stdout; log records always go to stderr, so
``--json`` output stays parseable whatever the level.  Modules only ever
do ``logger = logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

ENV_LEVEL = "CFX_LOG_LEVEL"
ENV_FILE = "CFX_LOG_FILE"
ENV_FILE_LEVEL = "CFX_LOG_FILE_LEVEL"

DEFAULT_LEVEL = "WARNING"

# Console detail grows as the level drops; WARNING and up is message-only
_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s %(name)s  %(message)s", "%H:%M:%S"),
}
_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stderr`` is when the record is emitted.

    click's test runner swaps the standard streams per invocation; a
    handler bound to the stream object seen at setup would outlive it.
    """

    def __init__(self) -> None:
        super().__init__(sys.stderr)

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value) -> None:
        pass


def level_number(name: str | None, default: int = logging.WARNING) -> int:
    """``"info"`` → ``logging.INFO``; unknown or empty names give ``default``."""
    if not name:
        return default
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else default


def _console_format(level: int) -> tuple[str, str | None]:
    for threshold in (logging.DEBUG, logging.INFO):
        if level <= threshold:
            return _CONSOLE_FORMATS[threshold]
    return "%(message)s", None


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Console level from the CLI flags, falling back to the environment."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    if quiet:
        return logging.ERROR
    env = os.environ if environ is None else environ
    return level_number(env.get(ENV_LEVEL), level_number(DEFAULT_LEVEL))


def setup_logging(
    level: int | str = DEFAULT_LEVEL,
    log_file: str | None = None,
    log_file_level: int | str | None = None,
) -> None:
    """Install the console (and optional file) handler on the root logger.

    Safe to call more than once; handlers from an earlier call are replaced.
    """
    console_level = level if isinstance(level, int) else level_number(level)
    fmt, datefmt = _console_format(console_level)

    root = logging.getLogger()
    for handler in root.handlers[:]:
        if isinstance(handler, (_StderrHandler, logging.FileHandler)):
            root.removeHandler(handler)
            handler.close()

    console = _StderrHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    root.addHandler(console)

    root_level = console_level
    if log_file:
        if isinstance(log_file_level, int):
            file_level = log_file_level
        else:
            file_level = level_number(log_file_level, console_level)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)


def configure_cli_logging(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Resolve levels from flags and ``CFX_*`` variables, then set up logging.

    Returns:
        The console level that was applied.
    """
    env = os.environ if environ is None else environ
    level = resolve_level(debug=debug, verbose=verbose, quiet=quiet, environ=env)
    setup_logging(level, log_file=env.get(ENV_FILE), log_file_level=env.get(ENV_FILE_LEVEL))
    return level
