# File: src/mstair/callers/xlogging/core_logger.py
"""
Logger with a TRACE level and environment-driven per-logger levels.

Example:
    >>> from mstair.callers.xlogging.logger_factory import create_logger
    >>> logger = create_logger(__name__)
    >>> with logger.prefix_with("[locate]"):
    ...     logger.trace("skipping %s", "app.guard.Guard")

Design:
- Only the root logger owns handlers; CoreLogger instances propagate.
- initialize_root() is the only supported entry point for root setup and is idempotent.
- Levels come from LogLevelConfig (LOG_LEVEL, LOG_LEVELS, LOG_LEVEL_<NAME>).
"""

from __future__ import annotations

import contextvars
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

from .logger_constants import TRACE, initialize_logger_constants
from .logger_formatter import CoreFormatter
from .logger_util import LogLevelConfig


__all__: list[str] = [
    "CoreLogger",
    "initialize_root",
]

_LOG_ROOT_ATTR_NAME = "_mstair_callers_corelogger_initialized"

_log_prefix: contextvars.ContextVar[str] = contextvars.ContextVar("log_prefix", default="")


class CoreLogger(logging.Logger):
    """
    logging.Logger with:

    - a TRACE level below DEBUG,
    - levels resolved from the environment at construction,
    - a prefix context manager for scoped message prefixes.
    """

    def __init__(self, name: str, level: int | str = logging.NOTSET) -> None:
        initialize_logger_constants()
        if level in (logging.NOTSET, "NOTSET", ""):
            level = LogLevelConfig.get_instance().get_effective_level(name)
        super().__init__(name, level)

    def __repr__(self) -> str:
        level = self.getEffectiveLevel()
        return f"<{type(self).__name__} '{self.name}' {logging.getLevelName(level)}={level}>"

    def makeRecord(
        self,
        name: str,
        level: int,
        fn: str,
        lno: int,
        msg: object,
        *args: Any,
        **kwargs: Any,
    ) -> logging.LogRecord:
        """Apply the active prefix; the record is otherwise built by logging.Logger."""
        if prefix := _log_prefix.get():
            msg = f"{prefix}{msg}"
        return super().makeRecord(name, level, fn, lno, msg, *args, **kwargs)

    def handle(self, record: logging.LogRecord) -> None:
        initialize_root()
        super().handle(record)

    def trace(self, msg: object, *args: Any, **kwargs: Any) -> None:
        """Log a message at TRACE level (below DEBUG)."""
        # One extra level so the record points at our caller, not at trace()
        kwargs["stacklevel"] = kwargs.get("stacklevel", 1) + 1
        self.log(TRACE, msg, *args, **kwargs)

    @contextmanager
    def prefix_with(self, prefix: str) -> Iterator[None]:
        """
        Prefix every message logged in the current context.

        Nested prefixes accumulate. Uses contextvars, so threads and tasks do not share prefixes.
        """
        current = _log_prefix.get()
        token = _log_prefix.set(f"{current}{prefix} > ")
        try:
            yield
        finally:
            _log_prefix.reset(token)


def initialize_root(
    fmt: str | None = None,
    datefmt: str | None = None,
    level: int | str | None = None,
    force: bool = False,
) -> None:
    """
    Idempotently configure the root logger for CoreLogger.

    - Ensures one stderr StreamHandler with CoreFormatter exists.
    - `force=True` removes and recreates the stderr handler.
    - Sets the root level to `level` if given, else WARNING when root is NOTSET.
    - Never touches handlers that do not write to stderr.

    :param fmt: Format string. Defaults to LOG_FORMAT or the package default.
    :param datefmt: Date format for %(asctime)s.
    :param level: Root logger level (int or name).
    :param force: Reinitialize even if already initialized.
    """
    root = logging.getLogger()
    if getattr(root, _LOG_ROOT_ATTR_NAME, False) and not force:
        return
    setattr(root, _LOG_ROOT_ATTR_NAME, True)
    initialize_logger_constants()

    if force:
        root.handlers = [h for h in root.handlers if not _is_stderr_handler(h)]

    stderr_handlers = [h for h in root.handlers if _is_stderr_handler(h)]
    if not stderr_handlers:
        handler: logging.StreamHandler[TextIO] = logging.StreamHandler(sys.stderr)
        handler.setFormatter(CoreFormatter(fmt or os.environ.get("LOG_FORMAT"), datefmt))
        root.addHandler(handler)
    elif not any(isinstance(h.formatter, CoreFormatter) for h in stderr_handlers):
        stderr_handlers[0].setFormatter(CoreFormatter(fmt or os.environ.get("LOG_FORMAT"), datefmt))

    if level is not None:
        if isinstance(level, str):
            level = logging.getLevelNamesMapping().get(level.upper(), logging.WARNING)
        root.setLevel(level)
    elif root.level == logging.NOTSET:
        root.setLevel(logging.WARNING)


def _is_stderr_handler(handler: logging.Handler) -> bool:
    return isinstance(handler, logging.StreamHandler) and handler.stream is sys.stderr


# End of file: src/mstair/callers/xlogging/core_logger.py
