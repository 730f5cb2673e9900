# File: src/mstair/callers/xlogging/logger_formatter.py
"""
Formatter adding a compact file:line field and colored level names.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Literal

from colorama import Fore, Style

from .logger_constants import TRACE


__all__ = ["CoreFormatter", "DEFAULT_FORMAT", "get_color_code"]

FormatStyle = Literal["%", "{", "$"]

DEFAULT_FORMAT = "%(levelName)s %(fileAndLine)s %(name)s: %(message)s"

LEVEL_COLORS: dict[int, str] = {
    TRACE: Fore.MAGENTA,
    logging.DEBUG: Style.DIM,
    logging.INFO: Fore.WHITE,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}


def colors_enabled() -> bool:
    """Colors are used only on an interactive stderr and when NO_COLOR is unset."""
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(sys.stderr, "isatty", None)
    return bool(isatty and isatty())


def get_color_code(levelno: int) -> str:
    """Return the escape sequence for a level, or "" when colors are disabled."""
    if not colors_enabled():
        return ""
    return LEVEL_COLORS.get(levelno, "")


class CoreFormatter(logging.Formatter):
    """Formatter for CoreLogger records; adds `fileAndLine` and `levelName` fields."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: FormatStyle = "%",
        validate: bool = True,
        *,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            fmt=fmt or DEFAULT_FORMAT,
            datefmt=datefmt,
            style=style,
            validate=validate,
            defaults=defaults,
        )

    def format(self, record: logging.LogRecord) -> str:
        record.fileAndLine = self.format_file_and_line(record.pathname, record.lineno)
        record.levelName = self.format_level_name(record)
        return super().format(record)

    @staticmethod
    def format_file_and_line(pathname: str, lineno: int) -> str:
        if not pathname:
            return "<unknown file>"
        path = Path(pathname)
        try:
            shown = path.relative_to(Path.cwd()).as_posix()
        except ValueError:
            shown = path.as_posix()
        return f"{shown}:{lineno}"

    @staticmethod
    def format_level_name(record: logging.LogRecord) -> str:
        color = get_color_code(record.levelno)
        if not color:
            return record.levelname
        return f"{color}{record.levelname}{Style.RESET_ALL}"


# End of file: src/mstair/callers/xlogging/logger_formatter.py
