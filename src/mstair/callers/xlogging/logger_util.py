# File: src/mstair/callers/xlogging/logger_util.py
"""
Environment variable-driven log level configuration.

Sources:
- Pattern DSL strings in LOG_LEVEL / LOG_LEVELS, e.g. "mstair.*:DEBUG; WARNING"
- Per-logger overrides such as LOG_LEVEL_MSTAIR_CALLERS=TRACE
  (single "_" becomes ".", doubled "__" stays "_")

Precedence: exact > ancestor > glob > default > fallback.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Final, NamedTuple

from mstair.callers.base.config import load_dotenv_once
from mstair.callers.xlogging.logger_constants import initialize_logger_constants


__all__ = ["LogLevelConfig"]

_FRAGMENT_SEPARATOR_RX: Final[re.Pattern[str]] = re.compile(r"[;, ]+")
_ASSIGNMENT_OPERATOR_RX: Final[re.Pattern[str]] = re.compile(r"[:=]+")
_ENV_NAME_RX: Final[re.Pattern[str]] = re.compile(r"^LOG_LEVELS?(?P<SUFFIX>(?:_[A-Z][A-Z0-9_]*)*)$")

_log_level_config_instance: LogLevelConfig | None = None


class PatternLevel(NamedTuple):
    """Mapping from a logger-name pattern to an integer log level."""

    pattern: str
    level: int


def _module_from_suffix(suffix: str) -> str:
    """LOG_LEVEL_MSTAIR_CALLERS -> "mstair.callers"; ROOT or no suffix -> ""."""
    suffix = suffix.lstrip("_")
    if not suffix or suffix.upper() == "ROOT":
        return ""
    return suffix.replace("__", "\0").replace("_", ".").replace("\0", "_").lower()


@dataclass(slots=True)
class LogLevelConfig:
    """Resolve per-logger levels from the environment."""

    pattern_to_level: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.pattern_to_level:
            self.update_from_environment()

    @classmethod
    def get_instance(cls) -> LogLevelConfig:
        """Return the shared instance, creating it on first use."""
        global _log_level_config_instance
        if _log_level_config_instance is None:
            _log_level_config_instance = cls()
        return _log_level_config_instance

    def update_from_environment(self) -> None:
        """Rebuild pattern->level mappings from the current environment."""
        load_dotenv_once()
        initialize_logger_constants()
        self.pattern_to_level.clear()
        # Reverse order so LOG_LEVEL_<NAME> entries are applied before the bare LOG_LEVEL(S)
        for name, value in sorted(os.environ.items(), reverse=True):
            match = _ENV_NAME_RX.match(name)
            if match is None:
                continue
            module = _module_from_suffix(match["SUFFIX"])
            for item in self.parse_levels(value, module=module):
                self.pattern_to_level[item.pattern] = item.level

    @staticmethod
    def parse_levels(value: str, *, module: str = "") -> Iterator[PatternLevel]:
        """Parse one DSL value into pattern->level pairs; unknown level names are skipped."""
        level_map = logging.getLevelNamesMapping()
        for fragment in _FRAGMENT_SEPARATOR_RX.split(value):
            fragment = fragment.strip()
            if not fragment:
                continue
            parts = _ASSIGNMENT_OPERATOR_RX.split(fragment, maxsplit=1)
            if len(parts) == 2:
                pattern, level_name = parts[0].strip("'\" "), parts[1].strip("'\" ")
            else:
                pattern, level_name = "", parts[0].strip("'\" ")

            if module:
                pattern = f"{module}.{pattern}" if pattern not in {"", "root"} else module
            if pattern.lower() == "root":
                pattern = ""

            level = int(level_name) if level_name.isdigit() else level_map.get(level_name.upper())
            if not level:
                continue
            yield PatternLevel(pattern, level)

    def get_effective_level(self, logger_name: str, *, default: int = logging.WARNING) -> int:
        """Return the configured level for `logger_name`."""
        name_lc = logger_name.lower()
        named = {k.lower(): v for k, v in self.pattern_to_level.items() if k}

        if name_lc in named:
            return named[name_lc]

        parts = name_lc.split(".")
        while len(parts) > 1:
            parts.pop()
            if (ancestor := ".".join(parts)) in named:
                return named[ancestor]

        best: tuple[int, int] | None = None
        for pattern, level in named.items():
            if any(ch in pattern for ch in "*?[") and fnmatch.fnmatchcase(name_lc, pattern):
                specificity = min(i for i, ch in enumerate(pattern) if ch in "*?[")
                if best is None or specificity > best[0]:
                    best = (specificity, level)
        if best is not None:
            return best[1]

        return self.pattern_to_level.get("", default)


# End of file: src/mstair/callers/xlogging/logger_util.py
