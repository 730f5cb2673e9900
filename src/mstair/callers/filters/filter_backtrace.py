# File: src/mstair/callers/filters/filter_backtrace.py
"""
Find the first entry in a captured backtrace that identifies the real caller.

Error helpers and guard layers want to report "who called this" without
naming their own wrapper frames. `locate_caller()` walks a raw trace,
skipping frames whose class belongs to one of the namespaces in the filter
set, and returns a fixed-shape `CallerInfo`.

Trace convention (innermost first):
- entry N says *what is running* (class, function, type)
- entry N-1 says *where the call happened* (file, line)

so the details of any caller are assembled from two adjacent entries.

Example:
    >>> trace = [
    ...     {"class": "app.guard.Guard", "function": "check"},
    ...     {"class": "app.guard.Guard", "function": "__call__", "file": "a.py", "line": 10},
    ...     {"class": "app.views.Caller", "function": "run", "file": "b.py", "line": 20},
    ... ]
    >>> locate_caller(trace, {"guard"}).klass
    'app.views.Caller'
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from mstair.callers.base import config as cfg
from mstair.callers.xlogging.logger_factory import create_logger


__all__ = [
    "CallerInfo",
    "EmptyBacktraceError",
    "FilterBacktrace",
    "StackFrame",
    "build_caller_info",
    "is_acceptable",
    "locate_caller",
]

_LOG = create_logger(__name__)


class EmptyBacktraceError(ValueError):
    """Raised when there is no frame at all to describe a caller from."""


@dataclass(frozen=True, slots=True)
class StackFrame:
    """One entry of a raw backtrace. Every field is optional."""

    klass: str | None = None
    """Fully-qualified class (or module) name; None for free functions."""

    function: str | None = None
    """Name of the function or method that is executing."""

    type: str | None = None
    """Call-type marker, e.g. "->" for an instance call and "::" for a class call."""

    file: str | None = None
    """File containing the call site."""

    line: int | None = None
    """Line number of the call site."""

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> StackFrame:
        """Build a StackFrame from a dict-shaped trace record; extra keys are ignored."""
        return cls(
            klass=mapping.get("class"),
            function=mapping.get("function"),
            type=mapping.get("type"),
            file=mapping.get("file"),
            line=mapping.get("line"),
        )


@dataclass(frozen=True, slots=True)
class CallerInfo:
    """Who called the code asking; unknown fields are None, never missing."""

    klass: str | None
    function: str | None
    type: str | None
    file: str | None
    line: int | None
    stack_index: int

    def as_dict(self) -> dict[str, Any]:
        """Return the six-key record form (keys: class, function, type, file, line, stackIndex)."""
        return {
            "class": self.klass,
            "function": self.function,
            "type": self.type,
            "file": self.file,
            "line": self.line,
            "stackIndex": self.stack_index,
        }


TraceEntry = StackFrame | Mapping[str, Any]


def locate_caller(
    trace: Sequence[TraceEntry],
    filter_set: Iterable[str] = (),
    start_index: int = 0,
    *,
    separator: str | None = None,
) -> CallerInfo:
    """
    Work out who has called a piece of code.

    :param trace: Captured backtrace, innermost frame first. Entries are StackFrame
        instances or mappings with class/function/type/file/line keys.
    :param filter_set: Namespace fragments or fully-qualified class names to skip over.
    :param start_index: How many frames to skip before searching.
    :param separator: Namespace separator; defaults to config.namespace_separator().
    :return CallerInfo: The first caller that is not filtered out.
    :raises EmptyBacktraceError: If `trace` has no frames.
    :raises ValueError: If `start_index` is negative.
    :raises TypeError: If `filter_set` is a single str, or an entry is not a frame record.

    When every candidate is filtered out, the result degrades to the details
    of trace[1] paired with trace[0] (stack index 1), regardless of
    `filter_set` and `start_index`.
    """
    if start_index < 0:
        raise ValueError(f"start_index must be >= 0, got {start_index}")
    if len(trace) == 0:
        raise EmptyBacktraceError("Cannot locate a caller in an empty backtrace")

    filters = _as_filter_set(filter_set)
    sep = cfg.namespace_separator() if separator is None else _checked_separator(separator)

    # The frame at start_index belongs to whoever is asking, not to a candidate caller
    index = start_index + 1

    max_index = len(trace) - 1
    if index > max_index:
        prev_index = max(0, max_index - 1)
        _LOG.debug(
            "Start index %d is beyond the backtrace (%d frames); clamping to %d",
            index,
            len(trace),
            max_index,
        )
        return build_caller_info(
            _as_stack_frame(trace[max_index]), _as_stack_frame(trace[prev_index]), max_index
        )

    prev_frame = _as_stack_frame(trace[index - 1])
    for i in range(index, max_index + 1):
        frame = _as_stack_frame(trace[i])

        if frame.klass is None:
            # Called from a free function
            return build_caller_info(frame, prev_frame, i)

        if is_acceptable(frame.klass, filters, separator=sep):
            return build_caller_info(frame, prev_frame, i)

        _LOG.trace("Skipping filtered frame %d: %s", i, frame.klass)
        prev_frame = frame

    _LOG.debug("Every frame from index %d was filtered; falling back to stack index 1", index)
    return build_caller_info(_as_stack_frame(trace[1]), _as_stack_frame(trace[0]), 1)


def is_acceptable(name: str, filter_set: Iterable[str], *, separator: str | None = None) -> bool:
    """
    Return True if `name` is NOT covered by the filter set.

    Each namespace segment is checked, plus the whole name itself, so that both
    partial namespaces ("guard") and fully-qualified names ("app.guard.Guard") work.
    """
    sep = cfg.namespace_separator() if separator is None else _checked_separator(separator)
    parts = {*name.split(sep), name}
    return parts.isdisjoint(_as_filter_set(filter_set))


def build_caller_info(primary: StackFrame, secondary: StackFrame, stack_index: int) -> CallerInfo:
    """Combine what is running (from `primary`) with where it was called (from `secondary`)."""
    return CallerInfo(
        klass=primary.klass,
        function=primary.function,
        type=primary.type,
        file=secondary.file,
        line=secondary.line,
        stack_index=stack_index,
    )


class FilterBacktrace:
    """
    Reusable caller locator bound to a filter set.

    Example:
        >>> find_caller = FilterBacktrace({"guard", "asserts"})
        >>> info = find_caller(trace)
    """

    def __init__(self, filter_set: Iterable[str] = (), *, separator: str | None = None) -> None:
        self.filter_set: frozenset[str] = _as_filter_set(filter_set)
        self.separator = separator

    def __repr__(self) -> str:
        return f"<{type(self).__name__} filters={sorted(self.filter_set)!r}>"

    def __call__(self, trace: Sequence[TraceEntry], start_index: int = 0) -> CallerInfo:
        return locate_caller(trace, self.filter_set, start_index, separator=self.separator)

    @staticmethod
    def from_trace(
        trace: Sequence[TraceEntry],
        filter_set: Iterable[str] = (),
        start_index: int = 0,
        *,
        separator: str | None = None,
    ) -> CallerInfo:
        """Same as locate_caller(); kept for callers that prefer the class entry point."""
        return locate_caller(trace, filter_set, start_index, separator=separator)


def _as_stack_frame(entry: TraceEntry) -> StackFrame:
    if isinstance(entry, StackFrame):
        return entry
    if isinstance(entry, Mapping):
        return StackFrame.from_mapping(entry)
    raise TypeError(f"Backtrace entries must be StackFrame or Mapping, not {type(entry).__name__}")


def _as_filter_set(filter_set: Iterable[str]) -> frozenset[str]:
    # A bare string would otherwise be iterated character by character
    if isinstance(filter_set, str):
        raise TypeError(f"filter_set must be a collection of names, not a str: {filter_set!r}")
    return frozenset(filter_set)


def _checked_separator(separator: str) -> str:
    if not separator:
        raise ValueError("Namespace separator must be a non-empty string")
    return separator


# End of file: src/mstair/callers/filters/filter_backtrace.py
