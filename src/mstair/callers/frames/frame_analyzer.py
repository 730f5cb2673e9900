# File: src/mstair/callers/frames/frame_analyzer.py
"""
Module: mstair.callers.frames.frame_analyzer

Convert interpreter frames into the two-entry backtrace convention used by
`mstair.callers.filters.filter_backtrace`.

`inspect.stack()` reports the function, file and line of a frame in the same
entry, where the line is the one currently executing *inside* that function.
The backtrace filter instead expects entry N to describe the running function
and entry N-1 to hold the call site. Here, each converted entry takes its
file/line from the next-outer frame, which is where its function was called.

Nothing here captures a stack; callers pass in what they captured.

Only methods get a class name ("<module>.<Class>"). Module-level functions
and staticmethods get `klass=None`, and the filter accepts those as the caller
without consulting the filter set, whatever module they live in. Guards meant
to be skipped must therefore be methods (instance or classmethod) of a class
whose qualified name matches the filter set.

Example:
    >>> import inspect
    >>> from mstair.callers.filters.filter_backtrace import locate_caller
    >>> trace = trace_from_stack(inspect.stack())
    >>> info = locate_caller(trace, {"Guard"})
"""

from __future__ import annotations

import inspect
from collections.abc import Sequence
from types import FrameType
from typing import Any

from mstair.callers.filters.filter_backtrace import StackFrame


__all__ = [
    "INSTANCE_CALL",
    "STATIC_CALL",
    "frame_to_stack_frame",
    "trace_from_stack",
]

INSTANCE_CALL = "->"
STATIC_CALL = "::"

FrameLike = FrameType | inspect.FrameInfo


def _raw_frame(frame: FrameLike) -> FrameType:
    return frame.frame if isinstance(frame, inspect.FrameInfo) else frame


def _get_class_and_type(locals_: dict[str, Any]) -> tuple[str | None, str | None]:
    """Return ("<module>.<Class>", call type) for methods, (None, None) for free functions."""
    if (zelf := locals_.get("self")) is not None and not isinstance(zelf, type):
        klass = type(zelf)
        return f"{klass.__module__}.{klass.__qualname__}", INSTANCE_CALL
    cls_obj = locals_.get("cls")
    if isinstance(cls_obj, type):
        return f"{cls_obj.__module__}.{cls_obj.__qualname__}", STATIC_CALL
    return None, None


def frame_to_stack_frame(frame: FrameLike, call_site: FrameLike | None) -> StackFrame:
    """
    Describe `frame` as a backtrace entry.

    :param frame: The frame whose function is running.
    :param call_site: The next-outer frame (where `frame`'s function was called),
        or None for the outermost frame.
    :return StackFrame: class/function/type from `frame`, file/line from `call_site`.
    """
    raw = _raw_frame(frame)
    klass, call_type = _get_class_and_type(getattr(raw, "f_locals", {}))
    code = getattr(raw, "f_code", None)

    file: str | None = None
    line: int | None = None
    if call_site is not None:
        outer = _raw_frame(call_site)
        file = getattr(getattr(outer, "f_code", None), "co_filename", None)
        line = getattr(outer, "f_lineno", None)

    return StackFrame(
        klass=klass,
        function=getattr(code, "co_name", None),
        type=call_type,
        file=file,
        line=line,
    )


def trace_from_stack(frames: Sequence[FrameLike]) -> list[StackFrame]:
    """
    Convert a captured stack, innermost first (as returned by `inspect.stack()`).

    :param frames: FrameInfo records or raw frame objects.
    :return list[StackFrame]: One entry per frame, in the same order.
    """
    trace: list[StackFrame] = []
    for i, frame in enumerate(frames):
        call_site = frames[i + 1] if i + 1 < len(frames) else None
        trace.append(frame_to_stack_frame(frame, call_site))
    return trace


# End of file: src/mstair/callers/frames/frame_analyzer.py
