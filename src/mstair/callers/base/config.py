# File: src/mstair/callers/base/config.py
"""
Runtime configuration for caller resolution.

Settings come from environment variables (optionally loaded from a `.env`
file) and may be overridden per thread. Overrides are kept in thread-local
storage so a test or a request handler can change them without affecting
other threads.

Exports:
- load_dotenv_once(): load a `.env` file into the environment, once per process.
- namespace_separator(): check or override the namespace separator.
- separator_context(): context manager for a temporary separator override.

Environment:
- MSTAIR_CALLERS_SEPARATOR: namespace separator for class names (default ".").
"""

from __future__ import annotations

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import dotenv


DEFAULT_SEPARATOR = "."
K_SEPARATOR_ENV = "MSTAIR_CALLERS_SEPARATOR"

_tls = threading.local()
_dotenv_lock = threading.Lock()
_dotenv_loaded = False


@dataclass
class TLSAttrs:
    """Thread-local configuration overrides."""

    separator_override: str | None = None


def _get_tls() -> TLSAttrs:
    """Return the current thread's TLSAttrs instance, initializing if needed."""
    try:
        return _tls.state
    except AttributeError:
        _tls.state = TLSAttrs()
        return _tls.state


def load_dotenv_once(*, force: bool = False) -> bool:
    """
    Load variables from the nearest `.env` file without overriding the environment.

    :param force: Load again even if a previous call already did.
    :return: True if at least one variable was set by this call.
    """
    global _dotenv_loaded
    with _dotenv_lock:
        if _dotenv_loaded and not force:
            return False
        _dotenv_loaded = True
        return dotenv.load_dotenv(dotenv.find_dotenv(usecwd=True), override=False)


def namespace_separator(
    *,
    unset_override: bool = False,
    override: str | None = None,
) -> str:
    """
    Return the separator used to split class names into namespace segments.

    Detection order:
      1. Explicit override (thread-local).
      2. MSTAIR_CALLERS_SEPARATOR environment variable (after `.env` loading).
      3. DEFAULT_SEPARATOR.

    :param unset_override: If True, clears any prior override for this thread.
    :param override: If given, sets the override for this thread.
    :return: The effective separator.
    :raises ValueError: If the override or the environment value is empty.
    """
    tls = _get_tls()
    if unset_override:
        tls.separator_override = None
    if override is not None:
        if not override:
            raise ValueError("Namespace separator must be a non-empty string")
        tls.separator_override = override
        return override
    if tls.separator_override is not None:
        return tls.separator_override

    load_dotenv_once()
    value = os.environ.get(K_SEPARATOR_ENV)
    if value is None:
        return DEFAULT_SEPARATOR
    if not value:
        raise ValueError(f"{K_SEPARATOR_ENV} is set but empty")
    return value


@contextmanager
def separator_context(separator: str) -> Iterator[str]:
    """
    Use `separator` as the namespace separator on this thread for the duration of the block.

    Restores the previous override on exit. Nested contexts are supported.
    """
    tls = _get_tls()
    previous = tls.separator_override
    namespace_separator(override=separator)
    try:
        yield separator
    finally:
        tls.separator_override = previous


# End of file: src/mstair/callers/base/config.py
