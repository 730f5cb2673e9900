# File: src/mstair/callers/filters/test_filter_backtrace.py
"""
Tests for locate_caller() and its helpers.

Covers:
- Frame pairing (class/function/type from frame N, file/line from frame N-1)
- Namespace filtering by segment and by full name
- Clamping for short traces and the all-filtered fallback
- Shape of CallerInfo and argument validation
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

import pytest

from mstair.callers.base import config as cfg
from mstair.callers.filters.filter_backtrace import (
    CallerInfo,
    EmptyBacktraceError,
    FilterBacktrace,
    StackFrame,
    build_caller_info,
    is_acceptable,
    locate_caller,
)
from mstair.callers.xlogging.logger_constants import TRACE


PHP = "\\"
LOGGER_NAME = "mstair.callers.filters.filter_backtrace"
SIX_KEYS = {"class", "function", "type", "file", "line", "stackIndex"}


@pytest.fixture(autouse=True)
def default_separator(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Pin the configured separator to "." and skip .env loading."""
    monkeypatch.setattr(cfg, "_dotenv_loaded", True)
    monkeypatch.delenv(cfg.K_SEPARATOR_ENV, raising=False)
    cfg.namespace_separator(unset_override=True)
    yield
    cfg.namespace_separator(unset_override=True)


def guarded_trace() -> list[dict[str, Any]]:
    return [
        {"class": "App\\Guard", "function": "check"},
        {"class": "App\\Guard", "function": "__invoke", "type": "->", "file": "a.php", "line": 10},
        {"class": "App\\Caller", "function": "run", "type": "->", "file": "b.php", "line": 20},
    ]


# ---------- Scenarios ----------


class TestScenarios:
    def test_filtered_guard_is_skipped(self) -> None:
        info = locate_caller(guarded_trace(), {"App\\Guard"}, 0, separator=PHP)
        assert info == CallerInfo(
            klass="App\\Caller",
            function="run",
            type="->",
            file="a.php",
            line=10,
            stack_index=2,
        )

    def test_start_index_beyond_short_trace_clamps(self) -> None:
        trace = [
            {"class": "App\\Guard", "function": "check", "file": "a.php", "line": 1},
            {"class": "App\\Caller", "function": "run", "file": "b.php", "line": 2},
        ]
        info = locate_caller(trace, (), 1, separator=PHP)
        assert (info.klass, info.function, info.file, info.line) == ("App\\Caller", "run", "a.php", 1)
        assert info.stack_index == 1

    def test_single_frame_clamps_to_itself(self) -> None:
        trace = [{"class": "App\\Guard", "function": "check", "file": "a.php", "line": 1}]
        info = locate_caller(trace, separator=PHP)
        assert (info.klass, info.file, info.line, info.stack_index) == ("App\\Guard", "a.php", 1, 0)

    def test_everything_filtered_falls_back_to_index_one(self) -> None:
        trace = [
            {"class": "App\\Guard", "function": "a", "file": "0.php", "line": 0},
            {"class": "App\\Guard", "function": "b", "file": "1.php", "line": 1},
            {"class": "App\\Checks\\Strict", "function": "c", "file": "2.php", "line": 2},
            {"class": "App\\Guard", "function": "d", "file": "3.php", "line": 3},
        ]
        info = locate_caller(trace, {"App"}, 1, separator=PHP)
        assert info == build_caller_info(
            StackFrame.from_mapping(trace[1]), StackFrame.from_mapping(trace[0]), 1
        )
        assert (info.function, info.file, info.line) == ("b", "0.php", 0)

    def test_free_function_is_accepted_immediately(self) -> None:
        trace = [
            {"class": "App\\Guard", "function": "check"},
            {"function": "helper", "file": "a.php", "line": 10},
            {"class": "App\\Caller", "function": "run", "file": "b.php", "line": 20},
        ]
        info = locate_caller(trace, {"helper", "App"}, separator=PHP)
        assert info.klass is None
        assert info.type is None
        assert (info.function, info.stack_index) == ("helper", 1)


# ---------- Walking and pairing ----------


class TestWalk:
    def test_pairing_follows_the_skipped_frame(self) -> None:
        trace = [
            StackFrame(klass="lib.guard.Guard", function="check", file="x.py", line=1),
            StackFrame(klass="lib.guard.Guard", function="wrap", file="g.py", line=11),
            StackFrame(klass="lib.guard.Inner", function="wrap2", file="g.py", line=22),
            StackFrame(klass="app.views.Page", function="render", file="p.py", line=33),
        ]
        info = locate_caller(trace, {"guard"})
        assert (info.klass, info.function) == ("app.views.Page", "render")
        assert (info.file, info.line, info.stack_index) == ("g.py", 22, 3)

    def test_empty_filter_set_takes_first_candidate(self) -> None:
        info = locate_caller(guarded_trace(), separator=PHP)
        assert (info.klass, info.function, info.file, info.stack_index) == (
            "App\\Guard",
            "__invoke",
            None,
            1,
        )

    def test_start_index_skips_frames(self) -> None:
        trace = [
            StackFrame(klass="a.A", function="f0"),
            StackFrame(klass="a.B", function="f1", file="1.py", line=1),
            StackFrame(klass="a.C", function="f2", file="2.py", line=2),
            StackFrame(klass="a.D", function="f3", file="3.py", line=3),
        ]
        info = locate_caller(trace, start_index=1)
        assert (info.klass, info.file, info.line, info.stack_index) == ("a.C", "1.py", 1, 2)

    @pytest.mark.parametrize("free_at", [1, 2, 3])
    def test_free_function_result_is_at_or_after_its_position(self, free_at: int) -> None:
        trace = [StackFrame(klass=f"m.C{i}", function=f"f{i}") for i in range(5)]
        trace[free_at] = StackFrame(function="free")
        info = locate_caller(trace, {f"C{i}" for i in range(5)})
        assert info.klass is None
        assert info.stack_index == free_at

    def test_configured_separator_is_used(self) -> None:
        with cfg.separator_context(PHP):
            info = locate_caller(guarded_trace(), {"Guard"})
        assert info.klass == "App\\Caller"

    def test_explicit_separator_wins_over_configuration(self) -> None:
        with cfg.separator_context("/"):
            info = locate_caller(guarded_trace(), {"Guard"}, separator=PHP)
        assert info.stack_index == 2

    def test_same_input_same_output(self) -> None:
        trace = guarded_trace()
        first = locate_caller(trace, {"Guard"}, separator=PHP)
        second = locate_caller(trace, {"Guard"}, separator=PHP)
        assert first == second
        assert trace == guarded_trace()

    def test_entries_after_the_caller_are_not_read(self) -> None:
        trace = [StackFrame(), StackFrame(function="free"), object()]
        info = locate_caller(trace)  # type: ignore[arg-type]
        assert (info.function, info.stack_index) == ("free", 1)


# ---------- Membership ----------


class TestIsAcceptable:
    @pytest.mark.parametrize(
        ("name", "filters", "expected"),
        [
            ("app.guard.Guard", set(), True),
            ("app.guard.Guard", {"guard"}, False),
            ("app.guard.Guard", {"app.guard.Guard"}, False),
            ("app.guard.Guard", {"app.guard"}, True),
            ("app.guard.Guard", {"gua"}, True),
            ("Guard", {"Guard"}, False),
        ],
    )
    def test_segments_and_full_name(self, name: str, filters: set[str], expected: bool) -> None:
        assert is_acceptable(name, filters) is expected

    def test_php_namespaces(self) -> None:
        assert is_acceptable("App\\Guard", ["App\\Guard"], separator=PHP) is False
        assert is_acceptable("App\\Guard", ["Guard"], separator=PHP) is False
        assert is_acceptable("App\\Guard", ["App.Guard"], separator=PHP) is True


# ---------- Record shape ----------


class TestCallerInfo:
    @pytest.mark.parametrize(
        "trace",
        [
            [{}, {}],
            [{"class": "a.B"}, {"class": "a.C"}],
            [{"function": "f"}],
            [{"file": "x.py", "line": 3}, {"file": "y.py"}, {"function": "g"}],
        ],
    )
    def test_always_six_keys(self, trace: list[dict[str, Any]]) -> None:
        record = locate_caller(trace).as_dict()
        assert set(record) == SIX_KEYS
        assert isinstance(record["stackIndex"], int)

    def test_build_takes_fields_from_each_side(self) -> None:
        primary = StackFrame(klass="a.B", function="f", type="::", file="ignored.py", line=99)
        secondary = StackFrame(klass="x.Y", function="g", type="->", file="call.py", line=7)
        assert build_caller_info(primary, secondary, 4).as_dict() == {
            "class": "a.B",
            "function": "f",
            "type": "::",
            "file": "call.py",
            "line": 7,
            "stackIndex": 4,
        }

    def test_from_mapping_ignores_unknown_keys(self) -> None:
        frame = StackFrame.from_mapping({"class": "a.B", "args": [1, 2], "object": object()})
        assert frame == StackFrame(klass="a.B")


# ---------- Errors ----------


class TestErrors:
    def test_empty_trace(self) -> None:
        with pytest.raises(EmptyBacktraceError):
            locate_caller([])

    def test_empty_trace_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            locate_caller(())

    def test_negative_start_index(self) -> None:
        with pytest.raises(ValueError, match="start_index"):
            locate_caller(guarded_trace(), start_index=-1)

    def test_unsupported_entry(self) -> None:
        with pytest.raises(TypeError, match="StackFrame or Mapping"):
            locate_caller([StackFrame(), ("class", "a.B")])  # type: ignore[list-item]

    def test_empty_separator(self) -> None:
        with pytest.raises(ValueError, match="separator"):
            is_acceptable("a.B", {"a"}, separator="")

    def test_bare_string_filter_set(self) -> None:
        trace = [
            StackFrame(klass="app.guard.Guard", function="check"),
            StackFrame(klass="app.guard.Guard", function="wrap", file="g.py", line=1),
            StackFrame(klass="app.views.Caller", function="run", file="v.py", line=2),
        ]
        assert locate_caller(trace, {"guard"}).klass == "app.views.Caller"
        with pytest.raises(TypeError, match="not a str"):
            locate_caller(trace, "guard")
        with pytest.raises(TypeError, match="not a str"):
            is_acceptable("app.guard.Guard", "guard")
        with pytest.raises(TypeError, match="not a str"):
            FilterBacktrace("guard")


# ---------- Callable form ----------


class TestFilterBacktrace:
    def test_call_uses_bound_filters(self) -> None:
        find_caller = FilterBacktrace({"App\\Guard"}, separator=PHP)
        assert find_caller(guarded_trace()).klass == "App\\Caller"
        assert find_caller(guarded_trace(), 5).stack_index == 2

    def test_from_trace_matches_locate_caller(self) -> None:
        trace = [StackFrame(klass="a.guard.G", function="f"), StackFrame(klass="a.b.C", function="g")]
        assert FilterBacktrace.from_trace(trace, {"guard"}) == locate_caller(trace, {"guard"})

    def test_from_trace_accepts_separator(self) -> None:
        info = FilterBacktrace.from_trace(guarded_trace(), {"Guard"}, separator=PHP)
        assert (info.klass, info.stack_index) == ("App\\Caller", 2)

    def test_repr(self) -> None:
        assert repr(FilterBacktrace({"b", "a"})) == "<FilterBacktrace filters=['a', 'b']>"


# ---------- Logging ----------


class TestLogging:
    def test_skipped_frames_are_traced(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(TRACE, logger=LOGGER_NAME)
        locate_caller(guarded_trace(), {"Guard"}, separator=PHP)
        messages = [r.getMessage() for r in caplog.records if r.name == LOGGER_NAME]
        assert messages == ["Skipping filtered frame 1: App\\Guard"]
        assert caplog.records[0].levelno == TRACE

    def test_fallback_is_logged_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
        locate_caller(guarded_trace(), {"App"}, separator=PHP)
        debug = [r for r in caplog.records if r.levelno == logging.DEBUG]
        assert len(debug) == 1
        assert "falling back" in debug[0].getMessage()

    def test_nothing_logged_at_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING, logger=LOGGER_NAME)
        locate_caller(guarded_trace(), {"App"}, 7, separator=PHP)
        locate_caller(guarded_trace(), {"App"}, separator=PHP)
        assert not caplog.records


# End of file: src/mstair/callers/filters/test_filter_backtrace.py
