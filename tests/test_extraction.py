"""Tests for the tool-first extraction strategy."""

from __future__ import annotations

from overviewgen.extraction import FromPatternMatch, FromTool, extract_with_fallback
from overviewgen.process import SubprocessFailure


def test_tool_result_is_tagged_from_tool() -> None:
    result = extract_with_fallback(lambda: ["a"], lambda: ["b"], command=("tool",))

    assert isinstance(result, FromTool)
    assert result.value == ["a"]
    assert result.command == ("tool",)


def test_subprocess_failure_selects_fallback() -> None:
    def _tool() -> list:
        raise SubprocessFailure(["php", "artisan"], "exit status 1")

    result = extract_with_fallback(_tool, lambda: ["parsed"])

    assert isinstance(result, FromPatternMatch)
    assert result.value == ["parsed"]


def test_unusable_tool_result_selects_fallback() -> None:
    calls = []

    def _fallback() -> list:
        calls.append("fallback")
        return []

    result = extract_with_fallback(lambda: None, _fallback)

    assert isinstance(result, FromPatternMatch)
    assert result.value == []
    assert calls == ["fallback"]


def test_fallback_not_called_when_tool_succeeds() -> None:
    def _fallback() -> list:
        raise AssertionError("fallback should not run")

    result = extract_with_fallback(lambda: [], _fallback)

    assert isinstance(result, FromTool)
    assert result.value == []
