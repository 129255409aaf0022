"""Authoritative-tool-first extraction with a pattern-matching fallback."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, Tuple, TypeVar, Union

from .logging import get_logger
from .process import SubprocessFailure

T = TypeVar("T")

_logger = get_logger("extraction")


@dataclass(frozen=True)
class FromTool(Generic[T]):
    """Value produced by the project's own tooling."""

    value: T
    command: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FromPatternMatch(Generic[T]):
    """Value reconstructed by scanning source text."""

    value: T


ExtractionResult = Union[FromTool[T], FromPatternMatch[T]]


def extract_with_fallback(
    tool: Callable[[], Optional[T]],
    fallback: Callable[[], T],
    *,
    command: Tuple[str, ...] = (),
) -> ExtractionResult[T]:
    """Try ``tool`` once, otherwise return ``fallback()``.

    ``tool`` signals an unusable result by returning None. A
    :class:`SubprocessFailure` is logged and swallowed here; it never reaches
    the caller.
    """
    try:
        value = tool()
    except SubprocessFailure as exc:
        _logger.debug("Tool stage failed, using pattern matching: %s", exc)
        return FromPatternMatch(fallback())
    if value is None:
        _logger.debug("Tool stage %s returned nothing usable", " ".join(command) or "<tool>")
        return FromPatternMatch(fallback())
    return FromTool(value, command=command)


__all__ = ["ExtractionResult", "FromPatternMatch", "FromTool", "extract_with_fallback"]
