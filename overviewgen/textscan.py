"""Small quote-aware scanning helpers shared by the source-code extractors."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

_PAIRS = {"(": ")", "[": "]", "{": "}"}
_QUOTES = ("'", '"', "`")

_STRING_LITERAL = re.compile(r"""'((?:[^'\\]|\\.)*)'|"((?:[^"\\]|\\.)*)\"""")
_CHAINED_CALL = re.compile(r"\s*->\s*(\w+)\s*\(")


def balanced_body(text: str, open_index: int) -> Optional[str]:
    """Return the text enclosed by the bracket at ``open_index`` and its partner.

    Quoted strings are skipped; None means the bracket is never closed.
    """
    opener = text[open_index]
    closer = _PAIRS[opener]
    depth = 0
    quote: Optional[str] = None
    index = open_index
    while index < len(text):
        char = text[index]
        if quote:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return text[open_index + 1 : index]
        index += 1
    return None


def split_top_level(body: str, separator: str = ",") -> List[str]:
    """Split ``body`` on ``separator`` outside brackets and quoted strings."""
    parts: List[str] = []
    depth = 0
    quote: Optional[str] = None
    current: List[str] = []
    escaped = False
    for char in body:
        if quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in _QUOTES:
            quote = char
        elif char in _PAIRS:
            depth += 1
        elif char in _PAIRS.values():
            depth = max(depth - 1, 0)
        elif char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    parts.append("".join(current).strip())
    return [part for part in parts if part]


def mask_nested(text: str) -> str:
    """Blank out quoted strings and bracketed groups, preserving offsets."""
    result: List[str] = []
    depth = 0
    quote: Optional[str] = None
    for char in text:
        if quote:
            result.append(" ")
            if char == quote:
                quote = None
            continue
        if char in _QUOTES:
            quote = char
            result.append(" ")
        elif char in _PAIRS:
            depth += 1
            result.append(" ")
        elif char in _PAIRS.values():
            depth = max(depth - 1, 0)
            result.append(" ")
        else:
            result.append(" " if depth else char)
    return "".join(result)


def string_literals(text: str) -> List[str]:
    """Every single- or double-quoted literal in ``text``, in order."""
    values: List[str] = []
    for match in _STRING_LITERAL.finditer(text):
        single, double = match.groups()
        values.append(single if single is not None else double)
    return values


def unquote(text: str) -> Optional[str]:
    """Return the literal's value when ``text`` is exactly one quoted string."""
    match = _STRING_LITERAL.fullmatch(text.strip())
    if not match:
        return None
    single, double = match.groups()
    return single if single is not None else double


def call_chain(text: str, start: int = 0) -> Tuple[List[Tuple[str, str]], int]:
    """Parse ``->name(args)->name(args)...`` from ``start``.

    Returns the ``(name, raw_args)`` pairs and the offset just past the chain.
    """
    calls: List[Tuple[str, str]] = []
    position = start
    while True:
        match = _CHAINED_CALL.match(text, position)
        if not match:
            break
        args = balanced_body(text, match.end() - 1)
        if args is None:
            break
        calls.append((match.group(1), args))
        position = match.end() + len(args) + 1
    return calls, position


def strip_comments(text: str, line_markers: Tuple[str, ...] = ("//",), block: bool = True) -> str:
    """Remove line comments (and ``/* */`` blocks) that sit outside string literals."""
    result: List[str] = []
    quote: Optional[str] = None
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if quote:
            result.append(char)
            if char == "\\" and index + 1 < length:
                result.append(text[index + 1])
                index += 2
                continue
            if char == quote:
                quote = None
            index += 1
            continue
        if char in ("'", '"'):
            quote = char
        elif block and text.startswith("/*", index):
            end = text.find("*/", index + 2)
            index = length if end == -1 else end + 2
            continue
        elif any(text.startswith(marker, index) for marker in line_markers):
            end = text.find("\n", index)
            index = length if end == -1 else end
            continue
        result.append(char)
        index += 1
    return "".join(result)


def squash(text: str) -> str:
    return " ".join(text.split())


__all__ = [
    "balanced_body",
    "call_chain",
    "mask_nested",
    "split_top_level",
    "squash",
    "strip_comments",
    "string_literals",
    "unquote",
]
