"""Locate a JSON array inside free-form LLM output.

The reply may be clean JSON, a fenced code block, JSON surrounded by prose,
or JSON sprinkled with comments. Strategies are tried in a fixed order and
the first one that yields a parsed *list* wins.
"""

import json
import re
from typing import Any, Callable, Iterator

_FENCE_RE = re.compile(r"```[\w-]*\s*\n?(.*?)```", re.DOTALL)
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
# `//` only counts as a comment at line start or after whitespace, so URLs survive
_LINE_COMMENT_RE = re.compile(r"(^|\s)//[^\n]*", re.MULTILINE)
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")


def extract_json_array(text: str) -> list[Any] | None:
    """Return the first JSON array found in ``text``, or None."""
    if not text:
        return None

    found = _parse_array(text.strip())
    if found is not None:
        return found

    found = _first_success(text, (_from_fence, _from_first_literal, _from_bracket_span))
    if found is not None:
        return found

    cleaned = strip_comments(text)
    return _first_success(cleaned, (_from_fence, _from_first_literal, _from_bracket_span))


def strip_comments(text: str) -> str:
    """Drop ``/* */`` blocks, ``//`` line comments and trailing commas."""
    text = _BLOCK_COMMENT_RE.sub("", text)
    text = _LINE_COMMENT_RE.sub(r"\1", text)
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def _first_success(text: str, strategies: tuple[Callable[[str], list | None], ...]) -> list | None:
    for strategy in strategies:
        found = strategy(text)
        if found is not None:
            return found
    return None


def _parse_array(candidate: str) -> list | None:
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, list) else None


def _from_fence(text: str) -> list | None:
    for match in _FENCE_RE.finditer(text):
        found = _parse_array(match.group(1).strip())
        if found is not None:
            return found
    return None


def _from_first_literal(text: str) -> list | None:
    """Decode at each top-level ``[`` until one yields a complete array."""
    decoder = json.JSONDecoder()
    for start in _top_level_brackets(text):
        try:
            value, _ = decoder.raw_decode(text, start)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(value, list):
            return value
    return None


def _top_level_brackets(text: str) -> Iterator[int]:
    """Yield offsets of ``[`` not nested in other brackets or braces.

    Quotes only open strings inside brackets; prose quotes are ignored.
    """
    depth = 0
    in_string = escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"' and depth:
            in_string = True
        elif ch in "[{":
            if ch == "[" and depth == 0:
                yield i
            depth += 1
        elif ch in "]}":
            depth = max(depth - 1, 0)


def _from_bracket_span(text: str) -> list | None:
    start, end = text.find("["), text.rfind("]")
    if start == -1 or end <= start:
        return None
    return _parse_array(text[start : end + 1])
