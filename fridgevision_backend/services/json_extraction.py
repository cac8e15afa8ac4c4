"""Locate JSON embedded in free-form model output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

_CLOSERS = {"{": "}", "[": "]"}


@dataclass(frozen=True, slots=True)
class JsonSpan:
    """A balanced JSON object or array found inside a larger text."""

    start: int
    end: int
    text: str


def find_json_span(text: str, opener: Literal["{", "["]) -> JsonSpan | None:
    """Return the first top-level span that starts with ``opener``.

    Scanning starts at the first ``opener`` and tracks nesting of both braces
    and brackets. Characters inside JSON strings, including escaped quotes,
    never affect the depth. ``None`` is returned when no opener exists or the
    span never closes (truncated output).
    """

    if opener not in _CLOSERS:
        raise ValueError(f"unsupported opener {opener!r}")

    start = (text or "").find(opener)
    if start == -1:
        return None

    stack: list[str] = []
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in ("}", "]"):
            if not stack or stack[-1] != char:
                # Mismatched closer; the output is not well-formed JSON.
                return None
            stack.pop()
            if not stack:
                return JsonSpan(start=start, end=index + 1, text=text[start : index + 1])

    return None
