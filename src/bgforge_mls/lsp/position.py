"""Token lookup under the cursor.

The token is usually an identifier. A purely numeric token is widened to
the surrounding non-whitespace run, so that `154` inside
`NOption(154,Node003,004` resolves to the whole reference.
"""

from __future__ import annotations

import re

_LINE_SPLIT = re.compile(r"\r?\n")
_WORD_TAIL = re.compile(r"\w+$")
_NON_WORD = re.compile(r"\W")
_NON_SPACE_TAIL = re.compile(r"\S+$")
_SPACE = re.compile(r"\s")
_DIGITS = re.compile(r"^\d+$")


def _token(line: str, character: int, tail: re.Pattern[str], stop: re.Pattern[str]) -> str | None:
    left = tail.search(line[: character + 1])
    if left is None:
        return None
    right = stop.search(line, character)
    if right is None:
        # the token runs to the end of the line
        return line[left.start():]
    return line[left.start(): right.start()]


def get_line(text: str, line: int) -> str | None:
    lines = _LINE_SPLIT.split(text)
    if line < 0 or line >= len(lines):
        return None
    return lines[line]


def symbol_at(text: str, line: int, character: int) -> str | None:
    """Return the token under a 0-based cursor position, or None."""
    line_text = get_line(text, line)
    if line_text is None or character < 0:
        return None

    result = _token(line_text, character, _WORD_TAIL, _NON_WORD)
    if not result:
        return None
    if not _DIGITS.match(result):
        return result

    return _token(line_text, character, _NON_SPACE_TAIL, _SPACE) or result
