"""Rule-based regex scanner.

A ScanRule pairs one compiled pattern with a builder that turns a match into
a value (or None to skip it). The Scanner walks the text with each rule in
turn; matches never overlap within a rule, and a zero-width match advances
the scan position by one so the walk always terminates.

Terms:
- ScanRule: One declaration kind (pattern + builder)
- Scanner: Ordered set of rules applied to a text buffer
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


def iter_matches(pattern: re.Pattern[str], text: str) -> Iterator[re.Match[str]]:
    """Yield successive non-overlapping matches of `pattern` in `text`."""
    pos = 0
    length = len(text)
    while pos <= length:
        match = pattern.search(text, pos)
        if match is None:
            return
        yield match
        end = match.end()
        # Zero-width match: step over it or we would find it again
        pos = end + 1 if end == match.start() else end


def line_of(text: str, index: int) -> int:
    """Return the 0-based line containing character `index`."""
    return text.count("\n", 0, index)


@dataclass(frozen=True)
class ScanRule(Generic[T]):
    """A single declaration-recognition rule.

    Attributes:
        name: Rule name, used as the result key
        pattern: Compiled regex; multiline flag as needed by the rule
        build: Converts a match into a value, or None to skip it
    """

    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str], str], T | None]

    def scan(self, text: str) -> list[T]:
        """Apply the rule to `text`, returning built values in source order."""
        results: list[T] = []
        for match in iter_matches(self.pattern, text):
            item = self.build(match, text)
            if item is not None:
                results.append(item)
        return results


class Scanner(Generic[T]):
    """Applies a fixed, ordered set of rules to text buffers."""

    def __init__(self, rules: list[ScanRule[T]]) -> None:
        names = [rule.name for rule in rules]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate rule names: {names}")
        self._rules = list(rules)

    @property
    def rule_names(self) -> list[str]:
        return [rule.name for rule in self._rules]

    def scan(self, text: str) -> dict[str, list[T]]:
        """Run every rule over `text`."""
        return {rule.name: rule.scan(text) for rule in self._rules}
