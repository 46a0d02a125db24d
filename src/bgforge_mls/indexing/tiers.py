"""Three-tier symbol index.

Tiers:
- self: relative file path -> symbols declared in that file
- static: data language -> symbols from external header directories
- dynamic: data language -> symbols from workspace headers

Laws:
- Lookup precedence is self > static > dynamic; the first tier with a match wins
- Writes replace a whole bucket; within a bucket (name, source_path) is unique
- Unknown buckets read as empty, never as an error
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..core.types import Symbol

logger = logging.getLogger(__name__)

Bucket = tuple[Symbol, ...]

_EMPTY: Bucket = ()


def dedupe_by_source(symbols: Iterable[Symbol]) -> Bucket:
    """Keep one symbol per (name, source_path); the last declaration wins.

    The surviving entry keeps the position of the first occurrence.
    """
    unique: dict[tuple[str, str], Symbol] = {}
    for symbol in symbols:
        unique[(symbol.name, symbol.source_path)] = symbol
    return tuple(unique.values())


def _find(bucket: Bucket, name: str) -> Symbol | None:
    # later entries shadow earlier ones: a reloaded file is appended last
    for symbol in reversed(bucket):
        if symbol.name == name:
            return symbol
    return None


@dataclass
class SymbolIndex:
    """Process-wide symbol state, owned by one LanguageService.

    Buckets are immutable tuples, so a reader holding a snapshot never sees
    a partially rewritten bucket.
    """

    _self: dict[str, Bucket] = field(default_factory=dict)
    _dynamic: dict[str, Bucket] = field(default_factory=dict)
    _static: dict[str, Bucket] = field(default_factory=dict)

    def set_self(self, path: str, symbols: Iterable[Symbol]) -> None:
        self._self[path] = dedupe_by_source(symbols)

    def set_dynamic(self, lang_id: str, symbols: Iterable[Symbol]) -> None:
        self._dynamic[lang_id] = dedupe_by_source(symbols)

    def set_static(self, lang_id: str, symbols: Iterable[Symbol]) -> None:
        self._static[lang_id] = dedupe_by_source(symbols)

    def get_self(self, path: str) -> Bucket:
        return self._self.get(path, _EMPTY)

    def get_dynamic(self, lang_id: str) -> Bucket:
        return self._dynamic.get(lang_id, _EMPTY)

    def get_static(self, lang_id: str) -> Bucket:
        return self._static.get(lang_id, _EMPTY)

    def drop_self(self, path: str) -> None:
        """Forget the self bucket of a closed or deleted file."""
        self._self.pop(path, None)

    def has_data(self, lang_id: str, path: str) -> bool:
        """Check if any tier could answer a query for this document."""
        return bool(self.get_self(path) or self.get_static(lang_id) or self.get_dynamic(lang_id))

    def query(self, lang_id: str, path: str, name: str) -> Symbol | None:
        """Look a name up across tiers in precedence order."""
        found = self.locate(lang_id, path, name)
        return found[1] if found is not None else None

    def locate(self, lang_id: str, path: str, name: str) -> tuple[str, Symbol] | None:
        """Like query, but also name the tier that answered ("self", "static" or "dynamic")."""
        for tier, bucket in (
            ("self", self.get_self(path)),
            ("static", self.get_static(lang_id)),
            ("dynamic", self.get_dynamic(lang_id)),
        ):
            symbol = _find(bucket, name)
            if symbol is not None:
                return tier, symbol
        return None

    def list_completions(self, lang_id: str, path: str) -> list[Symbol]:
        """Concatenate self, static and dynamic buckets.

        Shadowed names are not removed; the host decides how to show them.
        """
        return [*self.get_self(path), *self.get_static(lang_id), *self.get_dynamic(lang_id)]

    def stats(self) -> dict[str, int]:
        return {
            "self_files": len(self._self),
            "self_symbols": sum(len(b) for b in self._self.values()),
            "dynamic_symbols": sum(len(b) for b in self._dynamic.values()),
            "static_symbols": sum(len(b) for b in self._static.values()),
        }
