"""Core type definitions for bgforge_mls.

This module defines the values that flow between the extractors, the symbol
index and the diagnostic parsers. All of them are immutable: a changed file
produces new Symbols, a new compile produces new DiagnosticItems.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


class SymbolKind(str, Enum):
    """Kind of an extracted declaration."""

    CONSTANT = "constant"
    FUNCTION_LIKE_MACRO = "macro"
    PROCEDURE = "procedure"


class Severity(str, Enum):
    """Severity of a compiler diagnostic."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class DocParam:
    """A documented parameter."""

    name: str
    type: str = "any"
    description: str = ""


@dataclass(frozen=True)
class DocReturn:
    """A documented return value."""

    type: str
    description: str = ""


@dataclass(frozen=True)
class StructuredDoc:
    """Parsed `/** ... */` documentation comment."""

    description: str | None = None
    params: tuple[DocParam, ...] = ()
    returns: DocReturn | None = None
    deprecated: bool = False

    def is_empty(self) -> bool:
        """Check if the comment carried no usable information."""
        return not (self.description or self.params or self.returns or self.deprecated)


@dataclass(frozen=True)
class Symbol:
    """A declaration extracted from a script or header.

    Attributes:
        name: Declared identifier
        kind: Constant, function-like macro or procedure
        detail: Signature line shown in completion and hover
        source_path: Path (relative to its root) of the declaring file
        doc: Structured doc comment, if one preceded the declaration
        line: 0-based line of the declaration
        value: First line of a macro body
        multiline: Whether the macro body continues on following lines
    """

    name: str
    kind: SymbolKind
    detail: str
    source_path: str = ""
    doc: StructuredDoc | None = None
    line: int = 0
    value: str = ""
    multiline: bool = False

    @property
    def is_constant(self) -> bool:
        return self.kind is SymbolKind.CONSTANT

    def with_source(self, source_path: str) -> Symbol:
        """Return a copy attributed to another source file."""
        if source_path == self.source_path:
            return self
        return replace(self, source_path=source_path)


@dataclass(frozen=True)
class DiagnosticItem:
    """A compiler error or warning.

    `line` is 1-based as printed by the compiler. Conversion to 0-based
    happens when the item is turned into a protocol diagnostic.
    """

    file: str
    line: int
    column_start: int
    column_end: int
    message: str
    severity: Severity = Severity.ERROR


@dataclass
class ParseResult:
    """Diagnostics collected from one compiler run."""

    errors: list[DiagnosticItem] = field(default_factory=list)
    warnings: list[DiagnosticItem] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.errors and not self.warnings

    def all_items(self) -> list[DiagnosticItem]:
        """Errors first, then warnings."""
        return [*self.errors, *self.warnings]
