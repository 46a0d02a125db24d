"""Protocol-shaped payloads handed to the editor host.

These mirror the Language Server Protocol structures the host serializes;
the transport itself lives outside this package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class CompletionItemKind(IntEnum):
    """LSP CompletionItemKind values."""

    Text = 1
    Method = 2
    Function = 3
    Constructor = 4
    Field = 5
    Variable = 6
    Class = 7
    Interface = 8
    Module = 9
    Property = 10
    Unit = 11
    Value = 12
    Enum = 13
    Keyword = 14
    Snippet = 15
    Color = 16
    File = 17
    Reference = 18
    Folder = 19
    EnumMember = 20
    Constant = 21
    Struct = 22
    Event = 23
    Operator = 24
    TypeParameter = 25


class DiagnosticSeverity(IntEnum):
    """LSP DiagnosticSeverity values."""

    Error = 1
    Warning = 2
    Information = 3
    Hint = 4


MARKDOWN = "markdown"


@dataclass(frozen=True)
class Position:
    """0-based line/character position."""

    line: int
    character: int


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position


@dataclass(frozen=True)
class Diagnostic:
    """Diagnostic with a 0-based range."""

    range: Range
    message: str
    severity: DiagnosticSeverity
    source: str = "BGforge MLS"

    def to_dict(self) -> dict[str, Any]:
        return {
            "range": {
                "start": {"line": self.range.start.line, "character": self.range.start.character},
                "end": {"line": self.range.end.line, "character": self.range.end.character},
            },
            "message": self.message,
            "severity": int(self.severity),
            "source": self.source,
        }


@dataclass
class CompletionItem:
    """Completion item offered to the editor."""

    label: str
    kind: CompletionItemKind
    detail: str | None = None
    documentation: str | None = None
    source: str | None = None
    label_description: str | None = None


@dataclass
class HoverInfo:
    """Hover contents in markdown."""

    contents: str
    kind: str = MARKDOWN
    source: str | None = None


@dataclass
class SignatureInfo:
    """Signature of a callable with per-parameter labels."""

    label: str
    parameters: list[str] = field(default_factory=list)
    documentation: str | None = None


@dataclass
class SignatureHelp:
    """Signature help response for a single call site."""

    signatures: list[SignatureInfo]
    active_signature: int = 0
    active_parameter: int = 0


@dataclass(frozen=True)
class Location:
    """Declaration site of a symbol: a document URI and a 0-based line."""

    uri: str
    line: int

    def to_dict(self) -> dict[str, Any]:
        position = {"line": self.line, "character": 0}
        return {"uri": self.uri, "range": {"start": position, "end": position}}
