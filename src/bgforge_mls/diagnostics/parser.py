"""Compiler output parsing.

Fallout SSL compiler lines look like:

    [Error] <Semantic> <my_script.ssl>:26:25: Unknown identifier qq.
    [Warning] <Optimizer> <my_script.ssl>:30:: Unused variable x

Numbers are line:column; the column may be empty. WeiDU reports:

    [ua.tp2] PARSE ERROR at line 30 column 1-63
    Near Text: BEGIN

Each match is converted on its own: one malformed line is logged and skipped,
the rest of the batch is still returned.
"""

from __future__ import annotations

import logging
import re

from ..core.types import DiagnosticItem, ParseResult, Severity
from ..indexing.scanner import iter_matches
from ..lsp.protocol import Diagnostic, DiagnosticSeverity, Position, Range

logger = logging.getLogger(__name__)

DIAGNOSTIC_SOURCE = "BGforge MLS"

_FALLOUT_TAIL = r"(?:<[^>\n]*>[ \t]+)?<(?P<file>[^>\n]+)>:(?P<line>\d*):(?P<col>\d*):?[ \t]*(?P<message>.*)"

ERROR_PATTERN = re.compile(r"\[Error\][ \t]+" + _FALLOUT_TAIL)
WARNING_PATTERN = re.compile(r"\[Warning\][ \t]+" + _FALLOUT_TAIL)
WEIDU_ERROR_PATTERN = re.compile(
    r"\[(?P<file>[^\]\n]+)\][ \t]+(?P<kind>PARSE ERROR|ERROR) at line (?P<line>\d+)"
    r" column (?P<start>\d+)-(?P<end>\d+)(?:\r?\nNear Text:[ \t]*(?P<near>.*))?"
)


class LineOffsets:
    """Offset table mapping (line, character) to a document offset."""

    def __init__(self, text: str) -> None:
        self._length = len(text)
        self._starts = [0]
        for match in re.finditer(r"\r\n|\r|\n", text):
            self._starts.append(match.end())

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def offset_at(self, line: int, character: int = 0) -> int:
        """Offset of a position; lines past the end clamp to the text length."""
        if line >= len(self._starts):
            return self._length
        if line < 0:
            return 0
        return min(self._starts[line] + character, self._length)


def _error_item(match: re.Match[str]) -> DiagnosticItem:
    column = int(match.group("col") or "1")
    return DiagnosticItem(
        file=match.group("file"),
        line=int(match.group("line")),
        column_start=0,
        column_end=max(column - 1, 0),
        message=match.group("message").rstrip(),
        severity=Severity.ERROR,
    )


def _warning_item(match: re.Match[str], offsets: LineOffsets | None) -> DiagnosticItem:
    line = int(match.group("line"))
    column = int(match.group("col") or "0")
    # the 1-based line used as a 0-based index is the start of the next line
    column_end = max(offsets.offset_at(line, 0) - 1, 0) if offsets is not None else column
    return DiagnosticItem(
        file=match.group("file"),
        line=line,
        column_start=column,
        column_end=column_end,
        message=match.group("message").rstrip(),
        severity=Severity.WARNING,
    )


def _weidu_item(match: re.Match[str]) -> DiagnosticItem:
    message = "Parse error" if match.group("kind") == "PARSE ERROR" else "Error"
    near = match.group("near")
    if near and near.strip():
        message = f"{message}, near text: {near.strip()}"
    return DiagnosticItem(
        file=match.group("file"),
        line=int(match.group("line")),
        column_start=int(match.group("start")) - 1,
        column_end=int(match.group("end")),
        message=message,
        severity=Severity.ERROR,
    )


def parse_compile_output(text: str, document_text: str | None = None) -> ParseResult:
    """Parse Fallout SSL compiler stdout.

    Args:
        text: Compiler stdout
        document_text: Current text of the compiled document, used to extend
            warnings to the end of their line

    Returns:
        ParseResult with 1-based lines as printed by the compiler
    """
    result = ParseResult()
    offsets = LineOffsets(document_text) if document_text is not None else None

    for match in iter_matches(ERROR_PATTERN, text):
        try:
            result.errors.append(_error_item(match))
        except ValueError as e:
            logger.warning(f"Skipping malformed error line {match.group(0)!r}: {e}")

    for match in iter_matches(WARNING_PATTERN, text):
        try:
            result.warnings.append(_warning_item(match, offsets))
        except ValueError as e:
            logger.warning(f"Skipping malformed warning line {match.group(0)!r}: {e}")

    logger.debug(f"Parsed {len(result.errors)} errors, {len(result.warnings)} warnings")
    return result


def parse_weidu_output(text: str) -> ParseResult:
    """Parse WeiDU --parse-check output."""
    result = ParseResult()
    for match in iter_matches(WEIDU_ERROR_PATTERN, text):
        try:
            result.errors.append(_weidu_item(match))
        except ValueError as e:
            logger.warning(f"Skipping malformed WeiDU error {match.group(0)!r}: {e}")
    return result


def to_lsp_diagnostic(item: DiagnosticItem) -> Diagnostic:
    """Convert a parsed item into a 0-based protocol diagnostic."""
    line = item.line - 1
    severity = DiagnosticSeverity.Error if item.severity is Severity.ERROR else DiagnosticSeverity.Warning
    return Diagnostic(
        range=Range(Position(line, item.column_start), Position(line, item.column_end)),
        message=item.message,
        severity=severity,
        source=DIAGNOSTIC_SOURCE,
    )


def to_lsp_diagnostics(result: ParseResult) -> list[Diagnostic]:
    """Convert a whole parse result, errors first."""
    return [to_lsp_diagnostic(item) for item in result.all_items()]
