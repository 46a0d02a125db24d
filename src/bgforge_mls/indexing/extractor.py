"""Declaration extraction for Fallout SSL and WeiDU TP2.

Both languages are scanned lexically: one ScanRule per declaration kind,
each optionally preceded by a `/** ... */` block that is parsed as the
declaration's documentation. Nothing here understands statements; text that
does not look like a declaration is skipped.

Laws:
- Declarations come out in source order
- No deduplication at this layer (the index deduplicates by source on write)
- A macro is a constant iff it is single-line and its name is upper-case
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from ..core.language_specs import LanguageId, get_data_language
from ..core.types import Symbol, SymbolKind
from .doc_comment import parse_doc_comment
from .formatter import signature_detail
from .scanner import ScanRule, Scanner, line_of

logger = logging.getLogger(__name__)

# One doc block, then exactly one newline, then the declaration
_DOC_PREFIX = r"(?:(?P<doc>/\*\*\s*\n(?:[^*]|\*(?!/))*\*/)\r?\n)?"

DEFINE_PATTERN = re.compile(
    _DOC_PREFIX
    + r"#define[ \t]+(?P<name>\w+)(?:\((?P<params>[^)]+)\))?[ \t]+(?P<value>.+)",
    re.MULTILINE,
)
PROCEDURE_PATTERN = re.compile(
    _DOC_PREFIX
    + r"\bprocedure\s+(?P<name>\w+)(?:\((?P<params>[^)]*)\))?\s+begin\b",
)
WEIDU_DEFINITION_PATTERN = re.compile(
    _DOC_PREFIX
    + r"\bDEFINE_(?P<scope>ACTION|PATCH)_(?P<form>FUNCTION|MACRO)\s+"
    r"[\"~]?(?P<name>\w+)[\"~]?(?P<header>(?:(?!\bBEGIN\b)[\s\S])*?)\bBEGIN\b",
)
CONSTANT_NAME = re.compile(r"[A-Z0-9_]+")


def _collapse(text: str) -> str:
    return " ".join(text.split())


@dataclass
class ExtractResult:
    """Declarations found in one text buffer."""

    macros: list[Symbol] = field(default_factory=list)
    procedures: list[Symbol] = field(default_factory=list)

    @property
    def symbols(self) -> list[Symbol]:
        """All declarations, in source order."""
        return sorted([*self.macros, *self.procedures], key=lambda s: s.line)

    def __len__(self) -> int:
        return len(self.macros) + len(self.procedures)


def _build_define(match: re.Match[str], text: str) -> Symbol:
    name = match.group("name")
    value = match.group("value").rstrip()
    multiline = value.endswith("\\")

    raw_detail = name
    params = match.group("params")
    if params:
        raw_detail = f"{name}({params})"

    constant = not multiline and CONSTANT_NAME.fullmatch(name) is not None

    doc = parse_doc_comment(match.group("doc")) if match.group("doc") else None
    return Symbol(
        name=name,
        kind=SymbolKind.CONSTANT if constant else SymbolKind.FUNCTION_LIKE_MACRO,
        detail=signature_detail(name, raw_detail, doc, value if constant else None),
        doc=doc,
        line=line_of(text, match.start("name")),
        value=value,
        multiline=multiline,
    )


def _build_procedure(match: re.Match[str], text: str) -> Symbol:
    name = match.group("name")
    params = _collapse(match.group("params") or "")
    doc = parse_doc_comment(match.group("doc")) if match.group("doc") else None
    return Symbol(
        name=name,
        kind=SymbolKind.PROCEDURE,
        detail=signature_detail(name, f"procedure {name}({params})", doc),
        doc=doc,
        line=line_of(text, match.start("name")),
    )


def _build_weidu_definition(match: re.Match[str], text: str) -> Symbol:
    name = match.group("name")
    scope = match.group("scope").lower()
    form = match.group("form").lower()
    header = _collapse(match.group("header"))

    raw_detail = f"{scope} {form} {name}"
    if header:
        raw_detail = f"{raw_detail} {header}"

    doc = parse_doc_comment(match.group("doc")) if match.group("doc") else None
    return Symbol(
        name=name,
        kind=SymbolKind.PROCEDURE if form == "function" else SymbolKind.FUNCTION_LIKE_MACRO,
        detail=signature_detail(name, raw_detail, doc),
        doc=doc,
        line=line_of(text, match.start("name")),
    )


FALLOUT_SCANNER: Scanner[Symbol] = Scanner([
    ScanRule("macros", DEFINE_PATTERN, _build_define),
    ScanRule("procedures", PROCEDURE_PATTERN, _build_procedure),
])

WEIDU_SCANNER: Scanner[Symbol] = Scanner([
    ScanRule("macros", WEIDU_DEFINITION_PATTERN, _build_weidu_definition),
])


def _run(scanner: Scanner[Symbol], text: str, source_path: str) -> ExtractResult:
    found = scanner.scan(text)
    macros = [s.with_source(source_path) for s in found.get("macros", [])]
    procedures = [s.with_source(source_path) for s in found.get("procedures", [])]

    # WeiDU keeps functions and macros in one rule; split them by kind
    if "procedures" not in found:
        procedures = [s for s in macros if s.kind is SymbolKind.PROCEDURE]
        macros = [s for s in macros if s.kind is not SymbolKind.PROCEDURE]

    return ExtractResult(macros=macros, procedures=procedures)


def extract_fallout(text: str, source_path: str = "") -> ExtractResult:
    """Extract `#define` macros and procedures from Fallout SSL text."""
    return _run(FALLOUT_SCANNER, text, source_path)


def extract_weidu(text: str, source_path: str = "") -> ExtractResult:
    """Extract function and macro definitions from WeiDU TP2 text."""
    return _run(WEIDU_SCANNER, text, source_path)


Extractor = Callable[[str, str], ExtractResult]

_EXTRACTORS: dict[str, Extractor] = {
    LanguageId.FALLOUT_SSL.value: extract_fallout,
    LanguageId.WEIDU_TP2.value: extract_weidu,
}


def get_extractor(lang_id: str) -> Extractor | None:
    """Return the extractor serving a document language, if any."""
    return _EXTRACTORS.get(get_data_language(lang_id))


def extract(text: str, lang_id: str = LanguageId.FALLOUT_SSL.value, source_path: str = "") -> ExtractResult:
    """Extract declarations from `text` in the given language.

    Languages without an extractor yield an empty result.
    """
    extractor = get_extractor(lang_id)
    if extractor is None:
        logger.debug(f"No extractor for language {lang_id}")
        return ExtractResult()
    return extractor(text, source_path)
