"""Display formatting for extracted symbols.

Everything here is a pure function of its arguments: the same Symbol always
renders to the same text, so rendered markdown is memoized and shared by
completion and hover payloads.
"""

from __future__ import annotations

from functools import lru_cache

from ..core.types import StructuredDoc, Symbol, SymbolKind
from ..lsp.protocol import CompletionItem, CompletionItemKind, HoverInfo

COMMENT_FENCE = "bgforge-mls-comment"


def typed_signature(name: str, doc: StructuredDoc) -> str:
    """Build `<ret> name(<type> <param>, ...)` from a doc comment."""
    return_type = doc.returns.type if doc.returns else "void"
    args = ", ".join(f"{param.type} {param.name}" for param in doc.params)
    return f"{return_type} {name}({args})"


def signature_detail(
    name: str,
    raw_detail: str,
    doc: StructuredDoc | None = None,
    constant_value: str | None = None,
) -> str:
    """Choose the signature line for a declaration.

    Constants show their value, documented symbols a typed signature, and
    everything else the raw declaration snippet.
    """
    if constant_value is not None:
        return constant_value
    if doc is not None:
        return typed_signature(name, doc)
    return raw_detail


def format_detail(symbol: Symbol) -> str:
    """Return the one-line display string of a symbol."""
    return signature_detail(
        symbol.name,
        symbol.detail,
        symbol.doc,
        symbol.value if symbol.is_constant else None,
    )


def format_doc_markdown(doc: StructuredDoc) -> str:
    """Render the documentation section appended below the signature."""
    md = "\n---\n"
    if doc.deprecated:
        md += "\n**Deprecated**\n"
    if doc.description:
        md += f"\n{doc.description}"
    for param in doc.params:
        md += f"\n- `{param.type}` {param.name}"
        if param.description:
            md += f": {param.description}"
    if doc.returns:
        md += f"\n\n Returns `{doc.returns.type}`"
    return md


@lru_cache(maxsize=4096)
def format_markdown(symbol: Symbol, lang_id: str) -> str:
    """Render hover markdown for a symbol."""
    parts = ["```" + lang_id, format_detail(symbol), "```"]
    if symbol.source_path:
        parts.extend(["", "```" + COMMENT_FENCE, symbol.source_path, "```"])
    markdown = "\n".join(parts)

    # single-line macros: show the body too
    if symbol.kind is SymbolKind.FUNCTION_LIKE_MACRO and not symbol.multiline and symbol.value:
        markdown += "\n".join(["\n```" + lang_id, symbol.value, "```"])

    if symbol.doc is not None and not symbol.doc.is_empty():
        markdown += format_doc_markdown(symbol.doc)
    return markdown


def completion_kind(symbol: Symbol) -> CompletionItemKind:
    """Map a symbol kind onto an editor completion icon."""
    if symbol.kind is SymbolKind.CONSTANT:
        return CompletionItemKind.Constant
    if symbol.kind is SymbolKind.PROCEDURE:
        return CompletionItemKind.Function
    # there's no good icon for macros, use something distinct from function
    return CompletionItemKind.Field


def to_completion_item(symbol: Symbol, lang_id: str) -> CompletionItem:
    """Build the completion payload for a symbol."""
    return CompletionItem(
        label=symbol.name,
        kind=completion_kind(symbol),
        detail=format_detail(symbol),
        documentation=format_markdown(symbol, lang_id),
        source=symbol.source_path or None,
        label_description=symbol.source_path or None,
    )


def to_hover(symbol: Symbol, lang_id: str) -> HoverInfo:
    """Build the hover payload for a symbol."""
    return HoverInfo(contents=format_markdown(symbol, lang_id), source=symbol.source_path or None)
