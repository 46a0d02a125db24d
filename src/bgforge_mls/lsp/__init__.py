"""Editor-facing layer: payload types, cursor resolution and the service facade.

The service itself is imported from `bgforge_mls.lsp.service`; this package
only re-exports the leaf modules so the indexing layer can use the payload
types without importing the service.

Terms:
- LanguageService: Query surface driven by the editor protocol runtime
- symbol_at: Token under the cursor, used as the hover lookup key
- SignatureRequest: Enclosing call and active parameter at the cursor
"""

from bgforge_mls.lsp.position import symbol_at
from bgforge_mls.lsp.protocol import (
    CompletionItem,
    CompletionItemKind,
    Diagnostic,
    DiagnosticSeverity,
    HoverInfo,
    Location,
    Position,
    Range,
    SignatureHelp,
    SignatureInfo,
)
from bgforge_mls.lsp.signature import SignatureRequest, signature_request_at

__all__ = [
    "CompletionItem",
    "CompletionItemKind",
    "Diagnostic",
    "DiagnosticSeverity",
    "HoverInfo",
    "Location",
    "Position",
    "Range",
    "SignatureHelp",
    "SignatureInfo",
    "SignatureRequest",
    "signature_request_at",
    "symbol_at",
]
