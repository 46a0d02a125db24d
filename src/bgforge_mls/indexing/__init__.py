"""Symbol extraction and the tiered symbol index.

Terms:
- Extractor: Scans text for macro/constant/procedure declarations
- SymbolIndex: self / static / dynamic tiers with fixed lookup precedence
- reload_bucket: Replace one file's slice of a bucket without a rescan

Laws:
- Lookup precedence is self > static > dynamic
- Reloading file A never changes entries sourced from file B
"""

from bgforge_mls.indexing.doc_comment import parse_doc_comment
from bgforge_mls.indexing.extractor import (
    ExtractResult,
    extract,
    extract_fallout,
    extract_weidu,
    get_extractor,
)
from bgforge_mls.indexing.formatter import (
    format_detail,
    format_markdown,
    to_completion_item,
    to_hover,
    typed_signature,
)
from bgforge_mls.indexing.loader import (
    find_files,
    is_subpath,
    load_external_headers,
    load_headers,
    load_workspace_headers,
)
from bgforge_mls.indexing.reloader import reload_bucket
from bgforge_mls.indexing.scanner import ScanRule, Scanner
from bgforge_mls.indexing.tiers import SymbolIndex

__all__ = [
    "ExtractResult",
    "ScanRule",
    "Scanner",
    "SymbolIndex",
    "extract",
    "extract_fallout",
    "extract_weidu",
    "find_files",
    "format_detail",
    "format_markdown",
    "get_extractor",
    "is_subpath",
    "load_external_headers",
    "load_headers",
    "load_workspace_headers",
    "parse_doc_comment",
    "reload_bucket",
    "to_completion_item",
    "to_hover",
    "typed_signature",
]
