"""Header discovery and bulk loading into the index.

Workspace headers feed the dynamic tier and are rebuilt wholesale on startup
or explicit reload. External headers (a directory outside the workspace)
feed the static tier once at startup and are not tracked for changes.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..core.exceptions import HeaderLoadError
from ..core.language_specs import get_language_spec
from ..core.types import Symbol
from .extractor import get_extractor
from .tiers import SymbolIndex

logger = logging.getLogger(__name__)


def find_files(root_dir: Path | str, extension: str) -> list[str]:
    """Find files by extension under `root_dir`, recursively.

    The extension match is case-insensitive. Returns POSIX paths relative to
    `root_dir`, sorted for deterministic ordering.
    """
    root = Path(root_dir)
    suffix = "." + extension.lower().lstrip(".")
    matched = [
        path.relative_to(root).as_posix()
        for path in root.rglob("*")
        if path.suffix.lower() == suffix and path.is_file()
    ]
    return sorted(matched)


def is_subpath(outer_path: Path | str, inner_path: Path | str) -> bool:
    """Check if the real path of `inner_path` lies inside `outer_path`."""
    outer_real = Path(os.path.realpath(outer_path))
    inner_real = Path(os.path.realpath(inner_path))
    return inner_real == outer_real or outer_real in inner_real.parents


def read_text(path: Path) -> str | None:
    """Read a source file, tolerating legacy encodings."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return path.read_text(encoding="latin-1")
    except OSError as e:
        logger.warning(f"Cannot read {path}: {e}")
        return None


def load_headers(directory: Path | str, lang_id: str) -> list[Symbol]:
    """Extract every header of `lang_id` under `directory`.

    Symbols are attributed to their path relative to `directory`.
    """
    spec = get_language_spec(lang_id)
    extractor = get_extractor(lang_id)
    if spec is None or extractor is None:
        logger.debug(f"No header support for {lang_id}")
        return []

    directory = Path(directory)
    symbols: list[Symbol] = []
    for header_path in find_files(directory, spec.header_extension):
        text = read_text(directory / header_path)
        if text is None:
            continue
        symbols.extend(extractor(text, header_path).symbols)

    logger.info(f"Loaded {len(symbols)} {lang_id} symbols from {directory}")
    return symbols


def load_workspace_headers(index: SymbolIndex, workspace_root: Path | str, lang_id: str) -> int:
    """Rebuild the dynamic bucket of `lang_id` from workspace headers."""
    symbols = load_headers(workspace_root, lang_id)
    index.set_dynamic(lang_id, symbols)
    return len(symbols)


def check_external_headers_dir(workspace_root: Path | str, headers_dir: Path | str) -> Path:
    """Validate an external header directory.

    Raises:
        HeaderLoadError: If the directory is missing or nested in the workspace
    """
    headers_path = Path(headers_dir)
    try:
        if not headers_path.is_dir():
            raise HeaderLoadError(str(headers_dir), "not a directory")
    except OSError as e:
        raise HeaderLoadError(str(headers_dir), f"stat failed: {e}") from e

    if is_subpath(workspace_root, headers_path):
        raise HeaderLoadError(str(headers_dir), f"inside workspace {workspace_root}")
    return headers_path


def load_external_headers(
    index: SymbolIndex,
    workspace_root: Path | str,
    headers_dir: Path | str | None,
    lang_id: str,
) -> int:
    """Load headers from outside the workspace into the static tier.

    Problems with the directory are logged and abort the load; the self and
    dynamic tiers are never affected.

    Returns:
        Number of symbols loaded (0 when skipped)
    """
    if not headers_dir:
        return 0

    logger.info(f"Loading external headers from {headers_dir}")
    try:
        headers_path = check_external_headers_dir(workspace_root, headers_dir)
    except HeaderLoadError as e:
        logger.warning(f"Skipping external headers: {e}")
        return 0

    symbols = load_headers(headers_path, lang_id)
    index.set_static(lang_id, [*index.get_static(lang_id), *symbols])
    return len(symbols)
