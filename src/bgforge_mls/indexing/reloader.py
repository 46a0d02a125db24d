"""Incremental bucket reload.

A changed file only touches the entries it contributed: everything attributed
to other files is carried over untouched and in order, and the file's fresh
declarations are appended at the end.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..core.types import Symbol
from .extractor import Extractor, extract_fallout
from .tiers import Bucket, dedupe_by_source

logger = logging.getLogger(__name__)


def reload_bucket(
    path: str,
    new_text: str,
    previous: Iterable[Symbol] | None,
    extractor: Extractor = extract_fallout,
) -> Bucket:
    """Compute a bucket's new content after `path` changed to `new_text`.

    Args:
        path: Relative path of the changed file
        new_text: Current text of the file
        previous: Bucket content before the change (None for a new bucket)
        extractor: Language extractor for the file

    Returns:
        New bucket content; entries from other files keep their order.
    """
    kept = [symbol for symbol in previous or () if symbol.source_path != path]
    fresh = extractor(new_text, path).symbols
    logger.debug(f"Reloaded {path}: {len(fresh)} symbols, {len(kept)} kept from other files")
    return dedupe_by_source([*kept, *(symbol.with_source(path) for symbol in fresh)])
