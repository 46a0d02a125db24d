"""Language specifications for the two supported script dialects.

Each document language id served by the editor maps onto a *data language*:
the id whose symbol buckets answer completion and hover requests. Templates
and dialect variants share the data of their base language.

Terms:
- LanguageSpec: Per data-language configuration (extensions, headers, compiler)
- Data language: Language id whose tier buckets serve a document language
- Header: File whose declarations are shared workspace-wide (dynamic tier)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class LanguageId(str, Enum):
    """Data languages with symbol extraction support.

    Use string enum so values can be used directly as bucket keys.
    """
    FALLOUT_SSL = "fallout-ssl"
    WEIDU_TP2 = "weidu-tp2"


# Fallback data language for documents nobody claims
DEFAULT_DATA_LANGUAGE = "c++"

# for language KEY, hovers and completions are searched in VALUE buckets
_DATA_LANGUAGE_MAP: dict[str, str] = {
    "weidu-tp2": "weidu-tp2",
    "weidu-tp2-tpl": "weidu-tp2",
    "weidu-d": "weidu-d",
    "weidu-d-tpl": "weidu-d",
    "weidu-baf": "weidu-baf",
    "weidu-baf-tpl": "weidu-baf",
    "weidu-ssl": "weidu-baf",
    "weidu-slb": "weidu-baf",
    "fallout-ssl": "fallout-ssl",
    "fallout-ssl-hover": "fallout-ssl",
}

# WeiDU --parse-check argument by file extension
_WEIDU_PARSE_KINDS: dict[str, str] = {
    ".tp2": "TP2",
    ".tph": "TP2",
    ".tpa": "TP2",
    ".tpp": "TP2",
    ".d": "D",
    ".baf": "BAF",
}


@dataclass(frozen=True)
class LanguageSpec:
    """Configuration for one data language.

    Attributes:
        id: Data language identifier
        display_name: Human-readable name
        source_extensions: Extensions (with dot) of compilable sources
        header_extension: Extension (without dot) of shared header files
        comment_language: Markdown fence tag used for file path captions
    """
    id: LanguageId
    display_name: str
    source_extensions: tuple[str, ...]
    header_extension: str
    comment_language: str = "bgforge-mls-comment"

    def is_header(self, file_path: str | Path) -> bool:
        """Check if a file is a header of this language."""
        return Path(file_path).suffix.lower() == f".{self.header_extension}"

    def is_source(self, file_path: str | Path) -> bool:
        """Check if a file is a compilable source of this language."""
        return Path(file_path).suffix.lower() in self.source_extensions


LANGUAGE_SPECS: dict[LanguageId, LanguageSpec] = {
    LanguageId.FALLOUT_SSL: LanguageSpec(
        id=LanguageId.FALLOUT_SSL,
        display_name="Fallout SSL",
        source_extensions=(".ssl",),
        header_extension="h",
    ),
    LanguageId.WEIDU_TP2: LanguageSpec(
        id=LanguageId.WEIDU_TP2,
        display_name="WeiDU TP2",
        source_extensions=(".tp2", ".tph", ".tpa", ".tpp"),
        header_extension="tph",
    ),
}


def get_data_language(lang_id: str) -> str:
    """Return the data language serving a document language id."""
    return _DATA_LANGUAGE_MAP.get(lang_id, DEFAULT_DATA_LANGUAGE)


def get_language_spec(lang_id: str) -> LanguageSpec | None:
    """Get the spec for a document language, or None if it has no extractor."""
    try:
        return LANGUAGE_SPECS[LanguageId(get_data_language(lang_id))]
    except ValueError:
        return None


def is_weidu_language(lang_id: str) -> bool:
    """Check if a document language is compiled by WeiDU."""
    return get_data_language(lang_id) in ("weidu-tp2", "weidu-d", "weidu-baf")


def get_weidu_parse_kind(file_path: str | Path) -> str | None:
    """Return the WeiDU --parse-check kind for a file, if it has one."""
    return _WEIDU_PARSE_KINDS.get(Path(file_path).suffix.lower())


def get_supported_languages() -> list[LanguageId]:
    """Get all data languages with symbol extraction."""
    return list(LANGUAGE_SPECS.keys())


_LANGUAGE_BY_EXTENSION: dict[str, str] = {
    ".ssl": "fallout-ssl",
    ".h": "fallout-ssl",
    ".tp2": "weidu-tp2",
    ".tph": "weidu-tp2",
    ".tpa": "weidu-tp2",
    ".tpp": "weidu-tp2",
    ".d": "weidu-d",
    ".baf": "weidu-baf",
}


def guess_language(file_path: str | Path) -> str | None:
    """Guess the document language id of a file from its extension."""
    return _LANGUAGE_BY_EXTENSION.get(Path(file_path).suffix.lower())
