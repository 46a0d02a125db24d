"""Core types and configuration for bgforge_mls."""

from .types import (
    DiagnosticItem,
    DocParam,
    DocReturn,
    ParseResult,
    Severity,
    StructuredDoc,
    Symbol,
    SymbolKind,
)
from .config import FalloutSettings, MlsConfig, WeiduSettings, load_config, load_workspace_config
from .exceptions import (
    MlsError,
    CompileError,
    ConfigurationError,
    HeaderLoadError,
)
from .language_specs import (
    LanguageId,
    LanguageSpec,
    LANGUAGE_SPECS,
    get_data_language,
    get_language_spec,
    get_supported_languages,
    get_weidu_parse_kind,
    guess_language,
    is_weidu_language,
)

__all__ = [
    # Types
    "DiagnosticItem",
    "DocParam",
    "DocReturn",
    "ParseResult",
    "Severity",
    "StructuredDoc",
    "Symbol",
    "SymbolKind",
    # Config
    "FalloutSettings",
    "MlsConfig",
    "WeiduSettings",
    "load_config",
    "load_workspace_config",
    # Exceptions
    "MlsError",
    "CompileError",
    "ConfigurationError",
    "HeaderLoadError",
    # Language specs
    "LanguageId",
    "LanguageSpec",
    "LANGUAGE_SPECS",
    "get_data_language",
    "get_language_spec",
    "get_supported_languages",
    "get_weidu_parse_kind",
    "guess_language",
    "is_weidu_language",
]
