"""Language service facade.

LanguageService is the query surface an editor protocol runtime drives: it
owns the SymbolIndex, routes file changes to the right tier, answers
completion, hover, definition and signature requests, and runs compilers in
the background.

Laws:
- Only this service (via reloader and loaders) writes the index
- No request raises into the host; failures are logged and, for
  user-initiated actions, reported through the host
- Diagnostics from a superseded compile are dropped

Terms:
- Host: The editor connection (diagnostic publishing and notifications)
- rel_path: Document path relative to the workspace root (self bucket key)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from ..core.config import CONFIG_FILENAME, MlsConfig, load_workspace_config
from ..core.exceptions import CompileError, ConfigurationError
from ..core.language_specs import (
    LanguageId,
    get_data_language,
    get_language_spec,
    get_supported_languages,
    is_weidu_language,
)
from ..core.types import ParseResult
from ..diagnostics.compile import (
    CompileCommand,
    CompileSequencer,
    build_fallout_command,
    build_weidu_command,
    run_compiler,
)
from ..diagnostics.parser import parse_compile_output, parse_weidu_output, to_lsp_diagnostics
from ..indexing.extractor import get_extractor
from ..indexing.formatter import to_completion_item, to_hover
from ..indexing.loader import load_external_headers, load_workspace_headers
from ..indexing.reloader import reload_bucket
from ..indexing.tiers import SymbolIndex
from .position import symbol_at
from .protocol import CompletionItem, Diagnostic, HoverInfo, Location, SignatureHelp
from .signature import signature_request_at, signature_response, to_signature_info

logger = logging.getLogger(__name__)


class Host(Protocol):
    """Editor-side collaborator receiving diagnostics and notifications."""

    def publish_diagnostics(self, uri: str, diagnostics: list[Diagnostic]) -> None: ...

    def show_information(self, message: str) -> None: ...

    def show_error(self, message: str) -> None: ...


class LoggingHost:
    """Host that only logs; used when no editor is attached."""

    def publish_diagnostics(self, uri: str, diagnostics: list[Diagnostic]) -> None:
        logger.info(f"{uri}: {len(diagnostics)} diagnostics")

    def show_information(self, message: str) -> None:
        logger.info(message)

    def show_error(self, message: str) -> None:
        logger.error(message)


def uri_to_path(uri: str) -> Path:
    """Convert a file:// URI (or a plain path) to a filesystem path."""
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return Path(uri)
    return Path(url2pathname(unquote(parsed.path)))


def path_to_uri(path: Path | str) -> str:
    return Path(path).resolve().as_uri()


class LanguageService:
    """Completion, hover, signature help and diagnostics for one workspace."""

    def __init__(
        self,
        workspace_root: Path | str,
        config: MlsConfig | None = None,
        host: Host | None = None,
        index: SymbolIndex | None = None,
        compile_timeout: float | None = None,
    ) -> None:
        self.workspace_root = Path(workspace_root).resolve()
        self.config = config if config is not None else self._initial_config()
        self.host: Host = host if host is not None else LoggingHost()
        self.index = index if index is not None else SymbolIndex()
        self.compile_timeout = compile_timeout
        self.initialized = False
        self._sequencer = CompileSequencer()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load external headers, then workspace headers."""
        logger.info(f"Initializing workspace {self.workspace_root}")
        self.load_static()
        self.load_dynamic()
        self.initialized = True
        logger.info(f"Initialized: {self.index.stats()}")

    def load_static(self) -> None:
        """Load the static tier from the configured external header directory."""
        load_external_headers(
            self.index,
            self.workspace_root,
            self.config.fallout.headers_directory,
            LanguageId.FALLOUT_SSL.value,
        )

    def load_dynamic(self) -> None:
        """Rebuild the dynamic tier from workspace headers."""
        for lang in get_supported_languages():
            load_workspace_headers(self.index, self.workspace_root, lang.value)

    def _initial_config(self) -> MlsConfig:
        try:
            return load_workspace_config(self.workspace_root)
        except ConfigurationError as e:
            logger.error(f"Using default configuration: {e}")
            return MlsConfig()

    def reload_config(self) -> None:
        try:
            self.config = load_workspace_config(self.workspace_root)
        except ConfigurationError as e:
            logger.error(f"Keeping previous configuration: {e}")

    def relative_path(self, uri_or_path: str | Path) -> str:
        """Path of a document relative to the workspace root, POSIX style."""
        path = uri_to_path(str(uri_or_path))
        if not path.is_absolute():
            return path.as_posix()
        return Path(os.path.relpath(path, self.workspace_root)).as_posix()

    # ------------------------------------------------------------------
    # Incremental updates
    # ------------------------------------------------------------------

    def reload_file(self, rel_path: str, lang_id: str, text: str) -> None:
        """Re-extract one file into its tier.

        Headers update the dynamic bucket of their language; other files
        replace their own self bucket.
        """
        spec = get_language_spec(lang_id)
        extractor = get_extractor(lang_id)
        if spec is None or extractor is None:
            return

        data_lang = spec.id.value
        if spec.is_header(rel_path):
            logger.debug(f"Reloading header {rel_path}")
            bucket = reload_bucket(rel_path, text, self.index.get_dynamic(data_lang), extractor)
            self.index.set_dynamic(data_lang, bucket)
        else:
            logger.debug(f"Reloading {rel_path}")
            bucket = reload_bucket(rel_path, text, self.index.get_self(rel_path), extractor)
            self.index.set_self(rel_path, bucket)

    def on_open(self, uri: str, lang_id: str, text: str) -> None:
        self.reload_file(self.relative_path(uri), lang_id, text)

    def on_close(self, uri: str) -> None:
        self.index.drop_self(self.relative_path(uri))

    async def on_save(self, uri: str, lang_id: str, text: str) -> list[Diagnostic] | None:
        """Reload the saved file, compile it if configured, and pick up config edits."""
        rel_path = self.relative_path(uri)
        self.reload_file(rel_path, lang_id, text)

        if rel_path == CONFIG_FILENAME:
            self.reload_config()
            return None

        if self.config.validate_on_save or self.config.validate_on_change:
            return await self.compile(uri, lang_id, document_text=text)
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_completions(self, lang_id: str, rel_path: str) -> list[CompletionItem]:
        data_lang = get_data_language(lang_id)
        return [
            to_completion_item(symbol, data_lang)
            for symbol in self.index.list_completions(data_lang, rel_path)
        ]

    def get_hover(self, lang_id: str, rel_path: str, word: str) -> HoverInfo | None:
        data_lang = get_data_language(lang_id)
        symbol = self.index.query(data_lang, rel_path, word)
        if symbol is None:
            return None
        return to_hover(symbol, data_lang)

    def get_definition(self, lang_id: str, rel_path: str, word: str) -> Location | None:
        """Where `word` is declared, as seen from `rel_path`."""
        found = self.index.locate(get_data_language(lang_id), rel_path, word)
        if found is None:
            return None
        tier, symbol = found
        if tier == "self":
            path = self.workspace_root / rel_path
        elif tier == "static":
            # static symbols are relative to the external header directory
            path = Path(self.config.fallout.headers_directory) / symbol.source_path
        else:
            path = self.workspace_root / symbol.source_path
        return Location(uri=path_to_uri(path), line=symbol.line)

    def hover_at(self, lang_id: str, rel_path: str, text: str, line: int, character: int) -> HoverInfo | None:
        """Hover for the token under a cursor position."""
        if not self.index.has_data(get_data_language(lang_id), rel_path):
            return None
        word = symbol_at(text, line, character)
        if not word:
            return None
        logger.debug(f"Hover word: {word}")
        return self.get_hover(lang_id, rel_path, word)

    def signature_help(
        self, lang_id: str, rel_path: str, text: str, line: int, character: int
    ) -> SignatureHelp | None:
        request = signature_request_at(text, line, character)
        if request is None:
            return None
        symbol = self.index.query(get_data_language(lang_id), rel_path, request.label)
        if symbol is None:
            return None
        info = to_signature_info(symbol)
        if info is None:
            return None
        return signature_response(info, request.parameter)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def parse_diagnostics(
        self,
        uri: str,
        compiler_stdout: str,
        document_text: str | None = None,
        lang_id: str = LanguageId.FALLOUT_SSL.value,
    ) -> list[Diagnostic]:
        """Parse compiler output and publish it for `uri`, replacing older results."""
        result: ParseResult
        if is_weidu_language(lang_id):
            result = parse_weidu_output(compiler_stdout)
        else:
            result = parse_compile_output(compiler_stdout, document_text)
        diagnostics = to_lsp_diagnostics(result)
        self.host.publish_diagnostics(uri, diagnostics)
        return diagnostics

    def _compile_command(self, file_path: Path, lang_id: str, interactive: bool) -> CompileCommand | None:
        if is_weidu_language(lang_id):
            command = build_weidu_command(file_path, self.config.weidu)
            if command is None:
                logger.info(f"{file_path.name} is not a WeiDU file")
            return command

        if get_data_language(lang_id) == LanguageId.FALLOUT_SSL.value:
            if file_path.suffix.lower() != ".ssl":
                logger.info("Not a Fallout SSL file! Please focus a Fallout SSL file to compile.")
                if interactive:
                    self.host.show_information("Please focus a Fallout SSL file to compile!")
                return None
            return build_fallout_command(file_path, self.config.fallout)

        logger.info(f"Compile called on a wrong language: {lang_id}")
        if interactive:
            self.host.show_information(f"Can't compile {file_path.name}.")
        return None

    async def compile(
        self,
        uri: str,
        lang_id: str,
        document_text: str | None = None,
        interactive: bool = False,
    ) -> list[Diagnostic] | None:
        """Compile a document and publish its diagnostics.

        Returns:
            Published diagnostics, or None when nothing was published (no
            compiler for the file, spawn failure, or a newer compile started)
        """
        file_path = uri_to_path(uri)
        command = self._compile_command(file_path, lang_id, interactive)
        if command is None:
            return None

        self.host.publish_diagnostics(uri, [])
        stamp = self._sequencer.next(uri)
        logger.info(f"Compiling {file_path.name}...")

        try:
            output = await run_compiler(command, timeout_seconds=self.compile_timeout)
        except CompileError as e:
            logger.error(f"Compile failed: {e}")
            if interactive:
                self.host.show_error(f"Failed to compile {file_path.name}!")
            return None

        if not self._sequencer.is_latest(uri, stamp):
            logger.debug(f"Discarding stale compile #{stamp} of {file_path.name}")
            return None

        if output.ok:
            if interactive:
                self.host.show_information(f"Successfully compiled {file_path.name}.")
        elif output.timed_out:
            logger.error(f"Compiler timed out on {file_path.name}")
            if interactive:
                self.host.show_error(f"Failed to compile {file_path.name}!")
        else:
            logger.error(f"Compiler exited with status {output.returncode} for {file_path.name}")
            if interactive:
                self.host.show_error(f"Failed to compile {file_path.name}!")

        return self.parse_diagnostics(uri, output.stdout, document_text, lang_id)
