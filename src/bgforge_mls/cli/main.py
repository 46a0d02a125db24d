"""CLI entry point for bgforge_mls.

Provides commands for:
- init: Write a default .bgforge.yml into a workspace
- symbols: List declarations extracted from a script or header
- hover: Show hover markdown for a symbol as seen from a file
- complete: List completion items available in a file
- diagnostics: Parse compiler output read from stdin
- compile: Compile a file and print its diagnostics
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from .. import __version__


def _resolve_language(file: Path, lang: str | None) -> str:
    from ..core.language_specs import guess_language

    lang_id = lang or guess_language(file)
    if lang_id is None:
        raise click.UsageError(f"Cannot guess the language of {file.name}; pass --lang")
    return lang_id


def _workspace_config(workspace: Path):
    """Load the workspace config, failing the command when it is malformed."""
    from ..core.config import load_workspace_config
    from ..core.exceptions import ConfigurationError

    try:
        return load_workspace_config(workspace)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


def _open_workspace(workspace: Path, file: Path, lang_id: str):
    """Build an initialized service with `file` loaded as an open document."""
    from ..lsp.service import LanguageService

    service = LanguageService(workspace, config=_workspace_config(workspace))
    service.initialize()

    rel_path = service.relative_path(str(file.resolve()))
    service.reload_file(rel_path, lang_id, file.read_text(encoding="utf-8", errors="replace"))
    return service, rel_path


workspace_option = click.option(
    "--workspace", "-w",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=Path("."),
    help="Workspace root (default: current directory)",
)
lang_option = click.option(
    "--lang", "-l",
    default=None,
    help="Document language id (default: guessed from the file extension)",
)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """bgforge-mls - language service core for Fallout SSL and WeiDU TP2.

    Examples:

      # Create a workspace configuration
      bgforge-mls init --workspace /path/to/mod

      # Show hover for a macro used in a script
      bgforge-mls hover scripts/test.ssl GVAR_PLAYER_REPUTATION

      # Turn compiler output into diagnostics
      compile -q test.ssl | bgforge-mls diagnostics --document test.ssl
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command()
@workspace_option
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing configuration")
def init(workspace: Path, force: bool) -> None:
    """Write a default configuration file into the workspace."""
    from ..core.config import CONFIG_FILENAME, MlsConfig

    config_path = workspace.resolve() / CONFIG_FILENAME
    if config_path.exists() and not force:
        raise click.ClickException(f"{config_path} already exists (use --force to overwrite)")

    MlsConfig().save(config_path)
    click.echo(f"Configuration saved to: {config_path}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@lang_option
@click.option("--json", "as_json", is_flag=True, help="Print symbols as JSON")
def symbols(file: Path, lang: str | None, as_json: bool) -> None:
    """List declarations found in FILE."""
    from ..indexing.extractor import get_extractor
    from ..indexing.formatter import format_detail

    lang_id = _resolve_language(file, lang)
    extractor = get_extractor(lang_id)
    if extractor is None:
        raise click.ClickException(f"No symbol extraction for language {lang_id}")

    text = file.read_text(encoding="utf-8", errors="replace")
    found = extractor(text, file.name).symbols

    if as_json:
        payload = [
            {
                "name": symbol.name,
                "kind": symbol.kind.value,
                "line": symbol.line + 1,
                "detail": format_detail(symbol),
            }
            for symbol in found
        ]
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    for symbol in found:
        click.echo(f"{symbol.line + 1}:{symbol.kind.value}\t{symbol.name}\t{format_detail(symbol)}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("word")
@workspace_option
@lang_option
def hover(file: Path, word: str, workspace: Path, lang: str | None) -> None:
    """Show hover markdown for WORD as seen from FILE."""
    lang_id = _resolve_language(file, lang)
    service, rel_path = _open_workspace(workspace, file, lang_id)

    info = service.get_hover(lang_id, rel_path, word)
    if info is None:
        click.echo(f"No symbol named {word}", err=True)
        sys.exit(1)
    click.echo(info.contents)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@workspace_option
@lang_option
@click.option("--prefix", "-p", default="", help="Only show labels starting with this prefix")
def complete(file: Path, workspace: Path, lang: str | None, prefix: str) -> None:
    """List completion items available in FILE."""
    lang_id = _resolve_language(file, lang)
    service, rel_path = _open_workspace(workspace, file, lang_id)

    for item in service.get_completions(lang_id, rel_path):
        if item.label.startswith(prefix):
            click.echo(f"{item.label}\t{item.kind.name}\t{item.detail or ''}")


@main.command()
@click.option(
    "--input", "-i", "input_file",
    type=click.File("r"),
    default="-",
    help="Compiler output (default: stdin)",
)
@click.option(
    "--document", "-d",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Compiled document, used to compute warning ranges",
)
@click.option("--weidu", is_flag=True, help="Parse WeiDU output instead of the Fallout compiler's")
@click.option("--json", "as_json", is_flag=True, help="Print protocol diagnostics as JSON")
def diagnostics(input_file, document: Path | None, weidu: bool, as_json: bool) -> None:
    """Parse compiler output into diagnostics.

    Exits with status 1 when any error was found.
    """
    from ..diagnostics.parser import parse_compile_output, parse_weidu_output, to_lsp_diagnostics

    output = input_file.read()
    if weidu:
        result = parse_weidu_output(output)
    else:
        document_text = document.read_text(encoding="utf-8", errors="replace") if document else None
        result = parse_compile_output(output, document_text)

    if as_json:
        click.echo(json.dumps([d.to_dict() for d in to_lsp_diagnostics(result)], indent=2))
    else:
        for item in result.all_items():
            click.echo(
                f"{item.file}:{item.line}:{item.column_start}-{item.column_end}: "
                f"{item.severity.value}: {item.message}"
            )

    if result.errors:
        sys.exit(1)


@main.command("compile")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@workspace_option
@lang_option
@click.option("--timeout", type=float, default=None, help="Kill the compiler after this many seconds")
def compile_command(file: Path, workspace: Path, lang: str | None, timeout: float | None) -> None:
    """Compile FILE with the configured compiler and print its diagnostics."""
    from ..lsp.service import LanguageService, path_to_uri

    lang_id = _resolve_language(file, lang)
    service = LanguageService(workspace, config=_workspace_config(workspace), compile_timeout=timeout)

    text = file.read_text(encoding="utf-8", errors="replace")
    result = asyncio.run(
        service.compile(path_to_uri(file), lang_id, document_text=text, interactive=True)
    )
    if result is None:
        sys.exit(2)

    for diagnostic in result:
        start = diagnostic.range.start
        click.echo(
            f"{file.name}:{start.line + 1}:{start.character}: "
            f"{diagnostic.severity.name.lower()}: {diagnostic.message}"
        )
    if any(d.severity.name == "Error" for d in result):
        sys.exit(1)


if __name__ == "__main__":
    main()
