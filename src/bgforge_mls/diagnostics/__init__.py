"""Compiler invocation and output parsing."""

from bgforge_mls.diagnostics.compile import (
    CompileCommand,
    CompileOutput,
    CompileSequencer,
    build_fallout_command,
    build_weidu_command,
    run_compiler,
)
from bgforge_mls.diagnostics.parser import (
    LineOffsets,
    parse_compile_output,
    parse_weidu_output,
    to_lsp_diagnostic,
    to_lsp_diagnostics,
)

__all__ = [
    "CompileCommand",
    "CompileOutput",
    "CompileSequencer",
    "LineOffsets",
    "build_fallout_command",
    "build_weidu_command",
    "parse_compile_output",
    "parse_weidu_output",
    "run_compiler",
    "to_lsp_diagnostic",
    "to_lsp_diagnostics",
]
