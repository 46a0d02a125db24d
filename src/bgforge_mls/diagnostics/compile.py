"""External compiler invocation.

The compiler is a black box: it runs in the source file's directory and its
stdout is handed to the diagnostic parser whatever the exit status.

Compiles are not cancelled when a newer save arrives. Instead every request
is stamped by a CompileSequencer, and a finished compile whose stamp is no
longer the latest for its document is discarded.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path

from ..core.config import FalloutSettings, WeiduSettings
from ..core.exceptions import CompileError
from ..core.language_specs import get_weidu_parse_kind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileCommand:
    """A compiler command line and its working directory."""

    args: tuple[str, ...]
    cwd: Path

    def __str__(self) -> str:
        return " ".join(shlex.quote(arg) for arg in self.args)


@dataclass(frozen=True)
class CompileOutput:
    """Captured result of one compiler run.

    A run killed on timeout keeps whatever output it produced before the kill.
    """

    stdout: str
    stderr: str
    returncode: int
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


def build_fallout_command(file_path: Path | str, settings: FalloutSettings) -> CompileCommand:
    """Command compiling an .ssl file to <output_directory>/<stem>.int."""
    file_path = Path(file_path)
    destination = Path(settings.output_directory) / f"{file_path.stem}.int"
    args = [
        *shlex.split(settings.compile_path),
        *shlex.split(settings.compile_options),
        file_path.name,
        "-o",
        str(destination),
    ]
    return CompileCommand(args=tuple(args), cwd=file_path.parent)


def build_weidu_command(file_path: Path | str, settings: WeiduSettings) -> CompileCommand | None:
    """Command parse-checking a WeiDU file, or None for unsupported extensions."""
    file_path = Path(file_path)
    parse_kind = get_weidu_parse_kind(file_path)
    if parse_kind is None:
        return None

    args = [*shlex.split(settings.path), "--no-exit-pause", "--noautoupdate", "--debug-assign"]
    if settings.game_path:
        args.extend(["--game", settings.game_path])
    args.extend(["--parse-check", parse_kind, file_path.name])
    return CompileCommand(args=tuple(args), cwd=file_path.parent)


async def _drain(stream: asyncio.StreamReader, sink: bytearray) -> None:
    while chunk := await stream.read(4096):
        sink.extend(chunk)


async def run_compiler(command: CompileCommand, timeout_seconds: float | None = None) -> CompileOutput:
    """Run a compiler command and capture its output.

    Output is collected as it arrives, so a compiler killed on timeout still
    yields the stdout it wrote before the kill.

    Raises:
        CompileError: If the process cannot be started
    """
    logger.info(f"Running: {command}")
    try:
        process = await asyncio.create_subprocess_exec(
            *command.args,
            cwd=str(command.cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise CompileError(
            f"Compiler not available: {command.args[0]}",
            {"cwd": str(command.cwd), "error": str(e)},
        ) from e

    stdout = bytearray()
    stderr = bytearray()
    timed_out = False
    try:
        await asyncio.wait_for(
            asyncio.gather(_drain(process.stdout, stdout), _drain(process.stderr, stderr), process.wait()),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError:
        timed_out = True
        logger.warning(f"Compiler timed out after {timeout_seconds}s: {command}")
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        # Pick up what was still buffered in the pipes when the process died
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(
                asyncio.gather(_drain(process.stdout, stdout), _drain(process.stderr, stderr)),
                timeout=1.0,
            )

    output = CompileOutput(
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        returncode=process.returncode if process.returncode is not None else -1,
        timed_out=timed_out,
    )
    logger.debug(f"stdout: {output.stdout}")
    if output.stderr:
        logger.debug(f"stderr: {output.stderr}")
    return output


@dataclass
class CompileSequencer:
    """Hands out per-document, monotonically increasing compile stamps."""

    _latest: dict[str, int] = field(default_factory=dict)

    def next(self, uri: str) -> int:
        stamp = self._latest.get(uri, 0) + 1
        self._latest[uri] = stamp
        return stamp

    def is_latest(self, uri: str, stamp: int) -> bool:
        return self._latest.get(uri) == stamp
