"""Child-process execution with line-by-line output streaming.

Both pipes are drained by asyncio readers that run alongside the wait for
process exit, so a chatty child never blocks on a full pipe and each line
reaches the callback as soon as it is read. Lines keep their order within a
stream; stdout and stderr may interleave in any order. The public entry point
is synchronous and blocks until the child exits. There is no timeout.
"""

from __future__ import annotations

import asyncio
import locale
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from dotnet_template.core.exceptions import ToolchainLaunchError, ToolchainNotFoundError

STDOUT = "stdout"
STDERR = "stderr"

# Reader buffer size; longer lines are read in chunks
_READ_LIMIT = 1024 * 1024

LineCallback = Callable[[str, str], None]


def format_command(args: Sequence[str]) -> str:
    return " ".join(args)


@dataclass
class ProcessResult:
    """Outcome of a child process run."""

    args: list[str]
    exit_code: int = -1
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)
    launched: bool = True

    @property
    def succeeded(self) -> bool:
        return self.launched and self.exit_code == 0

    @property
    def command_line(self) -> str:
        return format_command(self.args)

    @classmethod
    def not_launched(cls, args: Sequence[str]) -> ProcessResult:
        return cls(args=list(args), launched=False)


def default_encoding() -> str:
    """The platform's preferred text encoding (the console code page on Windows)."""
    return locale.getpreferredencoding(False)


async def _read_line(stream: asyncio.StreamReader) -> bytes:
    """Read one line of any length; empty at end of stream.

    Lines longer than the reader's limit are read in chunks and joined. The
    last line may lack its newline.
    """
    parts: list[bytes] = []
    while True:
        try:
            parts.append(await stream.readuntil(b"\n"))
            break
        except asyncio.IncompleteReadError as e:
            parts.append(e.partial)
            break
        except asyncio.LimitOverrunError as e:
            parts.append(await stream.read(e.consumed))
    return b"".join(parts)


async def _pump(
    stream: asyncio.StreamReader,
    name: str,
    encoding: str,
    lines: list[str],
    on_line: LineCallback | None,
) -> None:
    while True:
        raw = await _read_line(stream)
        if not raw:
            break

        line = raw.decode(encoding, errors="replace").rstrip("\r\n")
        if not line:
            continue
        lines.append(line)
        if on_line is not None:
            on_line(name, line)


async def _run(
    args: list[str],
    cwd: Path | None,
    encoding: str,
    on_line: LineCallback | None,
) -> ProcessResult:
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            limit=_READ_LIMIT,
        )
    except FileNotFoundError as e:
        raise ToolchainNotFoundError(args[0]) from e
    except OSError as e:
        raise ToolchainLaunchError(format_command(args), str(e)) from e

    assert process.stdout is not None and process.stderr is not None  # guaranteed by PIPE
    result = ProcessResult(args=list(args))

    try:
        await asyncio.gather(
            _pump(process.stdout, STDOUT, encoding, result.stdout, on_line),
            _pump(process.stderr, STDERR, encoding, result.stderr, on_line),
            process.wait(),
        )
    finally:
        if process.returncode is None:
            process.kill()
            await process.wait()

    result.exit_code = process.returncode
    return result


def run_streaming(
    args: Sequence[str],
    cwd: str | Path | None = None,
    encoding: str | None = None,
    on_line: LineCallback | None = None,
) -> ProcessResult:
    """Run *args* to completion, streaming output lines to *on_line*.

    Args:
        args: Program and arguments; no shell is involved.
        cwd: Working directory for the child; must exist when given.
        encoding: Codec for decoding both pipes. Defaults to
            :func:`default_encoding`. Undecodable bytes are replaced.
        on_line: Called as ``on_line(stream_name, line)`` for every non-empty
            line, where *stream_name* is ``"stdout"`` or ``"stderr"``.

    Returns:
        A :class:`ProcessResult` with the exit code and captured lines.

    Raises:
        ToolchainNotFoundError: If the program does not exist.
        ToolchainLaunchError: If the process cannot be started.
        RuntimeError: If called from a running event loop.
    """
    if not args:
        raise ValueError("args must not be empty")

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        raise RuntimeError("run_streaming() cannot be called from a running event loop")

    argv = [str(arg) for arg in args]
    working_dir = Path(cwd) if cwd is not None else None
    if working_dir is not None and not working_dir.is_dir():
        raise ToolchainLaunchError(format_command(argv), f"working directory does not exist: {working_dir}")

    return asyncio.run(_run(argv, working_dir, encoding or default_encoding(), on_line))
