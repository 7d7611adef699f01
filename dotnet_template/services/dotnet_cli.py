"""Wrapper around the `dotnet` command-line toolchain.

Each operation runs one `dotnet` command, streams its stdout and stderr to the
logger line by line while it runs, and blocks until it exits. Exit code 0 is
success; anything else, or a failure to start the process, is reported as
``False``.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger as default_logger

from dotnet_template.config.settings import settings
from dotnet_template.core.enums import DotNetFrameworkVersion, ProjectTemplate
from dotnet_template.core.exceptions import ToolchainNotFoundError
from dotnet_template.core.process import (
    STDOUT,
    ProcessResult,
    default_encoding,
    format_command,
    run_streaming,
)

if TYPE_CHECKING:
    from loguru import Logger


def _enum_value(value: Enum | str) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _working_directory(path: str | Path) -> Path | None:
    """Parent directory of *path*, or None (inherit) when it does not exist."""
    parent = Path(path).parent
    return parent if parent.is_dir() else None


class DotNetCli:
    """Runs `dotnet new`, `dotnet sln`, `dotnet build` and `dotnet run`."""

    def __init__(
        self,
        executable: str | Path | Sequence[str] | None = None,
        encoding: str | None = None,
        log: Logger | None = None,
    ):
        """
        Args:
            executable: The dotnet executable, or a full command prefix such
                as ``["python", "fake_dotnet.py"]``. Defaults to
                ``settings.DOTNET_EXECUTABLE``.
            encoding: Codec for the toolchain's output. Defaults to
                ``settings.TOOLCHAIN_ENCODING``, then the platform default,
                since the SDK prints localised text in the console code page.
            log: Logger to stream output to. Defaults to the loguru logger.
        """
        if executable is None:
            executable = settings.DOTNET_EXECUTABLE
        if isinstance(executable, (str, Path)):
            self.command = [str(executable)]
        else:
            self.command = [str(part) for part in executable]

        self.encoding = encoding or settings.TOOLCHAIN_ENCODING or default_encoding()
        self.logger = log or default_logger

    def _execute(
        self,
        label: str,
        args: Sequence[str],
        success_message: str,
        cwd: Path | None = None,
    ) -> ProcessResult:
        argv = [*self.command, *(str(arg) for arg in args)]
        command_line = format_command(argv)
        self.logger.info(f"[{label}] Running: {command_line}")

        def on_line(stream: str, line: str) -> None:
            if stream == STDOUT:
                self.logger.info(f"[{label} STDOUT] {line}")
            else:
                self.logger.warning(f"[{label} STDERR] {line}")

        try:
            result = run_streaming(argv, cwd=cwd, encoding=self.encoding, on_line=on_line)
        except ToolchainNotFoundError as e:
            self.logger.error(f"[{label}] {e.message}. Is the .NET SDK installed?")
            return ProcessResult.not_launched(argv)
        except Exception as e:
            self.logger.exception(f"[{label}] An error occurred while running '{command_line}': {e}")
            return ProcessResult.not_launched(argv)

        if result.exit_code == 0:
            self.logger.success(f"[{label}] {success_message}")
        else:
            self.logger.error(f"[{label}] '{result.command_line}' failed with exit code: {result.exit_code}")
        return result

    def is_available(self) -> bool:
        """True if `dotnet --version` starts and exits with code 0."""
        argv = [*self.command, "--version"]
        try:
            result = run_streaming(argv, encoding=self.encoding)
        except ToolchainNotFoundError:
            self.logger.debug(f"dotnet executable not found: {self.command[0]}")
            return False
        except Exception as e:
            self.logger.warning(f"Could not query the dotnet version: {e}")
            return False

        if result.succeeded:
            version = result.stdout[0] if result.stdout else "unknown"
            self.logger.info(f".NET SDK version: {version}")
        return result.succeeded

    def create_project(
        self,
        template: ProjectTemplate | str,
        output_directory: str | Path,
        *extra_args: str,
        framework: DotNetFrameworkVersion | str | None = None,
    ) -> bool:
        """Create a project with `dotnet new`.

        Args:
            template: Template to use; its short name is passed lower-cased.
            output_directory: Directory the project is created in.
            *extra_args: Passed through, e.g. ``"-n", "MyProject"``.
            framework: Optional target framework for ``-f``.
        """
        args = ["new", _enum_value(template).lower(), "-o", str(output_directory)]
        if framework:
            args += ["-f", _enum_value(framework)]
        args += extra_args
        return self._execute("NEW", args, "Project created successfully!").succeeded

    def create_solution(self, solution_path: str | Path) -> bool:
        """Create a solution file with `dotnet new sln` in the solution's directory."""
        solution = Path(solution_path)
        directory = solution.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"[SLN] Could not create solution directory '{directory}': {e}")
            return False

        args = ["new", "sln", "-n", solution.stem, "-o", str(directory)]
        if solution.suffix.lower() == ".slnx":
            args += ["--format", "slnx"]
        return self._execute("SLN", args, f"Solution created: {solution}", cwd=directory).succeeded

    def add_project_to_solution(self, solution_path: str | Path, project_path: str | Path) -> bool:
        """Add a project to a solution with `dotnet sln add`."""
        args = ["sln", str(solution_path), "add", str(project_path)]
        return self._execute(
            "SLN",
            args,
            f"Added '{project_path}' to solution '{solution_path}'",
            cwd=_working_directory(solution_path),
        ).succeeded

    def build_project(self, project_path: str | Path, *extra_args: str) -> bool:
        """Build a project with `dotnet build`.

        Args:
            project_path: Project file (.csproj/.fsproj/.vbproj) or directory.
            *extra_args: Passed through, e.g. ``"--configuration", "Release"``.
        """
        args = ["build", str(project_path), *extra_args]
        return self._execute(
            "BUILD", args, "Project built successfully!", cwd=_working_directory(project_path)
        ).succeeded

    def run_project_result(self, project_path: str | Path, *extra_args: str) -> ProcessResult:
        """Run a project with `dotnet run` and return the full result.

        ``result.launched`` is False when the toolchain could not be started;
        otherwise ``result.exit_code`` is the exit code of the program.
        """
        args = ["run", "--project", str(project_path), *extra_args]
        return self._execute(
            "RUN", args, "Project executed successfully!", cwd=_working_directory(project_path)
        )

    def run_project(self, project_path: str | Path, *extra_args: str) -> bool:
        """Run a project with `dotnet run`.

        A program that exits with a non-zero code is reported as a failure
        even when that code is intended. Use :meth:`run_project_result` to
        tell the two apart.
        """
        return self.run_project_result(project_path, *extra_args).succeeded
