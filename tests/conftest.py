"""Shared pytest fixtures for the dotnet-template test suite.

Provides reusable fixtures for:
- Sample SDK-style, legacy and empty project files
- A loguru sink capturing log records
- A fake `dotnet` executable that records its invocations
"""

from __future__ import annotations

import json
import os
import stat
import sys
import textwrap
from pathlib import Path

import pytest
from loguru import logger


# ---------------------------------------------------------------------------
# Project files
# ---------------------------------------------------------------------------

SDK_PROJECT = """\
<Project Sdk="Microsoft.NET.Sdk">

  <PropertyGroup>
    <OutputType>Exe</OutputType>
    <TargetFramework>net8.0</TargetFramework>
    <ImplicitUsings>enable</ImplicitUsings>
    <Nullable>enable</Nullable>
  </PropertyGroup>

</Project>
"""

LEGACY_PROJECT = """\
<?xml version="1.0" encoding="utf-8"?>
<Project ToolsVersion="15.0" xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <!-- Generated by Visual Studio -->
  <PropertyGroup>
    <OutputType>WinExe</OutputType>
    <AllowUnsafeBlocks>true</AllowUnsafeBlocks>
  </PropertyGroup>
  <ItemGroup>
    <Reference Include="System" />
    <Reference Include="System.Xml" />
  </ItemGroup>
  <ItemGroup>
    <Compile Include="Properties\\AssemblyInfo.cs" />
  </ItemGroup>
</Project>
"""

EMPTY_PROJECT = """\
<Project Sdk="Microsoft.NET.Sdk">
</Project>
"""


def write_project(directory: Path, content: str, name: str = "App.csproj") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(content, encoding="utf-8", newline="")
    return path


@pytest.fixture
def sdk_csproj(tmp_path: Path) -> Path:
    """SDK-style console project as generated by `dotnet new console`."""
    return write_project(tmp_path / "App", SDK_PROJECT)


@pytest.fixture
def legacy_csproj(tmp_path: Path) -> Path:
    """Old-style project using the MSBuild 2003 namespace."""
    return write_project(tmp_path / "Legacy", LEGACY_PROJECT, name="Legacy.csproj")


@pytest.fixture
def empty_csproj(tmp_path: Path) -> Path:
    """Project with no property or item groups."""
    return write_project(tmp_path / "Empty", EMPTY_PROJECT, name="Empty.csproj")


@pytest.fixture
def dll_dir(tmp_path: Path) -> Path:
    """Directory holding two fake DLLs: Acme.Core.dll and Acme.Utils.dll."""
    directory = tmp_path / "libs"
    directory.mkdir()
    for name in ("Acme.Core.dll", "Acme.Utils.dll"):
        (directory / name).write_bytes(b"MZ\x90\x00")
    return directory


def backdate(path: Path) -> int:
    """Move *path*'s mtime into the past and return it in nanoseconds."""
    past = 1_000_000_000
    os.utime(path, (past, past))
    return path.stat().st_mtime_ns


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

@pytest.fixture
def log_records() -> list[dict]:
    """Collect loguru records emitted during the test."""
    records: list[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="TRACE")
    yield records
    logger.remove(handler_id)


def messages(records: list[dict], level: str | None = None) -> list[str]:
    return [r["message"] for r in records if level is None or r["level"].name == level]


# ---------------------------------------------------------------------------
# Fake dotnet CLI
# ---------------------------------------------------------------------------

FAKE_DOTNET = textwrap.dedent(
    '''\
    import json
    import os
    import sys
    from pathlib import Path

    CALLS = Path(__file__).with_name("calls.jsonl")
    SDK_PROJECT = {sdk_project!r}

    args = sys.argv[1:]
    with CALLS.open("a", encoding="utf-8") as f:
        f.write(json.dumps({{"args": args, "cwd": os.getcwd()}}) + "\\n")


    def option(name):
        return args[args.index(name) + 1] if name in args else None


    if args == ["--version"]:
        print("8.0.100")
        sys.exit(0)

    command = args[0] if args else ""

    if command == "new" and args[1] == "sln":
        directory = Path(option("-o") or ".")
        directory.mkdir(parents=True, exist_ok=True)
        (directory / (option("-n") + ".sln")).write_text("", encoding="utf-8")
        print("The template \\"Solution File\\" was created successfully.")
        sys.exit(0)

    if command == "new":
        directory = Path(option("-o"))
        directory.mkdir(parents=True, exist_ok=True)
        name = option("-n") or directory.name
        (directory / (name + ".csproj")).write_text(SDK_PROJECT, encoding="utf-8")
        print("The template \\"Console App\\" was created successfully.")
        sys.exit(0)

    if command == "sln":
        solution, project = Path(args[1]), Path(args[3])
        if solution.exists() and project.exists():
            print("Project `" + args[3] + "` added to the solution.")
            sys.exit(0)
        print("Could not find project or solution.", file=sys.stderr)
        sys.exit(1)

    if command == "build":
        if Path(args[1]).exists():
            print("Build succeeded.")
            sys.exit(0)
        print("MSBUILD : error MSB1009: Project file does not exist.", file=sys.stderr)
        print("Switch: " + args[1], file=sys.stderr)
        sys.exit(1)

    if command == "run":
        print("Hello, World!")
        for arg in args[3:]:
            print("arg: " + arg)
        sys.exit(int(os.environ.get("FAKE_DOTNET_RUN_EXIT", "0")))

    print("Unknown command: " + " ".join(args), file=sys.stderr)
    sys.exit(2)
    '''
)


class FakeDotNet:
    """A Python script standing in for the dotnet executable."""

    def __init__(self, directory: Path):
        directory.mkdir(parents=True, exist_ok=True)
        self.script = directory / "dotnet.py"
        self.script.write_text(
            f"#!{sys.executable}\n" + FAKE_DOTNET.format(sdk_project=SDK_PROJECT),
            encoding="utf-8",
        )
        self.script.chmod(self.script.stat().st_mode | stat.S_IXUSR)
        self.calls_file = directory / "calls.jsonl"

    @property
    def command(self) -> list[str]:
        return [sys.executable, str(self.script)]

    def calls(self) -> list[dict]:
        if not self.calls_file.exists():
            return []
        return [json.loads(line) for line in self.calls_file.read_text(encoding="utf-8").splitlines()]


@pytest.fixture
def fake_dotnet(tmp_path: Path) -> FakeDotNet:
    return FakeDotNet(tmp_path / "fake_dotnet")
