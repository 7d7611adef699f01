"""Command-line entry point: `dotnet-template <command> ...`.

Arguments after a literal ``--`` are passed through to dotnet unchanged, e.g.
``dotnet-template new console ./App -f net8.0 -- -n App``.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from dotnet_template import __version__
from dotnet_template.config.logging_config import configure_logging
from dotnet_template.core.enums import CSharpLanguageVersion, ProjectTemplate, language_version_string
from dotnet_template.core.utils.file_utils import resolve_project_path
from dotnet_template.schemas.scaffold import ScaffoldRequest
from dotnet_template.services import CsprojModifier, DotNetCli, ProjectScaffolder
from dotnet_template.services.csproj_modifier import LANG_VERSION_PROPERTY


def _split_passthrough(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    argv = list(argv)
    if "--" in argv:
        index = argv.index("--")
        return argv[:index], argv[index + 1:]
    return argv, []


def _exit_code(succeeded: bool) -> int:
    return 0 if succeeded else 1


def _cli(args: argparse.Namespace) -> DotNetCli:
    return DotNetCli(executable=args.dotnet)


def _project(args: argparse.Namespace) -> Path:
    return resolve_project_path(args.project)


# ----------------------------------------------------------------------
# Command handlers
# ----------------------------------------------------------------------


def cmd_check(args: argparse.Namespace) -> int:
    available = _cli(args).is_available()
    if not available:
        logger.error("The dotnet CLI is not available.")
    return _exit_code(available)


def cmd_new(args: argparse.Namespace) -> int:
    return _exit_code(
        _cli(args).create_project(args.template, args.output, *args.extra, framework=args.framework)
    )


def cmd_sln(args: argparse.Namespace) -> int:
    return _exit_code(_cli(args).create_solution(args.solution))


def cmd_sln_add(args: argparse.Namespace) -> int:
    return _exit_code(_cli(args).add_project_to_solution(args.solution, _project(args)))


def cmd_build(args: argparse.Namespace) -> int:
    return _exit_code(_cli(args).build_project(_project(args), *args.extra))


def cmd_run(args: argparse.Namespace) -> int:
    result = _cli(args).run_project_result(_project(args), *args.extra)
    if not result.launched:
        return 1
    return result.exit_code


def cmd_set_property(args: argparse.Namespace) -> int:
    return _exit_code(CsprojModifier().ensure_property(_project(args), args.name, args.value))


def cmd_lang_version(args: argparse.Namespace) -> int:
    return _exit_code(
        CsprojModifier().ensure_property(
            _project(args), LANG_VERSION_PROPERTY, language_version_string(args.version)
        )
    )


def cmd_add_reference(args: argparse.Namespace) -> int:
    return _exit_code(
        CsprojModifier().add_references(_project(args), *args.dlls, copy_local=args.copy_local)
    )


def cmd_add_source(args: argparse.Namespace) -> int:
    return _exit_code(
        CsprojModifier().add_source_files(_project(args), *args.files, overwrite_existing=args.overwrite)
    )


def cmd_add_package(args: argparse.Namespace) -> int:
    return _exit_code(CsprojModifier().add_package_reference(_project(args), args.name, args.version))


def cmd_package_metadata(args: argparse.Namespace) -> int:
    return _exit_code(
        CsprojModifier().set_package_metadata(
            _project(args),
            args.name,
            exclude_assets=args.exclude_assets,
            private_assets=args.private_assets,
        )
    )


def cmd_scaffold(args: argparse.Namespace) -> int:
    config_path = Path(args.config)
    try:
        request = ScaffoldRequest.model_validate_json(config_path.read_text(encoding="utf-8"))
    except OSError as e:
        logger.error(f"Could not read scaffold config '{config_path}': {e}")
        return 1
    except ValidationError as e:
        logger.error(f"Invalid scaffold config '{config_path}':\n{e}")
        return 1

    scaffolder = ProjectScaffolder(cli=_cli(args))
    return _exit_code(scaffolder.scaffold(request).succeeded)


# ----------------------------------------------------------------------
# Parser
# ----------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dotnet-template",
        description="Scaffold, customise, build and run .NET projects.",
        epilog="Arguments after '--' are passed through to dotnet.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Minimum log level (DEBUG, INFO, ...)")
    parser.add_argument("--dotnet", default=None, help="dotnet executable to use")
    commands = parser.add_subparsers(dest="command", required=True)

    check = commands.add_parser("check", help="Check that the dotnet CLI is installed")
    check.set_defaults(handler=cmd_check)

    new = commands.add_parser("new", help="Create a project with dotnet new")
    new.add_argument("template", choices=[t.value for t in ProjectTemplate])
    new.add_argument("output", help="Output directory")
    new.add_argument("-f", "--framework", default=None, help="Target framework, e.g. net8.0")
    new.set_defaults(handler=cmd_new)

    sln = commands.add_parser("sln", help="Create a solution file")
    sln.add_argument("solution", help="Path of the .sln file to create")
    sln.set_defaults(handler=cmd_sln)

    sln_add = commands.add_parser("sln-add", help="Add a project to a solution")
    sln_add.add_argument("solution")
    sln_add.add_argument("project")
    sln_add.set_defaults(handler=cmd_sln_add)

    build = commands.add_parser("build", help="Build a project")
    build.add_argument("project")
    build.set_defaults(handler=cmd_build)

    run = commands.add_parser("run", help="Run a project; exits with the program's exit code")
    run.add_argument("project")
    run.set_defaults(handler=cmd_run)

    set_property = commands.add_parser("set-property", help="Set a property in the first PropertyGroup")
    set_property.add_argument("project")
    set_property.add_argument("name")
    set_property.add_argument("value")
    set_property.set_defaults(handler=cmd_set_property)

    lang_version = commands.add_parser("lang-version", help="Set the C# language version")
    lang_version.add_argument("project")
    lang_version.add_argument("version", choices=[v.value for v in CSharpLanguageVersion])
    lang_version.set_defaults(handler=cmd_lang_version)

    add_reference = commands.add_parser("add-reference", help="Reference local DLLs")
    add_reference.add_argument("project")
    add_reference.add_argument("dlls", nargs="+")
    add_reference.add_argument(
        "--no-copy-local", dest="copy_local", action="store_false", help="Set Private=false"
    )
    add_reference.set_defaults(handler=cmd_add_reference)

    add_source = commands.add_parser("add-source", help="Copy source files into the project and include them")
    add_source.add_argument("project")
    add_source.add_argument("files", nargs="+")
    add_source.add_argument("--overwrite", action="store_true", help="Replace files already in the project")
    add_source.set_defaults(handler=cmd_add_source)

    add_package = commands.add_parser("add-package", help="Add a NuGet PackageReference")
    add_package.add_argument("project")
    add_package.add_argument("name")
    add_package.add_argument("--version", dest="version", default=None)
    add_package.set_defaults(handler=cmd_add_package)

    package_metadata = commands.add_parser("package-metadata", help="Set asset metadata on a package")
    package_metadata.add_argument("project")
    package_metadata.add_argument("name")
    package_metadata.add_argument("--exclude-assets", default=None)
    package_metadata.add_argument("--private-assets", default=None)
    package_metadata.set_defaults(handler=cmd_package_metadata)

    scaffold = commands.add_parser("scaffold", help="Run a full scaffold workflow from a JSON config")
    scaffold.add_argument("config", help="Path to a JSON scaffold request")
    scaffold.set_defaults(handler=cmd_scaffold)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    own_args, extra = _split_passthrough(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(own_args)
    args.extra = extra

    configure_logging(args.log_level)
    return args.handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
