"""End-to-end project scaffolding.

Chains the toolchain and the project file modifier: create the solution and
the project, add the project to the solution, customise the generated .csproj
(language version, properties, packages, DLL references, source files), then
build and optionally run it. Steps run in order and the workflow stops at the
first step that fails; earlier steps are not rolled back.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger as default_logger

from dotnet_template.core.enums import language_version_string
from dotnet_template.schemas.scaffold import ScaffoldRequest
from dotnet_template.services.csproj_modifier import LANG_VERSION_PROPERTY, CsprojModifier
from dotnet_template.services.dotnet_cli import DotNetCli

if TYPE_CHECKING:
    from loguru import Logger

Step = tuple[str, Callable[[], bool]]


@dataclass
class StepResult:
    name: str
    succeeded: bool


@dataclass
class ScaffoldResult:
    """Outcome of :meth:`ProjectScaffolder.scaffold`."""

    project_path: Path
    solution_path: Path | None = None
    steps: list[StepResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return bool(self.steps) and all(step.succeeded for step in self.steps)

    @property
    def failed_step(self) -> str | None:
        for step in self.steps:
            if not step.succeeded:
                return step.name
        return None


class ProjectScaffolder:
    """Runs a :class:`ScaffoldRequest` against the dotnet CLI."""

    def __init__(
        self,
        cli: DotNetCli | None = None,
        modifier: CsprojModifier | None = None,
        log: Logger | None = None,
    ):
        self.logger = log or default_logger
        self.cli = cli or DotNetCli(log=self.logger)
        self.modifier = modifier or CsprojModifier(log=self.logger)

    def _clean(self, directory: Path) -> bool:
        if not directory.exists():
            return True
        try:
            shutil.rmtree(directory)
        except OSError as e:
            self.logger.error(f"Could not delete '{directory}': {e}")
            return False
        self.logger.info(f"Deleted existing directory: {directory}")
        return True

    def plan(self, request: ScaffoldRequest) -> list[Step]:
        """Build the ordered list of ``(step name, action)`` pairs for *request*."""
        project_path = request.project_path
        solution_path = request.solution_path
        steps: list[Step] = []

        if request.clean:
            target = request.solution_directory or request.project_directory
            steps.append(("clean", lambda: self._clean(target)))

        if solution_path is not None:
            steps.append(("create solution", lambda: self.cli.create_solution(solution_path)))

        new_args = ["-n", request.project_name, *request.extra_new_args]
        steps.append(
            (
                "create project",
                lambda: self.cli.create_project(
                    request.template,
                    request.project_directory,
                    *new_args,
                    framework=request.framework,
                ),
            )
        )

        if solution_path is not None:
            steps.append(
                (
                    "add project to solution",
                    lambda: self.cli.add_project_to_solution(solution_path, project_path),
                )
            )

        if request.language_version is not None:
            lang_version = language_version_string(request.language_version)
            steps.append(
                (
                    "set language version",
                    lambda: self.modifier.ensure_property(project_path, LANG_VERSION_PROPERTY, lang_version),
                )
            )

        for name, value in request.properties.items():
            steps.append(
                (
                    f"set property {name}",
                    lambda name=name, value=value: self.modifier.ensure_property(project_path, name, value),
                )
            )

        for package in request.packages:
            steps.append(
                (
                    f"add package {package.name}",
                    lambda package=package: self.modifier.add_package_reference(
                        project_path, package.name, package.version
                    ),
                )
            )
            if package.exclude_assets or package.private_assets:
                steps.append(
                    (
                        f"set package metadata {package.name}",
                        lambda package=package: self.modifier.set_package_metadata(
                            project_path,
                            package.name,
                            exclude_assets=package.exclude_assets,
                            private_assets=package.private_assets,
                        ),
                    )
                )

        if request.references:
            steps.append(
                (
                    "add references",
                    lambda: self.modifier.add_references(
                        project_path, *request.references, copy_local=request.copy_local
                    ),
                )
            )

        if request.sources:
            steps.append(
                (
                    "add source files",
                    lambda: self.modifier.add_source_files(
                        project_path, *request.sources, overwrite_existing=request.overwrite_sources
                    ),
                )
            )

        if request.build:
            steps.append(("build", lambda: self.cli.build_project(project_path)))

        if request.run:
            steps.append(("run", lambda: self.cli.run_project(project_path, *request.run_args)))

        return steps

    def scaffold(self, request: ScaffoldRequest) -> ScaffoldResult:
        """Run every planned step, stopping at the first failure."""
        result = ScaffoldResult(project_path=request.project_path, solution_path=request.solution_path)

        for name, action in self.plan(request):
            self.logger.info(f"Scaffold step: {name}")
            succeeded = action()
            result.steps.append(StepResult(name=name, succeeded=succeeded))
            if not succeeded:
                self.logger.error(f"Scaffold stopped at step '{name}' for project: {request.project_path}")
                return result

        self.logger.success(f"All operations completed successfully for project: {request.project_path}")
        return result
