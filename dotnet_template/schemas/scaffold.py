"""Pydantic schemas for the scaffold workflow."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from dotnet_template.core.enums import CSharpLanguageVersion, DotNetFrameworkVersion, ProjectTemplate


class PackageSpec(BaseModel):
    """A NuGet package to reference, with optional asset metadata."""

    name: str = Field(..., min_length=1)
    version: Optional[str] = None
    exclude_assets: Optional[str] = None
    private_assets: Optional[str] = None


class ScaffoldRequest(BaseModel):
    """Everything needed to create, customise, build and run one project.

    Layout on disk:
    {working_directory}/{solution_name}/{project_name}/{project_name}.csproj,
    or {working_directory}/{project_name}/... when no solution is requested.
    """

    working_directory: Path
    project_name: str = Field(..., min_length=1)
    solution_name: Optional[str] = Field(default=None, description="Omit to skip solution creation")
    template: ProjectTemplate = ProjectTemplate.CONSOLE
    framework: Optional[DotNetFrameworkVersion] = DotNetFrameworkVersion.NET80
    language_version: Optional[CSharpLanguageVersion] = CSharpLanguageVersion.LATEST
    properties: dict[str, str] = Field(default_factory=dict)
    packages: list[PackageSpec] = Field(default_factory=list)
    references: list[Path] = Field(default_factory=list)
    copy_local: bool = True
    sources: list[Path] = Field(default_factory=list)
    overwrite_sources: bool = False
    clean: bool = Field(default=False, description="Delete the solution (or project) directory first")
    build: bool = True
    run: bool = False
    extra_new_args: list[str] = Field(default_factory=list)
    run_args: list[str] = Field(default_factory=list)

    @field_validator("project_name", "solution_name")
    @classmethod
    def _no_path_separators(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and any(sep in value for sep in ("/", "\\")):
            raise ValueError("names must not contain path separators")
        return value

    @property
    def solution_directory(self) -> Optional[Path]:
        if not self.solution_name:
            return None
        return self.working_directory / self.solution_name

    @property
    def solution_path(self) -> Optional[Path]:
        directory = self.solution_directory
        return directory / f"{self.solution_name}.sln" if directory else None

    @property
    def project_directory(self) -> Path:
        base = self.solution_directory or self.working_directory
        return base / self.project_name

    @property
    def project_path(self) -> Path:
        return self.project_directory / f"{self.project_name}.csproj"
