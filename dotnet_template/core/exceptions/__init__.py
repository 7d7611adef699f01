"""Core exceptions for the application."""

from dotnet_template.core.exceptions.project_file import (
    ProjectFileException,
    ProjectFileNotFoundError,
    ProjectFileParseError,
    ProjectFileSaveError,
)
from dotnet_template.core.exceptions.toolchain import (
    ToolchainException,
    ToolchainLaunchError,
    ToolchainNotFoundError,
)

__all__ = [
    # Project file
    "ProjectFileException",
    "ProjectFileNotFoundError",
    "ProjectFileParseError",
    "ProjectFileSaveError",
    # Toolchain
    "ToolchainException",
    "ToolchainNotFoundError",
    "ToolchainLaunchError",
]
