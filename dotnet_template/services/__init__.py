from dotnet_template.services.csproj_modifier import CsprojModifier
from dotnet_template.services.dotnet_cli import DotNetCli
from dotnet_template.services.scaffolder import ProjectScaffolder, ScaffoldResult

__all__ = ["CsprojModifier", "DotNetCli", "ProjectScaffolder", "ScaffoldResult"]
