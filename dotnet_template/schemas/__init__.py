from dotnet_template.schemas.scaffold import PackageSpec, ScaffoldRequest

__all__ = ["PackageSpec", "ScaffoldRequest"]
