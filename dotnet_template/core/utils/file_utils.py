"""File utility functions."""

from pathlib import Path

PROJECT_FILE_EXTENSIONS = (".csproj", ".fsproj", ".vbproj")


def find_project_files(directory: str | Path) -> list[str]:
    """Scan a directory (not recursively) for MSBuild project files.

    Args:
        directory: Directory path to scan

    Returns:
        Sorted list of absolute project file paths
    """
    path = Path(directory)
    if not path.is_dir():
        return []

    return sorted(
        str(f.resolve())
        for f in path.iterdir()
        if f.is_file() and f.suffix.lower() in PROJECT_FILE_EXTENSIONS
    )


def resolve_project_path(path: str | Path) -> Path:
    """Resolve *path* to a project file.

    A directory holding exactly one project file resolves to that file; any
    other path is returned unchanged.
    """
    candidate = Path(path)
    if candidate.is_dir():
        found = find_project_files(candidate)
        if len(found) == 1:
            return Path(found[0])
    return candidate


def include_file_name(include: str) -> str:
    """Return the file name part of an MSBuild Include value.

    Include values use either separator regardless of the host platform,
    e.g. ``Folder\\Program.cs`` -> ``Program.cs``.
    """
    return include.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
