"""Project file (.csproj) exceptions."""


class ProjectFileException(Exception):
    """Base exception for project file errors."""

    def __init__(self, message: str = "A project file error occurred"):
        self.message = message
        super().__init__(self.message)


class ProjectFileNotFoundError(ProjectFileException):
    """Raised when a project file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Project file does not exist: {path}")


class ProjectFileParseError(ProjectFileException):
    """Raised when a project file is not well-formed MSBuild XML."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse project file {path}: {reason}")


class ProjectFileSaveError(ProjectFileException):
    """Raised when a project file cannot be written back."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to save project file {path}: {reason}")
