"""Exceptions for dotnet CLI invocations."""


class ToolchainException(Exception):
    """Base exception for toolchain operations."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ToolchainNotFoundError(ToolchainException):
    """The toolchain executable could not be found."""

    def __init__(self, executable: str):
        self.executable = executable
        message = f"Toolchain executable not found: {executable}"
        super().__init__(message)


class ToolchainLaunchError(ToolchainException):
    """The toolchain process could not be started."""

    def __init__(self, command: str, reason: str):
        self.command = command
        self.reason = reason
        message = f"Failed to start '{command}': {reason}"
        super().__init__(message)
