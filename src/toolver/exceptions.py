"""Exceptions for toolver."""

from pathlib import Path


class ToolverError(Exception):
    """Base exception for toolver errors."""

    pass


class InvalidVersionSpec(ToolverError, ValueError):
    """Version string could not be parsed into a specifier."""

    pass


class ConfigParseError(ToolverError):
    """Layer file exists but its content is malformed.

    Attributes:
        path: Layer file that failed to parse
        hint: Human-readable location of the problem (e.g. ``line 3, column 7``)
    """

    def __init__(self, path: Path, hint: str, message: str = "invalid configuration"):
        self.path = path
        self.hint = hint
        super().__init__(f"{path}: {message} ({hint})")


class ConfigValidationError(ToolverError):
    """Error validating settings, environment names or scope selection."""

    pass


class InstallError(ToolverError):
    """The install registry failed to provide a version."""

    def __init__(self, tool: str, spec: str, message: str):
        self.tool = tool
        self.spec = spec
        super().__init__(f"failed to install {tool}@{spec}: {message}")


class IOFailure(ToolverError):
    """Writing a layer file failed before the new content was committed."""

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class WriteConflict(IOFailure):
    """The atomic rename over the target layer file failed."""

    pass
