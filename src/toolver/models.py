"""Data models for toolver."""

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path
from typing import Any

from .exceptions import ConfigValidationError
from .version import VersionSpec


class Scope(Enum):
    """Configuration scope enumeration.

    Each scope carries a precedence rank; layers with a higher rank
    override layers with a lower one when merged.
    """

    GLOBAL = "global"
    PROJECT = "project"
    ENV = "env"
    LOCAL = "local"

    @property
    def rank(self) -> int:
        return _RANKS[self]


_RANKS = {
    Scope.GLOBAL: 0,
    Scope.PROJECT: 1,
    Scope.ENV: 2,
    Scope.LOCAL: 3,
}


@dataclass(frozen=True)
class LayerScope:
    """Scope of one layer, including the environment name for ENV layers.

    Attributes:
        scope: Precedence class of the layer
        environment: Environment name, set only for Scope.ENV
    """

    scope: Scope
    environment: str | None = None

    def __post_init__(self):
        if (self.scope is Scope.ENV) != (self.environment is not None):
            raise ConfigValidationError(f"environment name is required for, and only for, env scope: {self!r}")

    @property
    def rank(self) -> int:
        return self.scope.rank

    def __str__(self) -> str:
        if self.scope is Scope.ENV:
            return f"env:{self.environment}"
        return self.scope.value


@dataclass
class ConfigLayer:
    """One on-disk configuration file and its tool entries.

    Attributes:
        path: Location of the layer file
        scope: Scope of the layer
        tools: Tool name -> ordered version specifiers (insertion order preserved)
        document: Parsed TOML document, kept for formatting-preserving writes
        exists: Whether the file existed when read
    """

    path: Path
    scope: LayerScope
    tools: dict[str, tuple[VersionSpec, ...]] = field(default_factory=dict)
    document: Any = field(default=None, repr=False, compare=False)
    exists: bool = False


@dataclass(frozen=True)
class ToolRequest:
    """Version specifiers declared for a tool by a single layer.

    Attributes:
        tool: Tool name
        specs: Ordered specifiers, first entry highest preference
        scope: Scope of the declaring layer
        path: Path of the declaring layer
    """

    tool: str
    specs: tuple[VersionSpec, ...]
    scope: LayerScope
    path: Path


@dataclass(frozen=True)
class LayerPaths:
    """Locations and file names of every layer kind.

    Attributes:
        global_file: Path to the user-global layer
        project_name: File name of project layers, looked up in every ancestor
        local_name: File name of the local override layer in the working directory
        env_pattern: File name pattern of environment layers; ``{env}`` is replaced by the name
    """

    global_file: Path
    project_name: str = ".toolver.toml"
    local_name: str = ".toolver.local.toml"
    env_pattern: str = ".toolver.{env}.toml"

    def env_name(self, environment: str) -> str:
        return self.env_pattern.format(env=environment)
