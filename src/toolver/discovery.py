"""Discovery of the layers that apply to a directory and environment."""

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .exceptions import ConfigValidationError
from .models import ConfigLayer
from .models import LayerPaths
from .models import LayerScope
from .models import Scope
from .store import LayerStore

logger = logging.getLogger(__name__)

BOUNDARIES = ("git", "filesystem")

_ENV_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


@dataclass(frozen=True)
class DirectoryContext:
    """Working directory plus the boundary where the ancestor walk stops.

    Attributes:
        cwd: Working directory
        root: Highest directory searched for project layers (cwd or an ancestor of it)
    """

    cwd: Path
    root: Path

    def __post_init__(self):
        if self.root != self.cwd and self.root not in self.cwd.parents:
            raise ConfigValidationError(f"root boundary {self.root} is not an ancestor of {self.cwd}")

    @classmethod
    def from_cwd(cls, cwd: Path | str, boundary: str = "git") -> "DirectoryContext":
        """Build a context for a working directory.

        Args:
            cwd: Working directory
            boundary: ``git`` stops at the nearest directory containing ``.git``
                (falling back to the filesystem root), ``filesystem`` walks to the root

        Returns:
            DirectoryContext for cwd
        """
        cwd = Path(cwd).resolve()
        anchor = Path(cwd.anchor)
        if boundary == "filesystem":
            return cls(cwd=cwd, root=anchor)
        if boundary == "git":
            for directory in (cwd, *cwd.parents):
                if (directory / ".git").exists():
                    return cls(cwd=cwd, root=directory)
            return cls(cwd=cwd, root=anchor)
        raise ConfigValidationError(f"unknown root boundary {boundary!r}, expected one of {BOUNDARIES}")

    def ancestors(self) -> list[Path]:
        """Directories from the root boundary down to cwd, root first."""
        chain = [self.cwd]
        for parent in self.cwd.parents:
            if chain[-1] == self.root:
                break
            chain.append(parent)
        return list(reversed(chain))


def validate_environment(name: str) -> str:
    """Check an environment name is usable in a layer file name.

    Raises:
        ConfigValidationError: If the name is empty, contains path characters or is reserved
    """
    if not isinstance(name, str) or not _ENV_NAME_RE.match(name) or name == Scope.LOCAL.value:
        raise ConfigValidationError(f"invalid environment name: {name!r}")
    return name


def active_environment(environ: Mapping[str, str] | None = None, variable: str = "TOOLVER_ENV") -> str | None:
    """Read the active environment name from a process environment mapping.

    Args:
        environ: Environment mapping (defaults to ``os.environ``)
        variable: Variable holding the environment name

    Returns:
        Validated environment name, or None if unset or blank
    """
    if environ is None:
        environ = os.environ
    value = environ.get(variable, "").strip()
    if not value:
        return None
    return validate_environment(value)


def discover_layers(
    context: DirectoryContext,
    store: LayerStore,
    paths: LayerPaths,
    environment: str | None = None,
) -> list[ConfigLayer]:
    """Find and read every layer applying to a directory, lowest precedence first.

    Order:
    1. Global layer (always present, possibly empty)
    2. Project layers from the root boundary down to cwd
    3. ``env:<name>`` layer in cwd, if an environment is active and the file exists
    4. Local layer in cwd (always present, possibly empty)

    Args:
        context: Directory context to search
        store: Store used to read layer files
        paths: Layer file locations and names
        environment: Active environment name, if any

    Returns:
        Ordered list of layers

    Raises:
        ConfigParseError: If any applicable layer is malformed
    """
    if environment is not None:
        validate_environment(environment)

    layers = [store.read(paths.global_file, LayerScope(Scope.GLOBAL))]
    seen = {_identity(paths.global_file)}

    for directory in context.ancestors():
        candidate = directory / paths.project_name
        if not store.exists(candidate) or _identity(candidate) in seen:
            continue
        seen.add(_identity(candidate))
        layers.append(store.read(candidate, LayerScope(Scope.PROJECT)))

    if environment is not None:
        env_file = context.cwd / paths.env_name(environment)
        if store.exists(env_file):
            layers.append(store.read(env_file, LayerScope(Scope.ENV, environment)))

    layers.append(store.read(context.cwd / paths.local_name, LayerScope(Scope.LOCAL)))

    logger.debug(f"Discovered {len(layers)} layer(s) for {context.cwd}: {', '.join(str(layer.scope) for layer in layers)}")
    return layers


def _identity(path: Path) -> Path:
    return path.expanduser().resolve()
