"""Engine settings loaded from a YAML file."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .discovery import BOUNDARIES
from .discovery import DirectoryContext
from .discovery import active_environment
from .exceptions import ConfigValidationError
from .models import LayerPaths

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path("~/.config/toolver/settings.yaml")
GLOBAL_CONFIG_VARIABLE = "TOOLVER_GLOBAL_CONFIG"

DEFAULTS: dict[str, Any] = {
    "files": {
        "global": "~/.config/toolver/config.toml",
        "project": ".toolver.toml",
        "local": ".toolver.local.toml",
        "env": ".toolver.{env}.toml",
    },
    "discovery": {
        "boundary": "git",
        "environment_variable": "TOOLVER_ENV",
    },
    "layers": {
        "delete_empty": True,
    },
}


@dataclass(frozen=True)
class Settings:
    """Resolved engine settings.

    Attributes:
        global_file: Path of the global layer
        project_name: File name of project layers
        local_name: File name of the local layer
        env_pattern: File name pattern of environment layers (contains ``{env}``)
        boundary: Root boundary for the ancestor walk (``git`` or ``filesystem``)
        environment_variable: Variable naming the active environment
        delete_empty_layers: Delete layer files whose last tool entry was removed
    """

    global_file: Path
    project_name: str = ".toolver.toml"
    local_name: str = ".toolver.local.toml"
    env_pattern: str = ".toolver.{env}.toml"
    boundary: str = "git"
    environment_variable: str = "TOOLVER_ENV"
    delete_empty_layers: bool = True

    def layer_paths(self) -> LayerPaths:
        return LayerPaths(
            global_file=self.global_file,
            project_name=self.project_name,
            local_name=self.local_name,
            env_pattern=self.env_pattern,
        )

    def context(self, cwd: Path | str) -> DirectoryContext:
        return DirectoryContext.from_cwd(cwd, boundary=self.boundary)

    def environment(self, environ: Mapping[str, str] | None = None) -> str | None:
        return active_environment(environ, variable=self.environment_variable)


def load_settings(path: Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings, layering the YAML settings file over the defaults.

    Args:
        path: Settings file (default ``~/.config/toolver/settings.yaml``)
        environ: Environment mapping consulted for overrides (defaults to ``os.environ``)

    Returns:
        Validated Settings

    Raises:
        ConfigValidationError: If the settings file is malformed or holds invalid values
    """
    if environ is None:
        environ = os.environ
    path = (path or DEFAULT_SETTINGS_PATH).expanduser()

    data = _merge(DEFAULTS, _read_settings_file(path))
    override = environ.get(GLOBAL_CONFIG_VARIABLE)
    if override:
        data = _merge(data, {"files": {"global": override}})

    files = data["files"]
    discovery = data["discovery"]
    settings = Settings(
        global_file=Path(_require_str(files, "global", "files")).expanduser(),
        project_name=_require_name(files, "project"),
        local_name=_require_name(files, "local"),
        env_pattern=_require_name(files, "env"),
        boundary=_require_str(discovery, "boundary", "discovery"),
        environment_variable=_require_str(discovery, "environment_variable", "discovery"),
        delete_empty_layers=data["layers"]["delete_empty"],
    )

    if "{env}" not in settings.env_pattern:
        raise ConfigValidationError(f"files.env must contain '{{env}}': {settings.env_pattern!r}")
    if settings.boundary not in BOUNDARIES:
        raise ConfigValidationError(f"discovery.boundary must be one of {BOUNDARIES}: {settings.boundary!r}")
    if not isinstance(settings.delete_empty_layers, bool):
        raise ConfigValidationError("layers.delete_empty must be a boolean")
    if len({settings.project_name, settings.local_name, settings.env_pattern}) != 3:
        raise ConfigValidationError("files.project, files.local and files.env must differ")
    return settings


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigValidationError(f"Failed to read settings from {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(f"Settings file {path} must contain a mapping")
    logger.debug(f"Loaded settings from {path}")
    return data


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge overlay into a copy of base; overlay wins on conflicts."""
    result = dict(base)
    for key, value in overlay.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = _merge(current, value)
        elif isinstance(current, dict):
            raise ConfigValidationError(f"Setting '{key}' must be a mapping")
        else:
            result[key] = value
    return result


def _require_str(section: dict[str, Any], key: str, prefix: str) -> str:
    value = section.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigValidationError(f"{prefix}.{key} must be a non-empty string")
    return value


def _require_name(section: dict[str, Any], key: str) -> str:
    value = _require_str(section, key, "files")
    if "/" in value or os.sep in value:
        raise ConfigValidationError(f"files.{key} must be a file name, not a path: {value!r}")
    return value
