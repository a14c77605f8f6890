"""toolver: per-project tool version pinning over layered configuration.

This library resolves which version of each development tool applies in a
directory by merging a stack of TOML layer files:
- Global (typically ~/.config/toolver/config.toml)
- Project (.toolver.toml in the working directory or any ancestor)
- Environment (.toolver.<name>.toml, only while that environment is active)
- Local (.toolver.local.toml, conventionally git-ignored)

Later layers win. Installing tools is delegated to an injected registry;
the library handles discovery, merging, resolution and atomic edits.

Public API:
    VersionManager: Queries (resolve_current) and mutations (declare, remove)
    DirectoryContext: Working directory plus root boundary
    LayerStore: Reads and atomically writes layer files
    Scope, LayerScope, ConfigLayer, ToolRequest, LayerPaths: Data models
    VersionSpec, parse_version_spec, version_key: Version specifiers
    InstallRegistry, DirectoryRegistry: Install capability
    Settings, load_settings: Engine settings
    ToolverError and subclasses: Exception types

Example:
    ```python
    from toolver import DirectoryRegistry, VersionManager, load_settings

    settings = load_settings()
    manager = VersionManager.from_settings(settings, DirectoryRegistry(installs_dir, installer))

    context = settings.context(".")
    manager.declare(context, [("node", "20")])
    manager.resolve_current(context, "node", environment=settings.environment())
    ```
"""

from .discovery import DirectoryContext
from .discovery import active_environment
from .discovery import discover_layers
from .exceptions import ConfigParseError
from .exceptions import ConfigValidationError
from .exceptions import InstallError
from .exceptions import InvalidVersionSpec
from .exceptions import IOFailure
from .exceptions import ToolverError
from .exceptions import WriteConflict
from .manager import VersionManager
from .models import ConfigLayer
from .models import LayerPaths
from .models import LayerScope
from .models import Scope
from .models import ToolRequest
from .registry import DirectoryRegistry
from .registry import InstallRegistry
from .resolver import merge_layers
from .resolver import resolve_request
from .resolver import select_version
from .settings import Settings
from .settings import load_settings
from .store import LayerStore
from .version import SpecKind
from .version import VersionSpec
from .version import parse_version_spec
from .version import version_key

__version__ = "0.1.0"

__all__ = [
    "VersionManager",
    "DirectoryContext",
    "LayerStore",
    "Scope",
    "LayerScope",
    "ConfigLayer",
    "ToolRequest",
    "LayerPaths",
    "SpecKind",
    "VersionSpec",
    "parse_version_spec",
    "version_key",
    "InstallRegistry",
    "DirectoryRegistry",
    "Settings",
    "load_settings",
    "active_environment",
    "discover_layers",
    "merge_layers",
    "resolve_request",
    "select_version",
    "ToolverError",
    "InvalidVersionSpec",
    "ConfigParseError",
    "ConfigValidationError",
    "InstallError",
    "IOFailure",
    "WriteConflict",
]
