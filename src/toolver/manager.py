"""Version manager: queries and mutations over the layer stack."""

import logging
from collections.abc import Iterable
from pathlib import Path

from .discovery import DirectoryContext
from .discovery import discover_layers
from .discovery import validate_environment
from .exceptions import ConfigValidationError
from .models import ConfigLayer
from .models import LayerPaths
from .models import LayerScope
from .models import Scope
from .models import ToolRequest
from .registry import InstallRegistry
from .resolver import merge_layers
from .resolver import resolve_request
from .settings import Settings
from .store import LayerStore
from .version import parse_version_spec

logger = logging.getLogger(__name__)


class VersionManager:
    """Resolves and edits tool versions across global/project/env/local layers.

    Resolution order (highest to lowest priority):
    1. Local layer in the working directory
    2. ``env:<name>`` layer in the working directory (when an environment is active)
    3. Project layers, nearest ancestor first
    4. Global layer

    Nothing is cached: every call re-reads the layer files it needs.

    Args:
        paths: Layer file locations and names
        registry: Install registry used to resolve and install versions
        store: Layer store (default: one deleting emptied files)
    """

    def __init__(self, paths: LayerPaths, registry: InstallRegistry, store: LayerStore | None = None):
        self.paths = paths
        self.registry = registry
        self.store = store or LayerStore()

    @classmethod
    def from_settings(cls, settings: Settings, registry: InstallRegistry) -> "VersionManager":
        """Create a manager configured by loaded settings."""
        return cls(settings.layer_paths(), registry, LayerStore(delete_empty=settings.delete_empty_layers))

    # ===== Queries =====

    def layers(self, context: DirectoryContext, environment: str | None = None) -> list[ConfigLayer]:
        """Get the layers applying to a directory, lowest precedence first."""
        return discover_layers(context, self.store, self.paths, environment)

    def effective_mapping(self, context: DirectoryContext, environment: str | None = None) -> dict[str, ToolRequest]:
        """Get the merged tool mapping for a directory and environment.

        Returns:
            Tool name -> request from the highest-precedence declaring layer
        """
        return merge_layers(self.layers(context, environment))

    def resolve_current(
        self,
        context: DirectoryContext,
        tool: str | None = None,
        environment: str | None = None,
    ) -> dict[str, str | None]:
        """Resolve configured tools to installed versions.

        Tools not configured in any layer are absent from the result; tools
        configured but without a matching installed version map to None.

        Args:
            context: Directory context
            tool: Single tool to resolve, or None for all configured tools
            environment: Active environment name

        Returns:
            Tool name -> installed version or None
        """
        mapping = self.effective_mapping(context, environment)
        if tool is not None:
            mapping = {tool: mapping[tool]} if tool in mapping else {}
        return {name: resolve_request(request, self.registry) for name, request in mapping.items()}

    # ===== Mutations =====

    def declare(
        self,
        context: DirectoryContext,
        requests: Iterable[tuple[str, str]],
        scope: Scope = Scope.PROJECT,
        environment: str | None = None,
    ) -> dict[str, str]:
        """Install and pin tool versions in the target layer.

        Every specifier is parsed and installed before the target layer is
        touched; any failure leaves all layer files unchanged. The layer
        records the concrete installed version, not the requested specifier.

        Args:
            context: Directory context
            requests: (tool, version specifier) pairs
            scope: Target scope (default: PROJECT in the working directory)
            environment: Environment name; selects the ``env:<name>`` layer as target

        Returns:
            Tool name -> installed version written to the layer

        Raises:
            InvalidVersionSpec: If a specifier is empty
            InstallError: If an install fails
            ConfigParseError: If the target layer is malformed
            IOFailure: If the layer cannot be written
        """
        parsed = [(_check_tool(tool), parse_version_spec(raw)) for tool, raw in requests]
        if not parsed:
            raise ConfigValidationError("no tools given to declare")
        path, layer_scope = self.target(context, scope, environment)

        installed = {}
        for tool, spec in parsed:
            installed[tool] = self.registry.ensure_installed(tool, spec)

        layer = self.store.read(path, layer_scope)
        for tool, version in installed.items():
            layer.tools[tool] = (parse_version_spec(version),)
        self.store.write(layer)

        for tool, version in installed.items():
            logger.info(f"Pinned {tool}@{version} in {layer_scope} layer {path}")
        return installed

    def remove(
        self,
        context: DirectoryContext,
        tools: Iterable[str],
        scope: Scope = Scope.PROJECT,
        environment: str | None = None,
    ) -> list[str]:
        """Remove tool pins from the target layer.

        Tools absent from the layer are ignored. The layer file is deleted
        once its last tool entry is gone (unless it holds other content).

        Args:
            context: Directory context
            tools: Tool names to unpin
            scope: Target scope (default: PROJECT in the working directory)
            environment: Environment name; selects the ``env:<name>`` layer as target

        Returns:
            Tools that were actually removed
        """
        names = [_check_tool(tool) for tool in tools]
        path, layer_scope = self.target(context, scope, environment)

        layer = self.store.read(path, layer_scope)
        removed = [name for name in dict.fromkeys(names) if name in layer.tools]
        if not removed:
            return []

        for name in removed:
            del layer.tools[name]
        self.store.write(layer)

        logger.info(f"Removed {', '.join(removed)} from {layer_scope} layer {path}")
        return removed

    def target(
        self,
        context: DirectoryContext,
        scope: Scope = Scope.PROJECT,
        environment: str | None = None,
    ) -> tuple[Path, LayerScope]:
        """Determine the layer a mutation writes to.

        Args:
            context: Directory context
            scope: Requested scope
            environment: Environment name, required for (and implying) ENV scope

        Returns:
            (layer path, layer scope)

        Raises:
            ConfigValidationError: If scope and environment conflict
        """
        if environment is not None:
            if scope not in (Scope.PROJECT, Scope.ENV):
                raise ConfigValidationError(f"cannot target {scope.value} scope with environment {environment!r}")
            validate_environment(environment)
            return context.cwd / self.paths.env_name(environment), LayerScope(Scope.ENV, environment)
        if scope is Scope.ENV:
            raise ConfigValidationError("env scope requires an environment name")

        scope_map = {
            Scope.GLOBAL: self.paths.global_file,
            Scope.PROJECT: context.cwd / self.paths.project_name,
            Scope.LOCAL: context.cwd / self.paths.local_name,
        }
        return scope_map[scope], LayerScope(scope)


def _check_tool(tool: str) -> str:
    if not isinstance(tool, str) or not tool.strip() or tool != tool.strip():
        raise ConfigValidationError(f"invalid tool name: {tool!r}")
    return tool
