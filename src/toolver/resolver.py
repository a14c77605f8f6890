"""Merging of layers into the effective mapping and version resolution."""

import logging
from collections.abc import Iterable

from .models import ConfigLayer
from .models import ToolRequest
from .registry import InstallRegistry
from .version import SpecKind
from .version import VersionSpec
from .version import version_key

logger = logging.getLogger(__name__)


def merge_layers(layers: Iterable[ConfigLayer]) -> dict[str, ToolRequest]:
    """Merge layers into the effective tool mapping.

    Layers must be given lowest precedence first; a tool declared by a
    later layer replaces any earlier declaration entirely.

    Args:
        layers: Layers in discovery order

    Returns:
        Tool name -> request from the highest-precedence layer declaring it

    Examples:
        >>> merge_layers([])
        {}
    """
    merged: dict[str, ToolRequest] = {}
    for layer in layers:
        for tool, specs in layer.tools.items():
            merged[tool] = ToolRequest(tool=tool, specs=specs, scope=layer.scope, path=layer.path)
    return merged


def select_version(spec: VersionSpec, installed: Iterable[str]) -> str | None:
    """Pick the installed version a specifier resolves to.

    Args:
        spec: Version specifier
        installed: Installed versions of the tool

    Returns:
        The exact version if installed (EXACT), the highest matching version
        (PREFIX, LATEST), or None if nothing matches
    """
    if spec.kind is SpecKind.EXACT:
        return spec.value if spec.value in set(installed) else None
    candidates = [version for version in installed if spec.matches(version)]
    if not candidates:
        return None
    return max(candidates, key=version_key)


def resolve_request(request: ToolRequest, registry: InstallRegistry) -> str | None:
    """Resolve a tool request against the installed versions.

    Specifiers are tried in declared order; the first one that resolves wins.

    Returns:
        Concrete installed version, or None if the tool is configured but not installed
    """
    installed = registry.installed_versions(request.tool)
    for spec in request.specs:
        version = select_version(spec, installed)
        if version is not None:
            logger.debug(f"Resolved {request.tool}@{spec} from {request.scope} to {version}")
            return version
    logger.debug(f"No installed version of {request.tool} satisfies {', '.join(map(str, request.specs))}")
    return None
