"""Install registry capability and a directory-backed implementation."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from .exceptions import InstallError
from .version import VersionSpec
from .version import version_key

logger = logging.getLogger(__name__)


class InstallRegistry(Protocol):
    """Capability reporting and performing tool installs.

    Implementations own downloading and building; the core only asks which
    versions exist and requests an install for a specifier.
    """

    def installed_versions(self, tool: str) -> set[str]:
        """Return the versions of ``tool`` currently installed."""
        ...

    def ensure_installed(self, tool: str, spec: VersionSpec) -> str:
        """Install a version satisfying ``spec`` if needed.

        Returns:
            The concrete installed version string

        Raises:
            InstallError: If no version could be installed
        """
        ...


Installer = Callable[[str, VersionSpec], str]


class DirectoryRegistry:
    """Registry whose installs live at ``<root>/<tool>/<version>/``.

    Installing is delegated to an injected ``installer(tool, spec)``
    callable which must create the version directory and return its name.
    It is called once per request with no retries.

    Args:
        root: Directory holding one subdirectory per tool
        installer: Callable performing an install, or None for a read-only registry
    """

    def __init__(self, root: Path, installer: Installer | None = None):
        self.root = root
        self.installer = installer

    def installed_versions(self, tool: str) -> set[str]:
        tool_dir = self.root / tool
        if not tool_dir.is_dir():
            return set()
        return {entry.name for entry in tool_dir.iterdir() if entry.is_dir() and not entry.name.startswith(".")}

    def ensure_installed(self, tool: str, spec: VersionSpec) -> str:
        installed = self.installed_versions(tool)
        candidates = [version for version in installed if spec.matches(version)]
        if candidates:
            version = max(candidates, key=version_key)
            logger.debug(f"{tool}@{spec} already installed as {version}")
            return version

        if self.installer is None:
            raise InstallError(tool, str(spec), "not installed and no installer configured")

        logger.info(f"Installing {tool}@{spec}")
        try:
            version = self.installer(tool, spec)
        except InstallError:
            raise
        except Exception as e:
            raise InstallError(tool, str(spec), str(e)) from e

        if version not in self.installed_versions(tool):
            raise InstallError(tool, str(spec), f"installer reported {version!r} but it is not present under {self.root / tool}")
        return version
