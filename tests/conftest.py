"""Shared fixtures for toolver tests."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from toolver import DirectoryContext
from toolver import InstallError
from toolver import LayerPaths
from toolver import VersionManager
from toolver import select_version


class FakeRegistry:
    """In-memory install registry.

    ``installed`` holds what is already on disk; ``available`` holds what an
    install may fetch. Tools listed in ``failing`` raise InstallError.
    """

    def __init__(self, installed=None, available=None):
        self.installed = {tool: set(versions) for tool, versions in (installed or {}).items()}
        self.available = {tool: set(versions) for tool, versions in (available or {}).items()}
        self.failing = set()
        self.install_calls = []

    def installed_versions(self, tool):
        return set(self.installed.get(tool, ()))

    def ensure_installed(self, tool, spec):
        self.install_calls.append((tool, str(spec)))
        if tool in self.failing:
            raise InstallError(tool, str(spec), "download failed")
        pool = self.installed_versions(tool) | self.available.get(tool, set())
        version = select_version(spec, pool)
        if version is None:
            raise InstallError(tool, str(spec), "no matching release")
        self.installed.setdefault(tool, set()).add(version)
        return version


@pytest.fixture
def tmp_root():
    """Temporary directory standing in for the filesystem."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def paths(tmp_root):
    """Layer paths with the global layer inside the temporary home."""
    return LayerPaths(global_file=tmp_root / "home" / ".config" / "toolver" / "config.toml")


@pytest.fixture
def repo(tmp_root):
    """Repository root directory with an app subdirectory."""
    root = tmp_root / "repo"
    (root / "app").mkdir(parents=True)
    (root / ".git").mkdir()
    return root


@pytest.fixture
def context(repo):
    """Directory context for the repository root."""
    return DirectoryContext(cwd=repo, root=repo)


@pytest.fixture
def registry():
    return FakeRegistry(
        installed={"node": {"18.19.0", "20.11.1"}},
        available={
            "node": {"18.19.0", "20.11.1", "20.12.2", "22.1.0"},
            "python": {"3.11.9", "3.12.3", "3.13.0rc1"},
        },
    )


@pytest.fixture
def manager(paths, registry):
    """Create VersionManager with temp paths and a fake registry."""
    return VersionManager(paths, registry)


@pytest.fixture
def make_registry():
    """Factory for FakeRegistry instances."""
    return FakeRegistry
