"""Tests for DirectoryRegistry."""

import pytest
from toolver import DirectoryRegistry
from toolver import InstallError
from toolver import parse_version_spec


class TestDirectoryRegistry:
    """Test the directory-backed install registry."""

    @pytest.fixture
    def installs(self, tmp_root):
        root = tmp_root / "installs"
        for version in ("18.19.0", "20.11.1"):
            (root / "node" / version).mkdir(parents=True)
        (root / "node" / ".partial-22.1.0").mkdir()
        (root / "node" / "README").write_text("not a version")
        return root

    def test_installed_versions(self, installs):
        """Test installed versions come from version directories."""
        registry = DirectoryRegistry(installs)
        assert registry.installed_versions("node") == {"18.19.0", "20.11.1"}

    def test_unknown_tool_has_no_versions(self, installs):
        """Test unknown tool."""
        assert DirectoryRegistry(installs).installed_versions("ruby") == set()

    def test_already_installed_skips_installer(self, installs):
        """Test installed match skips the installer."""
        calls = []

        def installer(tool, spec):
            calls.append((tool, spec))
            return "never"

        registry = DirectoryRegistry(installs, installer)
        assert registry.ensure_installed("node", parse_version_spec("20")) == "20.11.1"
        assert calls == []

    def test_installer_invoked_when_missing(self, installs):
        """Test installer runs when nothing matches."""
        def installer(tool, spec):
            (installs / tool / "22.1.0").mkdir()
            return "22.1.0"

        registry = DirectoryRegistry(installs, installer)
        assert registry.ensure_installed("node", parse_version_spec("22")) == "22.1.0"
        assert "22.1.0" in registry.installed_versions("node")

    def test_installer_failure_wrapped(self, installs):
        """Test installer errors are wrapped in InstallError."""
        def installer(tool, spec):
            raise RuntimeError("network unreachable")

        registry = DirectoryRegistry(installs, installer)
        with pytest.raises(InstallError) as excinfo:
            registry.ensure_installed("node", parse_version_spec("22"))
        assert "network unreachable" in str(excinfo.value)
        assert excinfo.value.tool == "node"

    def test_installer_must_produce_version_directory(self, installs):
        """Test installer result must exist on disk."""
        registry = DirectoryRegistry(installs, lambda tool, spec: "22.1.0")
        with pytest.raises(InstallError):
            registry.ensure_installed("node", parse_version_spec("22"))

    def test_read_only_registry(self, installs):
        """Test registry without an installer."""
        with pytest.raises(InstallError):
            DirectoryRegistry(installs).ensure_installed("node", parse_version_spec("22"))
