"""Tests for layer discovery."""

import pytest
from toolver import ConfigParseError
from toolver import ConfigValidationError
from toolver import DirectoryContext
from toolver import LayerPaths
from toolver import LayerScope
from toolver import LayerStore
from toolver import Scope
from toolver import active_environment
from toolver import discover_layers


def write_layer(path, **tools):
    path.parent.mkdir(parents=True, exist_ok=True)
    body = "".join(f'{name} = "{version}"\n' for name, version in tools.items())
    path.write_text(f"[tools]\n{body}")


class TestDirectoryContext:
    """Test DirectoryContext construction and ancestor walk."""

    def test_ancestors_root_first(self, repo):
        """Test ancestors are listed from the boundary down to cwd."""
        nested = repo / "app" / "web"
        nested.mkdir()
        context = DirectoryContext(cwd=nested, root=repo)
        assert context.ancestors() == [repo, repo / "app", nested]

    def test_ancestors_when_cwd_is_root(self, repo):
        """Test ancestors when cwd is the boundary itself."""
        assert DirectoryContext(cwd=repo, root=repo).ancestors() == [repo]

    def test_root_must_be_ancestor(self, repo, tmp_root):
        """Test that a root outside cwd's ancestry is rejected."""
        with pytest.raises(ConfigValidationError):
            DirectoryContext(cwd=repo, root=tmp_root / "elsewhere")

    def test_git_boundary_stops_at_repository(self, repo):
        """Test git boundary stops at the nearest .git directory."""
        context = DirectoryContext.from_cwd(repo / "app", boundary="git")
        assert context.root == repo
        assert context.cwd == repo / "app"

    def test_filesystem_boundary(self, repo):
        """Test filesystem boundary walks to the filesystem root."""
        context = DirectoryContext.from_cwd(repo / "app", boundary="filesystem")
        assert context.root == context.cwd.parents[-1]
        assert context.ancestors()[-1] == repo / "app"

    def test_unknown_boundary(self, repo):
        """Test unknown boundary names are rejected."""
        with pytest.raises(ConfigValidationError):
            DirectoryContext.from_cwd(repo, boundary="hg")


class TestActiveEnvironment:
    """Test reading the active environment from a mapping."""

    def test_unset(self):
        """Test no environment when the variable is unset."""
        assert active_environment({}) is None

    def test_blank_is_unset(self):
        """Test a blank variable counts as unset."""
        assert active_environment({"TOOLVER_ENV": "  "}) is None

    def test_value(self):
        """Test environment read from the variable."""
        assert active_environment({"TOOLVER_ENV": "ci"}) == "ci"

    def test_custom_variable(self):
        """Test reading a custom variable name."""
        assert active_environment({"APP_ENV": "staging"}, variable="APP_ENV") == "staging"

    @pytest.mark.parametrize("name", ["../ci", "a/b", ".hidden", "local"])
    def test_invalid_names(self, name):
        """Test invalid environment names are rejected."""
        with pytest.raises(ConfigValidationError):
            active_environment({"TOOLVER_ENV": name})


class TestDiscoverLayers:
    """Test discover_layers ordering and inclusion rules."""

    @pytest.fixture
    def store(self):
        return LayerStore()

    def scopes(self, layers):
        return [str(layer.scope) for layer in layers]

    def test_only_global_and_local_when_nothing_exists(self, context, store, paths):
        """Test discovery with no layer files present."""
        layers = discover_layers(context, store, paths)
        assert self.scopes(layers) == ["global", "local"]
        assert all(layer.tools == {} for layer in layers)

    def test_full_order(self, repo, store, paths):
        """Test layers come back lowest precedence first."""
        app = repo / "app"
        write_layer(paths.global_file, node="18.19.0")
        write_layer(repo / ".toolver.toml", node="20.11.1")
        write_layer(app / ".toolver.toml", python="3.12.3")
        write_layer(app / ".toolver.ci.toml", node="22.1.0")
        write_layer(app / ".toolver.local.toml", go="1.22.2")

        layers = discover_layers(DirectoryContext(cwd=app, root=repo), store, paths, environment="ci")

        assert self.scopes(layers) == ["global", "project", "project", "env:ci", "local"]
        assert [layer.path for layer in layers[1:3]] == [repo / ".toolver.toml", app / ".toolver.toml"]

    def test_env_layer_skipped_without_environment(self, context, store, paths, repo):
        """Test env layer ignored when no environment is active."""
        write_layer(repo / ".toolver.ci.toml", node="22.1.0")
        assert "env:ci" not in self.scopes(discover_layers(context, store, paths))

    def test_env_layer_skipped_when_file_missing(self, context, store, paths):
        """Test missing env layer file is skipped."""
        assert self.scopes(discover_layers(context, store, paths, environment="ci")) == ["global", "local"]

    def test_env_layer_only_in_cwd(self, repo, store, paths):
        """Test env layers in ancestors are not picked up."""
        write_layer(repo / ".toolver.ci.toml", node="22.1.0")
        context = DirectoryContext(cwd=repo / "app", root=repo)
        assert "env:ci" not in self.scopes(discover_layers(context, store, paths, environment="ci"))

    def test_local_layer_only_in_cwd(self, repo, store, paths):
        """Test local layers in ancestors are not picked up."""
        write_layer(repo / ".toolver.local.toml", node="22.1.0")
        layers = discover_layers(DirectoryContext(cwd=repo / "app", root=repo), store, paths)
        assert layers[-1].scope == LayerScope(Scope.LOCAL)
        assert layers[-1].path == repo / "app" / ".toolver.local.toml"
        assert layers[-1].tools == {}

    def test_project_layers_above_root_ignored(self, tmp_root, repo, store, paths):
        """Test project files above the boundary are ignored."""
        write_layer(tmp_root / ".toolver.toml", node="16.0.0")
        layers = discover_layers(DirectoryContext(cwd=repo, root=repo), store, paths)
        assert self.scopes(layers) == ["global", "local"]

    def test_project_file_at_global_path_not_duplicated(self, tmp_root, store):
        """Test a project file that is also the global file is read once."""
        home = tmp_root / "home"
        paths = LayerPaths(global_file=home / ".toolver.toml")
        write_layer(paths.global_file, node="18.19.0")

        layers = discover_layers(DirectoryContext(cwd=home, root=tmp_root), store, paths)

        assert self.scopes(layers) == ["global", "local"]

    def test_empty_layers_kept_in_order(self, repo, store, paths):
        """Test empty layers still appear in order."""
        (repo / ".toolver.toml").write_text("")
        layers = discover_layers(DirectoryContext(cwd=repo, root=repo), store, paths)
        assert self.scopes(layers) == ["global", "project", "local"]

    def test_malformed_layer_aborts(self, context, store, paths, repo):
        """Test a malformed layer stops discovery."""
        (repo / ".toolver.toml").write_text("[tools\n")
        with pytest.raises(ConfigParseError):
            discover_layers(context, store, paths)

    def test_invalid_environment_name(self, context, store, paths):
        """Test discovery rejects an invalid environment name."""
        with pytest.raises(ConfigValidationError):
            discover_layers(context, store, paths, environment="../../etc")
