"""Tests for project resolvers."""

from unittest.mock import patch

import pytest

from autoclock import project_detector
from autoclock.context import TriggerContext
from autoclock.errors import ConfigurationError
from autoclock.project_detector import (
    GitRootResolver,
    ManifestResolver,
    extract_repo_name,
    find_project_file,
    get_resolver,
    resolve_project,
)


@pytest.fixture(autouse=True)
def _fresh_git_cache():
    project_detector.clear_caches()
    yield
    project_detector.clear_caches()


class TestExtractRepoName:
    def test_ssh_url(self):
        assert extract_repo_name("git@github.com:user/repo.git") == "repo"

    def test_https_url(self):
        assert extract_repo_name("https://github.com/user/repo.git") == "repo"

    def test_no_suffix(self):
        assert extract_repo_name("https://github.com/user/repo") == "repo"

    def test_empty(self):
        assert extract_repo_name("") == ""


class TestManifestResolver:
    def test_pyproject_name(self, project_context):
        assert ManifestResolver().resolve(project_context) == "proj-A"

    def test_package_json_name(self, other_context):
        assert ManifestResolver().resolve(other_context) == "proj-B"

    def test_projectile_marker_uses_directory_name(self, tmp_path):
        root = tmp_path / "notes"
        root.mkdir()
        (root / ".projectile").write_text("")
        (root / "todo.txt").write_text("")

        ctx = TriggerContext.from_path(str(root / "todo.txt"))

        assert ManifestResolver().resolve(ctx) == "notes"

    def test_go_module_uses_last_path_component(self, tmp_path):
        (tmp_path / "go.mod").write_text("module github.com/acme/widgets\n")
        assert find_project_file(tmp_path) == ("go.mod", "widgets")

    def test_context_without_path_has_no_project(self):
        assert ManifestResolver().resolve(TriggerContext(name="*scratch*", kind="scratch")) is None


class TestGitRootResolver:
    def test_remote_name_wins(self, project_context):
        root = str(project_context.path).rsplit("/src/", 1)[0]

        def fake_git(args, cwd):
            if args[0] == "rev-parse":
                return root
            return "git@github.com:acme/billing.git"

        with patch.object(project_detector, "_run_git", side_effect=fake_git):
            assert GitRootResolver().resolve(project_context) == "billing"

    def test_falls_back_to_root_directory_name(self, project_context):
        root = str(project_context.path).rsplit("/src/", 1)[0]

        def fake_git(args, cwd):
            return root if args[0] == "rev-parse" else None

        with patch.object(project_detector, "_run_git", side_effect=fake_git):
            assert GitRootResolver().resolve(project_context) == "proj-a"

    def test_outside_a_repository(self, project_context):
        with patch.object(project_detector, "_run_git", return_value=None):
            assert GitRootResolver().resolve(project_context) is None

    def test_git_lookups_are_cached(self, project_context):
        with patch.object(project_detector, "_run_git", return_value=None) as run:
            GitRootResolver().resolve(project_context)
            GitRootResolver().resolve(project_context)
        assert run.call_count == 1


class TestRegistry:
    def test_known_names(self):
        assert isinstance(get_resolver("git_root"), GitRootResolver)
        assert isinstance(get_resolver("manifest"), ManifestResolver)

    def test_unknown_name_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            get_resolver("projectile")

    def test_failing_resolver_means_no_project(self, project_context):
        class Broken(ManifestResolver):
            def resolve(self, context):
                raise RuntimeError("boom")

        assert resolve_project(Broken(), project_context) is None
