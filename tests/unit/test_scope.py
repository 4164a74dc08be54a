"""Tests for scope resolution — discovery, memoization, and precedence."""

from __future__ import annotations

from pathlib import Path

import pytest

from aspects.core.scope import (
    ScopeError,
    ScopeResolver,
    discover_project_root,
    find_project_root,
    reset_project_root_cache,
    resolve_scope,
    scope_dir,
)
from aspects.models.records import Scope


class TestFindProjectRoot:
    def test_aspects_directory_marks_root(self, tmp_path: Path):
        (tmp_path / "proj" / ".aspects").mkdir(parents=True)
        nested = tmp_path / "proj" / "src" / "deep"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == (tmp_path / "proj").resolve()

    def test_marker_file_marks_root(self, tmp_path: Path):
        (tmp_path / "proj").mkdir()
        (tmp_path / "proj" / ".aspectsrc").write_text("")
        assert find_project_root(tmp_path / "proj") == (tmp_path / "proj").resolve()

    def test_nearest_ancestor_wins(self, tmp_path: Path):
        (tmp_path / ".aspects").mkdir()
        (tmp_path / "inner" / ".aspects").mkdir(parents=True)
        assert find_project_root(tmp_path / "inner") == (tmp_path / "inner").resolve()

    def test_no_marker_returns_none(self, tmp_path: Path):
        (tmp_path / "plain").mkdir()
        assert find_project_root(tmp_path / "plain") is None

    def test_file_named_like_directory_marker_is_ignored(self, tmp_path: Path):
        (tmp_path / "proj").mkdir()
        (tmp_path / "proj" / ".aspects").write_text("not a directory")
        assert find_project_root(tmp_path / "proj") is None

    def test_global_home_is_not_a_project(self, tmp_path: Path):
        user = tmp_path / "user"
        (user / ".aspects").mkdir(parents=True)
        (user / "code").mkdir()
        assert find_project_root(user / "code", home=user / ".aspects") is None
        assert find_project_root(user / "code") == user.resolve()

    def test_discovery_never_creates_directories(self, tmp_path: Path):
        (tmp_path / "plain").mkdir()
        find_project_root(tmp_path / "plain")
        assert list((tmp_path / "plain").iterdir()) == []


class TestScopeResolverMemo:
    def test_first_call_wins(self, tmp_path: Path):
        (tmp_path / "a" / ".aspects").mkdir(parents=True)
        (tmp_path / "b").mkdir()
        resolver = ScopeResolver()
        first = resolver.discover_project_root(tmp_path / "a")
        assert resolver.discover_project_root(tmp_path / "b") == first

    def test_memoizes_none(self, tmp_path: Path):
        (tmp_path / "b").mkdir()
        resolver = ScopeResolver()
        assert resolver.discover_project_root(tmp_path / "b") is None
        (tmp_path / "b" / ".aspects").mkdir()
        assert resolver.discover_project_root(tmp_path / "b") is None

    def test_reset_forgets(self, tmp_path: Path):
        (tmp_path / "b").mkdir()
        resolver = ScopeResolver()
        resolver.discover_project_root(tmp_path / "b")
        (tmp_path / "b" / ".aspects").mkdir()
        resolver.reset()
        assert resolver.discover_project_root(tmp_path / "b") == (tmp_path / "b").resolve()

    def test_process_wide_resolver(self, tmp_path: Path):
        (tmp_path / "p" / ".aspects").mkdir(parents=True)
        assert discover_project_root(tmp_path / "p") == (tmp_path / "p").resolve()
        assert discover_project_root(tmp_path) == (tmp_path / "p").resolve()
        reset_project_root_cache()
        assert discover_project_root(tmp_path) is None

    def test_home_setter_excludes_global_dir(self, tmp_path: Path):
        user = tmp_path / "user"
        (user / ".aspects").mkdir(parents=True)
        resolver = ScopeResolver()
        resolver.home = user / ".aspects"
        assert resolver.home == user / ".aspects"
        assert resolver.discover_project_root(user) is None

    def test_process_wide_resolver_takes_home(self, tmp_path: Path):
        user = tmp_path / "user"
        (user / ".aspects").mkdir(parents=True)
        reset_project_root_cache()
        assert discover_project_root(user, home=user / ".aspects") is None

    def test_defaults_to_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        proj = tmp_path / "cwdproj"
        (proj / ".aspects").mkdir(parents=True)
        monkeypatch.chdir(proj)
        assert ScopeResolver().discover_project_root() == proj.resolve()


class TestResolveScope:
    def test_discovered_root_means_project(self, tmp_path: Path):
        assert resolve_scope(None, tmp_path) is Scope.PROJECT

    def test_no_root_means_global(self):
        assert resolve_scope(None, None) is Scope.GLOBAL

    @pytest.mark.parametrize("root", [None, Path("/some/project")])
    @pytest.mark.parametrize("explicit", [Scope.GLOBAL, Scope.PROJECT])
    def test_explicit_flag_always_wins(self, explicit, root):
        assert resolve_scope(explicit, root) is explicit


class TestScopeDir:
    def test_global_dir_is_home(self, tmp_path: Path):
        assert scope_dir(Scope.GLOBAL, tmp_path / "home", None) == tmp_path / "home"

    def test_project_dir(self, tmp_path: Path):
        assert scope_dir(Scope.PROJECT, tmp_path / "home", tmp_path) == tmp_path / ".aspects"

    def test_project_without_root_raises(self, tmp_path: Path):
        with pytest.raises(ScopeError, match="Not inside a project"):
            scope_dir(Scope.PROJECT, tmp_path / "home", None)

    def test_project_ranks_before_global(self):
        assert Scope.PROJECT.rank < Scope.GLOBAL.rank
