"""Scope resolution — project-local versus global installs.

A project root is the nearest ancestor of the working directory containing a
``.aspects/`` directory or an ``.aspectsrc`` marker file.  Discovery only
reads the filesystem; it never creates directories.
"""

from __future__ import annotations

import logging
from pathlib import Path

from aspects.core.errors import AspectsError
from aspects.models.records import Scope

logger = logging.getLogger(__name__)

PROJECT_DIR_NAME = ".aspects"
PROJECT_MARKER_FILE = ".aspectsrc"
STATE_FILENAME = "config.json"
ARTIFACTS_DIR_NAME = "aspects"


class ScopeError(AspectsError):
    """Raised when project scope is requested outside any project."""


class ScopeResolver:
    """Discovers and memoizes the project root.

    The first call to :meth:`discover_project_root` wins; the working
    directory is assumed stable for one command invocation.
    """

    def __init__(self, home: Path | None = None) -> None:
        self._home = home
        self._resolved = False
        self._root: Path | None = None

    @property
    def home(self) -> Path | None:
        """The global directory, which discovery never treats as a project."""
        return self._home

    @home.setter
    def home(self, value: Path | None) -> None:
        self._home = value

    def discover_project_root(self, cwd: Path | str | None = None) -> Path | None:
        if self._resolved:
            return self._root
        start = Path(cwd) if cwd is not None else Path.cwd()
        self._root = find_project_root(start, home=self._home)
        self._resolved = True
        if self._root is not None:
            logger.debug("Project root: %s", self._root)
        return self._root

    def reset(self) -> None:
        """Forget the memoized root."""
        self._resolved = False
        self._root = None


def find_project_root(start: Path, home: Path | None = None) -> Path | None:
    """Walk from *start* up to the filesystem root looking for a marker.

    A directory whose ``.aspects/`` is the global *home* is not a project.
    """
    current = start.resolve()
    global_dir = home.resolve() if home is not None else None
    for directory in (current, *current.parents):
        if global_dir is not None and directory / PROJECT_DIR_NAME == global_dir:
            continue
        if (directory / PROJECT_DIR_NAME).is_dir() or (directory / PROJECT_MARKER_FILE).is_file():
            return directory
    return None


def resolve_scope(explicit: Scope | None, project_root: Path | None) -> Scope:
    """Explicit flag > discovered project root > global."""
    if explicit is not None:
        return explicit
    return Scope.PROJECT if project_root is not None else Scope.GLOBAL


def scope_dir(scope: Scope, home: Path, project_root: Path | None) -> Path:
    """The storage directory for *scope*.

    Raises
    ------
    ScopeError
        If *scope* is project but no project root is known.
    """
    if scope is Scope.GLOBAL:
        return home
    if project_root is None:
        raise ScopeError(
            "Not inside a project (no .aspects/ directory or .aspectsrc file found). "
            "Run 'aspects init' or use --global."
        )
    return project_root / PROJECT_DIR_NAME


# Process-wide resolver used by the CLI.
_default_resolver = ScopeResolver()


def discover_project_root(
    cwd: Path | str | None = None, home: Path | None = None
) -> Path | None:
    """Memoized discovery through the process-wide resolver."""
    if home is not None:
        _default_resolver.home = home
    return _default_resolver.discover_project_root(cwd)


def reset_project_root_cache() -> None:
    _default_resolver.reset()
