"""
Project Detector: which project owns a context?

Resolvers turn a TriggerContext into a project name, or None when the
context belongs to no project. They never raise for "no project"; the
match engine then simply fails closed.

Two strategies are registered (selected by the `projects.resolver` setting):
1. "git_root" (default): enclosing git repository. Name comes from the
   origin remote URL, then the repository root directory name.
2. "manifest": nearest project manifest walking up from the file
   (pyproject.toml, package.json, Cargo.toml, go.mod) or a .projectile
   marker, which names the project after its directory.

Design Principles:
- Zero human declaration required
- Stable names across sessions
- Graceful fallback chain
"""

from __future__ import annotations

import json
import re
import subprocess
from pathlib import Path
from typing import Callable, Dict, Optional

from ._logging import log_debug
from .context import TriggerContext
from .errors import ConfigurationError

# =============================================================================
# GIT DETECTION
# Git operations are expensive (~50-100ms each). Cache per directory.
# =============================================================================

_GIT_ROOT_CACHE: Dict[str, str] = {}
_GIT_REMOTE_CACHE: Dict[str, str] = {}


def clear_caches() -> None:
    _GIT_ROOT_CACHE.clear()
    _GIT_REMOTE_CACHE.clear()


def _run_git(args: list, cwd: str) -> Optional[str]:
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=2,
            cwd=cwd,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as e:
        log_debug("project_detector", f"git {' '.join(args)} failed in {cwd}: {e}")
    return None


def get_git_root(directory: str) -> Optional[str]:
    """Get git repository root path for `directory` (cached)."""
    if directory in _GIT_ROOT_CACHE:
        return _GIT_ROOT_CACHE[directory] or None

    root = _run_git(["rev-parse", "--show-toplevel"], directory) or ""
    # Cache negative result too
    _GIT_ROOT_CACHE[directory] = root
    return root or None


def get_git_remote(root: str) -> Optional[str]:
    """Get git remote origin URL (cached)."""
    if root in _GIT_REMOTE_CACHE:
        return _GIT_REMOTE_CACHE[root] or None

    remote = _run_git(["remote", "get-url", "origin"], root) or ""
    _GIT_REMOTE_CACHE[root] = remote
    return remote or None


def extract_repo_name(remote_url: str) -> str:
    """Extract repository name from git remote URL.

    Examples:
    - git@github.com:user/repo.git -> repo
    - https://github.com/user/repo.git -> repo
    - https://github.com/user/repo -> repo
    """
    if not remote_url:
        return ""

    # Remove .git suffix
    url = remote_url.rstrip("/").removesuffix(".git")

    # Extract last path component
    if "/" in url:
        return url.split("/")[-1]
    if ":" in url:
        return url.split(":")[-1].split("/")[-1]

    return url


# =============================================================================
# PROJECT FILE DETECTION
# =============================================================================

# Project file patterns: (filename, regex_pattern, is_json, name_transform)
_PROJECT_FILES = (
    ("package.json", None, True, None),
    ("pyproject.toml", r'^name\s*=\s*["\']([^"\']+)["\']', False, None),
    ("Cargo.toml", r'^name\s*=\s*["\']([^"\']+)["\']', False, None),
    ("go.mod", r"^module\s+(\S+)", False, lambda m: m.split("/")[-1]),
)

PROJECT_MARKER = ".projectile"


def _parse_project_file(path: Path, pattern, is_json: bool, transform) -> Optional[str]:
    """Parse a single project file and extract its declared name."""
    try:
        if is_json:
            with open(path) as f:
                data = json.load(f)
            name = data.get("name") if isinstance(data, dict) else None
            return name or None
        content = path.read_text()
        match = re.search(pattern, content, re.MULTILINE)
        if match:
            name = match.group(1)
            return transform(name) if transform else name
    except (json.JSONDecodeError, OSError, UnicodeDecodeError):
        log_debug("project_detector", f"unreadable project file {path}")
    return None


def find_project_file(root: Path) -> Optional[tuple[str, str]]:
    """Find a project file in `root` and return (file_type, project_name)."""
    for filename, pattern, is_json, transform in _PROJECT_FILES:
        path = root / filename
        if path.is_file():
            name = _parse_project_file(path, pattern, is_json, transform)
            if name:
                return (filename, name)
    if (root / PROJECT_MARKER).exists():
        return (PROJECT_MARKER, root.name)
    return None


def _context_dir(context: TriggerContext) -> Optional[Path]:
    if not context.path:
        return None
    path = Path(context.path)
    try:
        return path if path.is_dir() else path.parent
    except OSError:
        return None


# =============================================================================
# RESOLVERS
# =============================================================================


class ProjectResolver:
    """Turns a context into its owning project name."""

    name = ""

    def resolve(self, context: TriggerContext) -> Optional[str]:
        raise NotImplementedError


# Format: {name: resolver_class}
RESOLVERS: Dict[str, Callable[[], ProjectResolver]] = {}


def register_resolver(name: str):
    """Decorator to register a resolver class under a settings name."""

    def decorator(cls):
        cls.name = name
        RESOLVERS[name] = cls
        return cls

    return decorator


@register_resolver("git_root")
class GitRootResolver(ProjectResolver):
    """Project = enclosing git repository."""

    def resolve(self, context: TriggerContext) -> Optional[str]:
        directory = _context_dir(context)
        if directory is None or not directory.exists():
            return None

        root = get_git_root(str(directory))
        if not root:
            return None

        remote = get_git_remote(root)
        name = extract_repo_name(remote) if remote else ""
        return name or Path(root).name or None


@register_resolver("manifest")
class ManifestResolver(ProjectResolver):
    """Project = nearest manifest or .projectile marker above the file."""

    def resolve(self, context: TriggerContext) -> Optional[str]:
        directory = _context_dir(context)
        if directory is None:
            return None

        current = directory
        home = Path.home()
        while True:
            found = find_project_file(current)
            if found:
                log_debug("project_detector", f"{context} -> {found[1]} via {found[0]}")
                return found[1]
            # Don't go above home directory
            if current == home or current == current.parent:
                return None
            current = current.parent


def get_resolver(name: str) -> ProjectResolver:
    """Instantiate the resolver registered under `name`.

    Raises:
        ConfigurationError: If no resolver has that name
    """
    try:
        return RESOLVERS[name]()
    except KeyError:
        known = ", ".join(sorted(RESOLVERS))
        raise ConfigurationError(f"unknown project resolver {name!r} (known: {known})")


def resolve_project(resolver: ProjectResolver, context: TriggerContext) -> Optional[str]:
    """Run a resolver, treating any failure as "no project"."""
    try:
        return resolver.resolve(context)
    except Exception as e:
        log_debug("project_detector", f"{resolver.name} failed for {context}: {e}")
        return None
