"""
Centralized configuration for autoclock.

Loads settings from ~/.autoclock/config/settings.json (or $AUTOCLOCK_CONFIG)
with sensible defaults. Supports hot-reload on file change via mtime
checking, so an allow-list edited between two context switches is seen by
the second one.
"""

import copy
import json
import os
import time
from pathlib import Path
from typing import Any, Optional

# =============================================================================
# CONFIG PATHS
# =============================================================================

CONFIG_DIR = Path.home() / ".autoclock" / "config"
DEFAULT_SETTINGS_FILE = CONFIG_DIR / "settings.json"


def settings_path() -> Path:
    """Settings file location ($AUTOCLOCK_CONFIG overrides the default)."""
    override = os.environ.get("AUTOCLOCK_CONFIG")
    if override:
        return Path(override).expanduser()
    return DEFAULT_SETTINGS_FILE


# =============================================================================
# DEFAULT VALUES (used when config file missing or key not found)
# =============================================================================

DEFAULTS = {
    "projects": {
        "allow_list": [],
        "always": False,
        "resolver": "git_root",
    },
    "tasks": {
        "sources": [],
        "query": "/!",  # any not-done TODO keyword
        "todo_keywords": ["TODO", "NEXT", "WAITING", "|", "DONE", "CANCELLED"],
    },
    "display": {
        "breadcrumb_width": 80,
        "separator": "/",
        "color": True,
    },
    "clock": {
        "idle_minutes": None,  # None disables auto clock-out
    },
}

# =============================================================================
# CONFIG LOADER WITH HOT-RELOAD
# =============================================================================


class ClockConfig:
    """Configuration loader with mtime-based hot-reload."""

    def __init__(self, path: Optional[Path] = None, check_interval: float = 5.0):
        self._path = path
        self._config: dict = {}
        self._mtime: float = 0
        self._last_check: float = 0
        self._check_interval = check_interval
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path if self._path is not None else settings_path()

    def _should_reload(self) -> bool:
        """Check if config file has changed since last load."""
        if not self._loaded:
            return True

        now = time.time()
        if now - self._last_check < self._check_interval:
            return False
        self._last_check = now

        if not self.path.exists():
            return bool(self._config)

        current_mtime = self.path.stat().st_mtime
        return current_mtime != self._mtime

    def _load(self) -> None:
        """Load config from file."""
        self._loaded = True
        self._last_check = time.time()
        path = self.path
        if path.exists():
            try:
                self._config = json.loads(path.read_text())
                self._mtime = path.stat().st_mtime
            except (json.JSONDecodeError, OSError):
                self._config = {}
        else:
            self._config = {}

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Get a config value with fallback to defaults."""
        if self._should_reload():
            self._load()

        # Try loaded config first
        if section in self._config and key in self._config[section]:
            return self._config[section][key]

        # Fall back to defaults
        if section in DEFAULTS and key in DEFAULTS[section]:
            return copy.deepcopy(DEFAULTS[section][key])

        return default

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        if self._should_reload():
            self._load()

        result = copy.deepcopy(DEFAULTS.get(section, {}))
        result.update(self._config.get(section, {}))
        return result

    def set(self, section: str, key: str, value: Any) -> None:
        """Override a value in memory (not written back to disk)."""
        if self._should_reload():
            self._load()
        self._config.setdefault(section, {})[key] = value

    def reload(self) -> None:
        """Force reload config from disk."""
        self._load()


# =============================================================================
# SINGLETON INSTANCE
# =============================================================================

# Every access stats the settings file, so an edit is seen by the next evaluation
config = ClockConfig(check_interval=0)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def get_allow_list(cfg: ClockConfig = config) -> list:
    """Project names eligible for automatic clock-in."""
    return list(cfg.get("projects", "allow_list", []) or [])


def get_always(cfg: ClockConfig = config) -> bool:
    """True when every context is eligible regardless of its project."""
    return bool(cfg.get("projects", "always", False))


def get_resolver_name(cfg: ClockConfig = config) -> str:
    return cfg.get("projects", "resolver", "git_root")


def get_task_sources(cfg: ClockConfig = config) -> list[str]:
    """Configured org files, in order, with ~ expanded."""
    sources = cfg.get("tasks", "sources", []) or []
    return [str(Path(s).expanduser()) for s in sources]


def get_query(cfg: ClockConfig = config) -> str:
    return cfg.get("tasks", "query", "/!")


def get_todo_keywords(cfg: ClockConfig = config) -> list[str]:
    return list(cfg.get("tasks", "todo_keywords", DEFAULTS["tasks"]["todo_keywords"]))


def get_idle_minutes(cfg: ClockConfig = config) -> Optional[float]:
    """Idle window before auto clock-out, or None when not configured."""
    value = cfg.get("clock", "idle_minutes", None)
    if value is None:
        return None
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        return None
    return minutes if minutes > 0 else None


def get_display(cfg: ClockConfig = config) -> dict:
    """Breadcrumb width, separator and color flag."""
    return cfg.get_section("display")
