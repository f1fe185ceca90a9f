"""Configuration handling for pwt"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from pwt.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_HOOK_TIMEOUT,
    DEFAULT_LOCK_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_STALE_LOCK_SECONDS,
    LOCKS_DIR_NAME,
    PLUGINS_DIR_NAME,
    PROJECTS_DIR_NAME,
)


def default_home() -> Path:
    """Per-user pwt directory, overridable with PWT_HOME."""
    env_home = os.environ.get("PWT_HOME")
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / ".pwt"


@dataclass
class Config:
    """Configuration for pwt with validation."""

    # Where registry, lock and plugin directories live
    home_dir: Path = field(default_factory=default_home)
    # Extra plugin directories searched after <home>/plugins
    plugin_dirs: List[Path] = field(default_factory=list)

    # Locking
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT
    stale_lock_seconds: float = DEFAULT_STALE_LOCK_SECONDS
    poll_interval: float = DEFAULT_POLL_INTERVAL

    # Plugins
    hook_timeout: float = DEFAULT_HOOK_TIMEOUT

    # Output
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_home_dir()
        self._validate_plugin_dirs()
        self._validate_positive("lock_timeout", self.lock_timeout)
        self._validate_positive("stale_lock_seconds", self.stale_lock_seconds)
        self._validate_positive("poll_interval", self.poll_interval)
        self._validate_positive("hook_timeout", self.hook_timeout)

    def _validate_home_dir(self):
        """Normalize home_dir to an absolute Path."""
        if not self.home_dir or not str(self.home_dir).strip():
            raise ValueError("home_dir cannot be empty")
        self.home_dir = Path(self.home_dir).expanduser().absolute()

    def _validate_plugin_dirs(self):
        """Validate plugin_dirs list."""
        if not isinstance(self.plugin_dirs, list):
            raise ValueError("plugin_dirs must be a list")
        self.plugin_dirs = [Path(p).expanduser() for p in self.plugin_dirs if str(p).strip()]

    @staticmethod
    def _validate_positive(name: str, value: float):
        if value is None or value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")

    @property
    def projects_dir(self) -> Path:
        return self.home_dir / PROJECTS_DIR_NAME

    @property
    def locks_dir(self) -> Path:
        return self.home_dir / LOCKS_DIR_NAME

    @property
    def user_plugin_dir(self) -> Path:
        return self.home_dir / PLUGINS_DIR_NAME

    @property
    def all_plugin_dirs(self) -> List[Path]:
        """Plugin directories in lookup order; earlier directories win on name clashes."""
        return [self.user_plugin_dir] + [p for p in self.plugin_dirs if p != self.user_plugin_dir]

    def to_dict(self) -> dict:
        """Convert config to a JSON-friendly dictionary."""
        return {
            "home_dir": str(self.home_dir),
            "plugin_dirs": [str(p) for p in self.plugin_dirs],
            "lock_timeout": self.lock_timeout,
            "stale_lock_seconds": self.stale_lock_seconds,
            "poll_interval": self.poll_interval,
            "hook_timeout": self.hook_timeout,
            "verbose": self.verbose,
            "debug": self.debug,
        }

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary."""
        # Extract only known fields
        known_fields = {
            "home_dir",
            "plugin_dirs",
            "lock_timeout",
            "stale_lock_seconds",
            "poll_interval",
            "hook_timeout",
            "verbose",
            "debug",
        }

        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)

    @classmethod
    def load(cls, home_dir: Optional[Path] = None, **overrides) -> "Config":
        """Build the effective configuration.

        Precedence, lowest first: defaults, <home>/config.json, environment
        (PWT_PLUGIN_PATH, PWT_LOCK_TIMEOUT), then explicit keyword overrides.

        Args:
            home_dir: pwt home directory; defaults to PWT_HOME or ~/.pwt
            **overrides: Config fields that take precedence over everything else

        Raises:
            ValueError: if config.json is invalid or a value fails validation
        """
        home = Path(home_dir).expanduser() if home_dir else default_home()
        values: dict = {}

        config_file = home / CONFIG_FILE_NAME
        if config_file.exists():
            try:
                with open(config_file, "r") as f:
                    file_values = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ValueError(f"Invalid config file {config_file}: {e}") from e
            if not isinstance(file_values, dict):
                raise ValueError(f"Invalid config file {config_file}: expected a JSON object")
            values.update(file_values)

        plugin_path = os.environ.get("PWT_PLUGIN_PATH")
        if plugin_path:
            values["plugin_dirs"] = [p for p in plugin_path.split(os.pathsep) if p]

        lock_timeout = os.environ.get("PWT_LOCK_TIMEOUT")
        if lock_timeout:
            try:
                values["lock_timeout"] = float(lock_timeout)
            except ValueError as e:
                raise ValueError(f"PWT_LOCK_TIMEOUT must be a number, got '{lock_timeout}'") from e

        values.update({k: v for k, v in overrides.items() if v is not None})
        values["home_dir"] = home
        return cls.from_dict(values)
