"""Shared constants for pwt."""

from dataclasses import dataclass
from enum import IntEnum
from typing import List


class ExitCode(IntEnum):
    """Process exit codes, distinct per failure class for scripting consumers."""

    OK = 0
    ERROR = 1
    USAGE = 2
    NOT_INITIALIZED = 3
    GIT_FAILURE = 4
    IO_FAILURE = 5
    LOCK_TIMEOUT = 6
    HOOK_FAILURE = 7
    REGISTRY_CONFLICT = 8
    NOT_FOUND = 9


# Registry on-disk format
REGISTRY_VERSION = 1
PROJECTS_DIR_NAME = "projects"
LOCKS_DIR_NAME = "locks"
PLUGINS_DIR_NAME = "plugins"
CONFIG_FILE_NAME = "config.json"
LOG_FILE_NAME = "pwt.log"

# Defaults for Config
DEFAULT_LOCK_TIMEOUT = 10.0
DEFAULT_STALE_LOCK_SECONDS = 300.0
DEFAULT_POLL_INTERVAL = 0.1
DEFAULT_HOOK_TIMEOUT = 60.0

# Suffix for the sibling directory that holds a project's worktrees
WORKTREES_DIR_SUFFIX = "-worktrees"


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("path", "Path", 0),
    ColumnDefinition("branch", "Branch", 24),
    ColumnDefinition("status", "Status", 10),
    ColumnDefinition("created", "Created", 12),
    ColumnDefinition("tags", "Tags", 16),
    ColumnDefinition("notes", "Notes", 30),
]


# Rich color names per worktree status
STATUS_COLORS = {
    "active": "green",
    "prunable": "yellow",
    "orphaned": "red",
    "untracked": "cyan",
}


LEGEND_TEXT = """
Legend:
active    = tracked by pwt and present in git
prunable  = directory missing or git metadata gone (run 'pwt prune')
orphaned  = tracked by pwt but unknown to git
untracked = known to git but not to pwt (run 'pwt adopt <path>')
"""
