"""Git-related services for pwt."""

from .repository import resolve_project
from .worktrees import WorktreeService, parse_worktree_porcelain

__all__ = [
    "WorktreeService",
    "parse_worktree_porcelain",
    "resolve_project",
]
