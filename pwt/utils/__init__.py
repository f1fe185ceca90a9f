"""Utility functions for pwt."""

from .paths import (
    canonical_path,
    default_worktree_parent,
    is_same_path,
    sanitize_branch_for_path,
)

__all__ = [
    "canonical_path",
    "default_worktree_parent",
    "is_same_path",
    "sanitize_branch_for_path",
]
