"""Path helpers shared by the git adapter, registry and reconciler."""

import os
from pathlib import Path
from typing import Union

from pwt.constants import WORKTREES_DIR_SUFFIX


def canonical_path(path: Union[str, os.PathLike]) -> str:
    """Return the absolute, symlink-resolved form of path.

    Works for paths that no longer exist: the existing prefix is resolved and
    the rest is appended as-is, so a deleted worktree keeps the same key it
    had while it existed.
    """
    return os.path.realpath(os.path.abspath(os.path.expanduser(os.fspath(path))))


def is_same_path(a: Union[str, os.PathLike], b: Union[str, os.PathLike]) -> bool:
    return canonical_path(a) == canonical_path(b)


def sanitize_branch_for_path(branch: str) -> str:
    """Turn a branch name into a single directory name (feat/x -> feat-x)."""
    name = branch.strip().replace("/", "-").replace(os.sep, "-")
    return name.lstrip(".") or "worktree"


def default_worktree_parent(root: Path) -> Path:
    """Sibling directory that holds a project's worktrees: <parent>/<name>-worktrees."""
    return root.parent / f"{root.name}{WORKTREES_DIR_SUFFIX}"
