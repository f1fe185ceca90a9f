"""Worktree data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Set


class WorktreeStatus(Enum):
    """Reconciled status of a worktree."""

    ACTIVE = "active"
    PRUNABLE = "prunable"
    ORPHANED = "orphaned"
    UNTRACKED = "untracked"


@dataclass
class WorktreeInfo:
    """A worktree as reported live by git."""

    path: str
    branch_name: str  # Empty for detached HEAD
    commit_sha: str
    is_main: bool  # Is this the main working tree?
    is_locked: bool = False
    is_bare: bool = False
    is_prunable: bool = False  # Git reports the gitdir is gone, or directory missing

    def __str__(self) -> str:
        """String representation of worktree."""
        status = "prunable" if self.is_prunable else "active"
        main_marker = " (main)" if self.is_main else ""
        branch = self.branch_name or f"(detached {self.commit_sha[:8]})"
        return f"{branch} @ {self.path}{main_marker} [{status}]"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass
class WorktreeRecord:
    """A worktree as tracked in the pwt registry."""

    path: str
    branch: str
    created_at: str = field(default_factory=_utc_now)
    tags: Set[str] = field(default_factory=set)
    base_ref: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "branch": self.branch,
            "created_at": self.created_at,
            "tags": sorted(self.tags),
            "base_ref": self.base_ref,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorktreeRecord":
        """Create a record from its serialized form.

        Raises:
            KeyError, TypeError, ValueError: if required fields are missing or malformed
        """
        path = data["path"]
        branch = data["branch"]
        if not isinstance(path, str) or not path:
            raise ValueError("record path must be a non-empty string")
        if not isinstance(branch, str):
            raise ValueError(f"record branch for {path} must be a string")
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise ValueError(f"record tags for {path} must be a list")
        return cls(
            path=path,
            branch=branch,
            created_at=data.get("created_at") or _utc_now(),
            tags={str(t) for t in tags},
            base_ref=data.get("base_ref"),
        )
