"""Result types returned by hooks, reconciliation and lifecycle operations."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

from pwt.models.worktree import WorktreeInfo, WorktreeRecord, WorktreeStatus

if TYPE_CHECKING:
    from pwt.exceptions import PwtError


class HookEvent(Enum):
    """Lifecycle points at which plugins are invoked."""

    PRE_CREATE = "pre-create"
    POST_CREATE = "post-create"
    PRE_REMOVE = "pre-remove"
    POST_REMOVE = "post-remove"

    @property
    def is_pre(self) -> bool:
        return self in (HookEvent.PRE_CREATE, HookEvent.PRE_REMOVE)


@dataclass
class HookResult:
    """Outcome of running one plugin for one event."""

    name: str
    path: str
    event: HookEvent
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0
    error: Optional[str] = None  # Launch error or timeout

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and self.error is None

    def summary(self) -> str:
        if self.error:
            return f"{self.name}: {self.error}"
        detail = self.stderr.strip().splitlines()[-1] if self.stderr.strip() else ""
        text = f"{self.name}: exit {self.returncode}"
        return f"{text} ({detail})" if detail else text


@dataclass
class ReconciledEntry:
    """One row of the merged live+registry view."""

    path: str
    branch: str
    status: WorktreeStatus
    record: Optional[WorktreeRecord] = None
    live: Optional[WorktreeInfo] = None
    notes: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "branch": self.branch,
            "status": self.status.value,
            "created_at": self.record.created_at if self.record else None,
            "tags": sorted(self.record.tags) if self.record else [],
            "locked": bool(self.live and self.live.is_locked),
            "notes": list(self.notes),
        }


@dataclass
class ReconciliationReport:
    """Classification of every worktree known to git or to the registry."""

    project: str
    initialized: bool
    entries: List[ReconciledEntry] = field(default_factory=list)
    conflicts: List["PwtError"] = field(default_factory=list)
    main: Optional[WorktreeInfo] = None

    def by_status(self, status: WorktreeStatus) -> List[ReconciledEntry]:
        return [e for e in self.entries if e.status == status]

    def find(self, path: str) -> Optional[ReconciledEntry]:
        for entry in self.entries:
            if entry.path == path:
                return entry
        return None

    @property
    def suggest_prune(self) -> bool:
        return any(e.status == WorktreeStatus.PRUNABLE for e in self.entries)

    @property
    def has_drift(self) -> bool:
        return bool(self.conflicts) or any(e.status != WorktreeStatus.ACTIVE for e in self.entries)

    def to_dict(self) -> dict:
        return {
            "project": self.project,
            "initialized": self.initialized,
            "main": self.main.path if self.main else None,
            "worktrees": [e.to_dict() for e in self.entries],
            "conflicts": [str(c) for c in self.conflicts],
            "suggest_prune": self.suggest_prune,
        }


class OperationOutcome(Enum):
    """Terminal state of a lifecycle operation."""

    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass
class OperationResult:
    """What a lifecycle operation did, and how it ended."""

    operation: str
    outcome: OperationOutcome
    project: str
    record: Optional[WorktreeRecord] = None
    report: Optional[ReconciliationReport] = None
    hook_results: List[HookResult] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error: Optional["PwtError"] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == OperationOutcome.COMPLETED

    @property
    def exit_code(self) -> int:
        if self.ok:
            return 0
        if self.error is not None:
            return int(self.error.exit_code)
        return 1
