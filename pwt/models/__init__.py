"""Data models for pwt."""

from .project import Project
from .worktree import WorktreeInfo, WorktreeRecord, WorktreeStatus
from .registry import RegistryFile
from .results import (
    HookEvent,
    HookResult,
    OperationOutcome,
    OperationResult,
    ReconciledEntry,
    ReconciliationReport,
)

__all__ = [
    "Project",
    "WorktreeInfo",
    "WorktreeRecord",
    "WorktreeStatus",
    "RegistryFile",
    "HookEvent",
    "HookResult",
    "OperationOutcome",
    "OperationResult",
    "ReconciledEntry",
    "ReconciliationReport",
]
