"""Reconciler: compare git's live worktree list with the pwt registry."""
import os
from typing import Dict, List, Optional

from pwt.exceptions import NotInitialized, RegistryConflict
from pwt.logging_config import get_logger
from pwt.models.project import Project
from pwt.models.registry import RegistryFile
from pwt.models.results import ReconciledEntry, ReconciliationReport
from pwt.models.worktree import WorktreeInfo, WorktreeRecord, WorktreeStatus
from pwt.services.git.worktrees import WorktreeService
from pwt.services.registry_service import RegistryStore
from pwt.utils.paths import canonical_path

logger = get_logger(__name__)


class Reconciler:
    """Classifies every worktree as active, prunable, orphaned or untracked.

    Read-only: it never writes the registry and never runs a mutating git
    command. Untracked worktrees are reported, never adopted.
    """

    def __init__(self, worktree_service: WorktreeService, registry_store: RegistryStore):
        self.worktree_service = worktree_service
        self.registry_store = registry_store

    def reconcile(self, project: Project) -> ReconciliationReport:
        """Build a reconciliation report for project.

        A project without a registry is reconciled against an empty record
        set, so every linked worktree shows up as untracked.

        Raises:
            GitFailure: if the live worktree list can't be obtained
            IOFailure: if the registry exists but can't be read
        """
        live = self.worktree_service.list_worktrees(project)
        try:
            registry: Optional[RegistryFile] = self.registry_store.load(project)
        except NotInitialized:
            registry = None

        records = registry.records if registry else []
        report = self.classify(project, live, records)
        report.initialized = registry is not None
        return report

    def classify(self, project: Project, live: List[WorktreeInfo], records: List[WorktreeRecord]) -> ReconciliationReport:
        """Merge a live list and a record list into a report (pure, no I/O beyond stat)."""
        report = ReconciliationReport(project=str(project.root), initialized=True)

        live_by_path: Dict[str, WorktreeInfo] = {}
        for wt in live:
            if wt.is_main:
                report.main = wt
            live_by_path[wt.path] = wt

        # Key registry records by canonical path; a second record for the same
        # path is a conflict, reported and left out of the view
        records_by_path: Dict[str, WorktreeRecord] = {}
        for record in records:
            key = canonical_path(record.path)
            if key in records_by_path:
                first = records_by_path[key]
                conflict = RegistryConflict(
                    key,
                    f"registry holds more than one record for this path "
                    f"(branches '{first.branch}' and '{record.branch}')",
                )
                logger.warning(str(conflict))
                report.conflicts.append(conflict)
                continue
            records_by_path[key] = record

        for path, record in records_by_path.items():
            wt = live_by_path.get(path)
            if wt is not None:
                report.entries.append(self._classify_tracked(path, record, wt))
            elif os.path.isdir(path):
                # Directory is there but git no longer knows it
                report.entries.append(
                    ReconciledEntry(
                        path=path,
                        branch=record.branch,
                        status=WorktreeStatus.PRUNABLE,
                        record=record,
                        notes=["git metadata missing; 'pwt prune' drops the record and keeps the directory"],
                    )
                )
            else:
                report.entries.append(
                    ReconciledEntry(
                        path=path,
                        branch=record.branch,
                        status=WorktreeStatus.ORPHANED,
                        record=record,
                        notes=["unknown to git and directory missing"],
                    )
                )

        for path, wt in live_by_path.items():
            if path in records_by_path or wt.is_main or wt.is_bare:
                continue
            notes = ["created outside pwt; run 'pwt adopt' to track"]
            if wt.is_prunable:
                notes.append("directory missing")
            report.entries.append(
                ReconciledEntry(
                    path=path,
                    branch=wt.branch_name,
                    status=WorktreeStatus.UNTRACKED,
                    live=wt,
                    notes=notes,
                )
            )

        if report.has_drift:
            counts = {s.value: len(report.by_status(s)) for s in WorktreeStatus if s != WorktreeStatus.ACTIVE}
            logger.info(f"Drift in {project}: {counts}, {len(report.conflicts)} conflict(s)")
        return report

    @staticmethod
    def _classify_tracked(path: str, record: WorktreeRecord, wt: WorktreeInfo) -> ReconciledEntry:
        notes = []
        if wt.is_prunable:
            status = WorktreeStatus.PRUNABLE
            notes.append("directory missing; run 'pwt prune'")
        else:
            status = WorktreeStatus.ACTIVE

        branch = wt.branch_name or record.branch
        if wt.branch_name != record.branch:
            current = wt.branch_name or f"detached at {wt.commit_sha[:8]}"
            notes.append(f"registered as '{record.branch}', now {current}")
        if wt.is_locked:
            notes.append("locked")

        return ReconciledEntry(path=path, branch=branch, status=status, record=record, live=wt, notes=notes)
