"""Tests for reconciliation between git and the registry"""
import shutil
from pathlib import Path

import pytest

from pwt.models.worktree import WorktreeInfo, WorktreeRecord, WorktreeStatus
from pwt.services.git import WorktreeService
from pwt.services.reconcile_service import Reconciler
from pwt.services.registry_service import RegistryStore
from pwt.utils.paths import canonical_path


@pytest.fixture
def reconciler(config):
    return Reconciler(WorktreeService(), RegistryStore(config.projects_dir))


def _live(path, branch="b", is_main=False, is_prunable=False):
    return WorktreeInfo(path=str(path), branch_name=branch, commit_sha="abc12345", is_main=is_main,
                        is_prunable=is_prunable)


class TestClassify:
    """Test classification without touching git."""

    def test_active(self, reconciler, project, temp_dir):
        wt = temp_dir / "wt"
        wt.mkdir()
        report = reconciler.classify(
            project,
            [_live(project.root, "main", is_main=True), _live(wt, "b")],
            [WorktreeRecord(path=str(wt), branch="b")],
        )
        assert [e.status for e in report.entries] == [WorktreeStatus.ACTIVE]
        assert report.main.branch_name == "main"
        assert report.has_drift is False

    def test_prunable_when_git_says_so(self, reconciler, project, temp_dir):
        wt = temp_dir / "wt"
        report = reconciler.classify(
            project,
            [_live(project.root, is_main=True), _live(wt, is_prunable=True)],
            [WorktreeRecord(path=str(wt), branch="b")],
        )
        assert report.entries[0].status == WorktreeStatus.PRUNABLE
        assert report.suggest_prune is True

    def test_record_without_live_entry_and_directory_is_orphaned(self, reconciler, project, temp_dir):
        report = reconciler.classify(
            project,
            [_live(project.root, is_main=True)],
            [WorktreeRecord(path=str(temp_dir / "vanished"), branch="b")],
        )
        assert report.entries[0].status == WorktreeStatus.ORPHANED
        assert report.suggest_prune is False

    def test_record_without_live_entry_but_directory_is_prunable(self, reconciler, project, temp_dir):
        """Test git metadata pruned externally while the directory survived."""
        wt = temp_dir / "still-here"
        wt.mkdir()
        report = reconciler.classify(
            project,
            [_live(project.root, is_main=True)],
            [WorktreeRecord(path=str(wt), branch="b")],
        )
        assert report.entries[0].status == WorktreeStatus.PRUNABLE
        assert report.suggest_prune is True

    def test_live_without_record_is_untracked(self, reconciler, project, temp_dir):
        wt = temp_dir / "raw"
        wt.mkdir()
        report = reconciler.classify(project, [_live(project.root, is_main=True), _live(wt, "raw")], [])
        assert [(e.path, e.status) for e in report.entries] == [(str(wt), WorktreeStatus.UNTRACKED)]
        assert report.entries[0].record is None

    def test_main_worktree_is_never_untracked(self, reconciler, project):
        report = reconciler.classify(project, [_live(project.root, "main", is_main=True)], [])
        assert report.entries == []

    def test_duplicate_paths_are_conflicts_not_merged(self, reconciler, project, temp_dir):
        """Test two records for one canonical path: the later one is a conflict."""
        wt = temp_dir / "wt"
        wt.mkdir()
        alias = temp_dir / "alias"
        alias.symlink_to(wt)
        report = reconciler.classify(
            project,
            [_live(project.root, is_main=True), _live(wt, "first")],
            [WorktreeRecord(path=str(wt), branch="first"), WorktreeRecord(path=str(alias), branch="second")],
        )
        assert len(report.entries) == 1
        assert report.entries[0].record.branch == "first"
        assert len(report.conflicts) == 1
        assert report.conflicts[0].exit_code == 8
        assert report.has_drift is True

    def test_branch_change_is_noted(self, reconciler, project, temp_dir):
        wt = temp_dir / "wt"
        wt.mkdir()
        report = reconciler.classify(
            project,
            [_live(project.root, is_main=True), _live(wt, "renamed")],
            [WorktreeRecord(path=str(wt), branch="original")],
        )
        entry = report.entries[0]
        assert entry.status == WorktreeStatus.ACTIVE
        assert entry.branch == "renamed"
        assert "registered as 'original'" in entry.notes[0]


class TestReconcileWithRepo:
    """Test reconciliation against real git state."""

    def test_uninitialized_project(self, reconciler, project):
        report = reconciler.reconcile(project)
        assert report.initialized is False
        assert report.entries == []

    def test_raw_git_worktree_is_untracked(self, reconciler, engine, initialized, git_repo, temp_dir):
        target = canonical_path(temp_dir / "raw-wt")
        git_repo.git.worktree("add", "-b", "raw", target)

        report = reconciler.reconcile(initialized)

        entry = report.find(target)
        assert entry.status == WorktreeStatus.UNTRACKED
        assert entry.branch == "raw"

    def test_deleted_directory_is_prunable(self, reconciler, engine, initialized):
        created = engine.create(initialized, "doomed")
        shutil.rmtree(created.record.path)

        report = reconciler.reconcile(initialized)

        assert report.find(created.record.path).status == WorktreeStatus.PRUNABLE
        assert not Path(created.record.path).exists()
