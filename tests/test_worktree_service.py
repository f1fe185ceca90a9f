"""Tests for the git worktree adapter"""
import shutil
from pathlib import Path

import pytest

from pwt.exceptions import GitFailure
from pwt.services.git import WorktreeService, parse_worktree_porcelain, resolve_project
from pwt.utils.paths import canonical_path


class TestParsePorcelain:
    """Test parsing of `git worktree list --porcelain`."""

    def test_parse_main_and_linked(self, temp_dir, porcelain_two_worktrees):
        """Test a main worktree followed by a linked one."""
        main = temp_dir / "main"
        feature = temp_dir / "feature"
        main.mkdir()
        feature.mkdir()

        worktrees = parse_worktree_porcelain(porcelain_two_worktrees.format(main=main, feature=feature))

        assert len(worktrees) == 2
        assert worktrees[0].is_main is True
        assert worktrees[0].branch_name == "main"
        assert worktrees[1].is_main is False
        assert worktrees[1].branch_name == "feature/x"
        assert worktrees[1].commit_sha.startswith("2222")
        assert worktrees[1].is_prunable is False

    def test_parse_without_trailing_blank_line(self, temp_dir):
        """Test the last record is kept when output lacks a final blank line."""
        output = f"worktree {temp_dir}\nHEAD abc\nbranch refs/heads/main"
        worktrees = parse_worktree_porcelain(output)
        assert [wt.branch_name for wt in worktrees] == ["main"]

    def test_parse_detached_locked_prunable(self, temp_dir):
        """Test flag lines, including ones carrying a reason."""
        output = (
            f"worktree {temp_dir}\nHEAD abc\nbranch refs/heads/main\n\n"
            f"worktree {temp_dir / 'gone'}\nHEAD def\ndetached\n"
            "locked on a usb stick\nprunable gitdir file points to non-existent location\n\n"
        )
        worktrees = parse_worktree_porcelain(output)

        linked = worktrees[1]
        assert linked.branch_name == ""
        assert linked.is_locked is True
        assert linked.is_prunable is True

    def test_parse_missing_directory_is_prunable(self, temp_dir):
        """Test a missing directory is prunable even without git's prunable line."""
        output = (
            f"worktree {temp_dir}\nHEAD abc\nbranch refs/heads/main\n\n"
            f"worktree {temp_dir / 'deleted'}\nHEAD def\nbranch refs/heads/old\n\n"
        )
        assert parse_worktree_porcelain(output)[1].is_prunable is True

    def test_parse_bare_main(self, temp_dir):
        """Test a bare repository's main entry is never prunable."""
        output = f"worktree {temp_dir / 'repo.git'}\nbare\n\n"
        worktrees = parse_worktree_porcelain(output)
        assert worktrees[0].is_bare is True
        assert worktrees[0].is_prunable is False

    @pytest.mark.parametrize("output", ["", "   \n\n"])
    def test_parse_empty_output(self, output):
        """Test empty output is a parse failure, not an empty list."""
        with pytest.raises(GitFailure) as exc_info:
            parse_worktree_porcelain(output)
        assert exc_info.value.kind == "parse"

    def test_parse_unknown_line(self, temp_dir):
        """Test an unrecognized attribute line is reported, not dropped."""
        output = f"worktree {temp_dir}\nHEAD abc\nsomething odd\n\n"
        with pytest.raises(GitFailure, match="unrecognized line"):
            parse_worktree_porcelain(output)

    def test_parse_attribute_outside_record(self):
        """Test an attribute before any worktree line."""
        with pytest.raises(GitFailure, match="outside a worktree record"):
            parse_worktree_porcelain("HEAD abc\nworktree /x\n")

    def test_parse_branch_without_value(self, temp_dir):
        with pytest.raises(GitFailure, match="without a value"):
            parse_worktree_porcelain(f"worktree {temp_dir}\nbranch\n")


class TestWorktreeServiceWithRepo:
    """Test the adapter against a real repository."""

    def test_list_main_only(self, project):
        """Test a fresh repository lists just its main worktree."""
        worktrees = WorktreeService().list_worktrees(project)
        assert len(worktrees) == 1
        assert worktrees[0].is_main
        assert worktrees[0].path == str(project.root)

    def test_add_new_branch(self, project, temp_dir):
        """Test adding a worktree creates the branch when it doesn't exist."""
        service = WorktreeService()
        target = canonical_path(temp_dir / "wt-new")

        info = service.add_worktree(project, target, "feature-new")

        assert Path(target, "README.md").exists()
        assert info.branch_name == "feature-new"
        assert service.branch_exists(project, "feature-new")

    def test_add_existing_branch(self, project, git_repo, temp_dir):
        """Test adding a worktree for a branch that already exists."""
        git_repo.git.branch("existing")
        service = WorktreeService()

        info = service.add_worktree(project, canonical_path(temp_dir / "wt-existing"), "existing")

        assert info.branch_name == "existing"

    def test_add_with_base_ref(self, project, git_repo, temp_dir):
        """Test a new branch starts at the given base ref."""
        base_sha = git_repo.head.commit.hexsha
        (Path(git_repo.working_dir) / "later.txt").write_text("later\n")
        git_repo.index.add(["later.txt"])
        git_repo.index.commit("Later commit")

        info = WorktreeService().add_worktree(project, canonical_path(temp_dir / "wt-base"), "from-base", base_sha)

        assert info.commit_sha == base_sha

    def test_add_branch_checked_out_elsewhere_fails(self, project, temp_dir):
        """Test git refuses a branch that's already checked out, and nothing is left behind."""
        target = canonical_path(temp_dir / "wt-main")

        with pytest.raises(GitFailure) as exc_info:
            WorktreeService().add_worktree(project, target, "main")

        assert exc_info.value.kind == "command"
        assert exc_info.value.stderr
        assert len(WorktreeService().list_worktrees(project)) == 1

    def test_remove_worktree(self, project, temp_dir):
        service = WorktreeService()
        target = canonical_path(temp_dir / "wt-remove")
        service.add_worktree(project, target, "to-remove")

        service.remove_worktree(project, target)

        assert not Path(target).exists()
        assert [wt.path for wt in service.list_worktrees(project)] == [str(project.root)]

    def test_remove_dirty_worktree_requires_force(self, project, temp_dir):
        """Test a dirty worktree is only removed with force."""
        service = WorktreeService()
        target = canonical_path(temp_dir / "wt-dirty")
        service.add_worktree(project, target, "dirty")
        Path(target, "scratch.txt").write_text("uncommitted\n")

        with pytest.raises(GitFailure):
            service.remove_worktree(project, target)
        assert Path(target).exists()

        service.remove_worktree(project, target, force=True)
        assert not Path(target).exists()

    def test_prune_counts_removed_entries(self, project, temp_dir):
        """Test prune reports how many stale entries it removed."""
        service = WorktreeService()
        target = canonical_path(temp_dir / "wt-prune")
        service.add_worktree(project, target, "to-prune")
        shutil.rmtree(target)

        assert service.list_worktrees(project)[1].is_prunable
        assert service.prune_worktrees(project) == 1
        assert service.prune_worktrees(project) == 0


class TestResolveProject:
    """Test project identity resolution."""

    def test_resolve_from_subdirectory(self, git_repo):
        subdir = Path(git_repo.working_dir) / "src"
        subdir.mkdir()
        project = resolve_project(subdir)
        assert project.root == Path(canonical_path(git_repo.working_dir))
        assert project.common_dir == Path(canonical_path(git_repo.git_dir))

    def test_resolve_from_linked_worktree(self, project, temp_dir):
        """Test a linked worktree resolves to the same project as the main one."""
        target = canonical_path(temp_dir / "wt-linked")
        WorktreeService().add_worktree(project, target, "linked")

        linked_project = resolve_project(target)

        assert linked_project == project
        assert linked_project.key == project.key

    def test_resolve_outside_repository(self, temp_dir):
        plain = temp_dir / "not-a-repo"
        plain.mkdir()
        with pytest.raises(GitFailure, match="not inside a git repository"):
            resolve_project(plain)
