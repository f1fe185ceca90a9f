"""Worktree operations service for pwt (the git adapter)."""

import os
from typing import Optional, List, Dict, Any

import git

from pwt.exceptions import GitFailure
from pwt.logging_config import get_logger
from pwt.models.project import Project
from pwt.models.worktree import WorktreeInfo
from pwt.utils.paths import canonical_path

logger = get_logger(__name__)

# Attribute lines git may emit inside one `worktree list --porcelain` record
_FLAG_KEYS = {"detached", "bare", "locked", "prunable"}
_VALUE_KEYS = {"HEAD", "branch"}


def command_failure(operation: str, error: git.exc.GitCommandError, leftover_path: Optional[str] = None) -> GitFailure:
    """Build a GitFailure from a GitCommandError, keeping git's own stderr text."""
    stderr = _clean_stream(getattr(error, "stderr", "") or "")
    status = error.status if isinstance(getattr(error, "status", None), int) else None
    return GitFailure(
        operation,
        message=stderr or None,
        kind="command",
        stderr=stderr,
        status=status,
        leftover_path=leftover_path,
    )


def _clean_stream(text: str) -> str:
    """Strip GitPython's "\\n  stderr: '...'" decoration from captured output."""
    text = text.strip()
    for prefix in ("stderr: ", "stdout: "):
        if text.startswith(prefix):
            text = text[len(prefix):]
    if len(text) >= 2 and text[0] == text[-1] == "'":
        text = text[1:-1]
    return text.strip()


def parse_worktree_porcelain(output: str) -> List[WorktreeInfo]:
    """Parse `git worktree list --porcelain` output.

    Format (records separated by a blank line):
        worktree /path/to/worktree
        HEAD <sha>
        branch refs/heads/<name>     (or "detached", or "bare")
        locked [reason]              (optional)
        prunable [reason]            (optional)

    Args:
        output: Raw stdout of the porcelain command

    Returns:
        List of WorktreeInfo in git's order; the first one is the main worktree

    Raises:
        GitFailure: (kind "parse") for empty output, an attribute line outside a
            record, or a line this parser doesn't understand
    """
    if not output or not output.strip():
        raise GitFailure("worktree list", "empty output (git always lists the main worktree)", kind="parse")

    worktrees: List[WorktreeInfo] = []
    current: Optional[Dict[str, Any]] = None

    def flush():
        if current is None:
            return
        path = canonical_path(current["path"])
        is_bare = current.get("bare", False)
        # A missing directory is prunable even if this git version doesn't say so
        is_prunable = current.get("prunable", False) or (not is_bare and not os.path.exists(path))
        worktrees.append(
            WorktreeInfo(
                path=path,
                branch_name=current.get("branch", ""),
                commit_sha=current.get("HEAD", ""),
                is_main=not worktrees,
                is_locked=current.get("locked", False),
                is_bare=is_bare,
                is_prunable=is_prunable,
            )
        )

    for lineno, raw_line in enumerate(output.split("\n"), start=1):
        line = raw_line.rstrip("\r")

        if not line.strip():
            # Blank line marks end of a record
            flush()
            current = None
            continue

        key, _, value = line.partition(" ")

        if key == "worktree":
            if current is not None:
                # Some git versions omit the blank separator before the next record
                flush()
            if not value.strip():
                raise GitFailure("worktree list", f"line {lineno}: worktree line without a path", kind="parse")
            current = {"path": value}
            continue

        if current is None:
            raise GitFailure("worktree list", f"line {lineno}: '{line}' appears outside a worktree record", kind="parse")

        if key in _VALUE_KEYS:
            if not value.strip():
                raise GitFailure("worktree list", f"line {lineno}: '{key}' without a value", kind="parse")
            if key == "branch":
                # Extract branch name from "branch refs/heads/branch-name"
                current["branch"] = value[len("refs/heads/"):] if value.startswith("refs/heads/") else value
            else:
                current["HEAD"] = value
        elif key in _FLAG_KEYS:
            current[key] = True
        else:
            raise GitFailure("worktree list", f"line {lineno}: unrecognized line '{line}'", kind="parse")

    # Handle last entry if no trailing blank line
    flush()
    return worktrees


class WorktreeService:
    """Stateless adapter over `git worktree`; every call takes the project explicitly."""

    def _get_repo(self, project: Project) -> git.Repo:
        """Get a git.Repo for the project.

        A new instance per call keeps the service free of cached state. Falls
        back to the common dir when the primary worktree directory is gone.
        """
        location = project.root if project.root.exists() else project.common_dir
        try:
            return git.Repo(str(location))
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise GitFailure("open repository", f"{location}: {e}") from e

    def list_worktrees(self, project: Project) -> List[WorktreeInfo]:
        """Get detailed information about all worktrees git knows for the project.

        Returns:
            List of WorktreeInfo objects; the first entry is the main worktree

        Raises:
            GitFailure: if git fails or its output can't be parsed
        """
        repo = self._get_repo(project)
        try:
            output = repo.git.worktree("list", "--porcelain")
        except git.exc.GitCommandError as e:
            raise command_failure("worktree list", e) from e

        worktrees = parse_worktree_porcelain(output)
        logger.debug(f"Found {len(worktrees)} worktrees for {project}")
        for wt in worktrees:
            logger.debug(f"  {wt}")
        return worktrees

    def branch_exists(self, project: Project, branch: str) -> bool:
        repo = self._get_repo(project)
        try:
            repo.git.rev_parse("--verify", "--quiet", f"refs/heads/{branch}")
            return True
        except git.exc.GitCommandError:
            return False

    def add_worktree(self, project: Project, path: str, branch: str, base_ref: Optional[str] = None) -> WorktreeInfo:
        """Create a worktree at path with branch checked out.

        An existing branch is checked out as-is; a new one is created from
        base_ref (or HEAD). If git fails after creating the directory, the
        directory is left alone and reported through GitFailure.leftover_path.

        Args:
            project: Project to add the worktree to
            path: Absolute target directory
            branch: Branch to check out (created when missing)
            base_ref: Start point for a new branch

        Returns:
            The live WorktreeInfo for the new worktree

        Raises:
            GitFailure: if git exits non-zero
        """
        repo = self._get_repo(project)
        existed_before = os.path.exists(path)

        if self.branch_exists(project, branch):
            if base_ref:
                logger.warning(f"Branch '{branch}' already exists; ignoring base ref '{base_ref}'")
            args = ["add", path, branch]
        else:
            args = ["add", "-b", branch, path]
            if base_ref:
                args.append(base_ref)

        logger.debug(f"git worktree {' '.join(args)}")
        try:
            repo.git.worktree(*args)
        except git.exc.GitCommandError as e:
            leftover = path if (not existed_before and os.path.exists(path)) else None
            failure = command_failure("worktree add", e, leftover_path=leftover)
            logger.error(f"Failed to add worktree at {path}: {failure}")
            raise failure from e

        logger.info(f"Added worktree at {path} for branch {branch}")
        target = canonical_path(path)
        for wt in self.list_worktrees(project):
            if wt.path == target:
                return wt
        raise GitFailure("worktree add", f"git reported success but {target} is not in the worktree list")

    def remove_worktree(self, project: Project, path: str, force: bool = False) -> None:
        """Remove a worktree at the specified path.

        Args:
            project: Project owning the worktree
            path: Path to the worktree directory
            force: Force removal even if working tree is dirty or locked

        Raises:
            GitFailure: if git exits non-zero
        """
        repo = self._get_repo(project)
        args = ["remove", path]
        if force:
            args.append("--force")

        try:
            repo.git.worktree(*args)
        except git.exc.GitCommandError as e:
            failure = command_failure("worktree remove", e)
            logger.error(f"Failed to remove worktree at {path}: {failure}")
            raise failure from e

        logger.info(f"Removed worktree at {path}")

    def prune_worktrees(self, project: Project) -> int:
        """Prune stale worktree metadata.

        Returns:
            Number of entries that disappeared from git's worktree list

        Raises:
            GitFailure: if git exits non-zero or its output can't be parsed
        """
        before = len(self.list_worktrees(project))
        repo = self._get_repo(project)
        try:
            repo.git.worktree("prune")
        except git.exc.GitCommandError as e:
            failure = command_failure("worktree prune", e)
            logger.error(f"Failed to prune worktrees: {failure}")
            raise failure from e

        removed = max(0, before - len(self.list_worktrees(project)))
        logger.info(f"Pruned {removed} stale worktree entr{'y' if removed == 1 else 'ies'}")
        return removed
