"""Resolve a directory to the Project it belongs to."""

from pathlib import Path
from typing import Union

import git

from pwt.exceptions import GitFailure
from pwt.logging_config import get_logger
from pwt.models.project import Project
from pwt.services.git.worktrees import command_failure, parse_worktree_porcelain
from pwt.utils.paths import canonical_path

logger = get_logger(__name__)


def resolve_project(path: Union[str, Path]) -> Project:
    """Find the Project for any directory inside a repository or one of its worktrees.

    Args:
        path: A directory inside the repository (main or linked worktree)

    Returns:
        Project identified by the canonical git common directory

    Raises:
        GitFailure: if path is not inside a git repository or git fails
    """
    try:
        repo = git.Repo(str(path), search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
        raise GitFailure("rev-parse", f"{path} is not inside a git repository") from e

    try:
        common_dir = repo.git.rev_parse("--git-common-dir")
        porcelain = repo.git.worktree("list", "--porcelain")
    except git.exc.GitCommandError as e:
        raise command_failure("rev-parse", e) from e
    finally:
        repo.close()

    # rev-parse prints the common dir relative to the directory git ran in
    common = Path(common_dir)
    if not common.is_absolute():
        common = Path(repo.working_dir or repo.git_dir) / common
    common = Path(canonical_path(common))

    main = parse_worktree_porcelain(porcelain)[0]
    root = common if main.is_bare else Path(main.path)

    project = Project(common_dir=common, root=root)
    logger.debug(f"Resolved {path} to project {project.common_dir}")
    return project
