"""Project model."""

import hashlib
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Project:
    """A git repository tracked by pwt.

    Identity is the canonical path of the git common directory, so every
    linked worktree of a repository resolves to the same Project.
    """

    common_dir: Path
    root: Path  # Primary worktree directory

    @property
    def key(self) -> str:
        """Stable file-name-safe key for the project's registry and lock files."""
        return hashlib.md5(str(self.common_dir).encode()).hexdigest()

    @property
    def name(self) -> str:
        return self.root.name

    def __str__(self) -> str:
        return str(self.root)
