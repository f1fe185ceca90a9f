"""Registry file model."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from pwt.constants import REGISTRY_VERSION
from pwt.models.worktree import WorktreeRecord


@dataclass
class RegistryFile:
    """Durable pwt state for one project: project settings plus its worktree records.

    Records are kept as a list, in creation order, so that a registry holding
    two records for the same path (a hand-edited file, or paths that only
    collide once canonicalized) round-trips unchanged and can be reported as
    a conflict instead of being merged on load.
    """

    project: str  # Canonical git common directory
    root: str
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="seconds")
    )
    branch_prefix: str = ""
    worktree_dir: Optional[str] = None
    enabled_hooks: List[str] = field(default_factory=list)
    records: List[WorktreeRecord] = field(default_factory=list)
    version: int = REGISTRY_VERSION

    def get_record(self, path: str) -> Optional[WorktreeRecord]:
        """Return the first record stored for path, or None."""
        for record in self.records:
            if record.path == path:
                return record
        return None

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "project": self.project,
            "root": self.root,
            "created_at": self.created_at,
            "branch_prefix": self.branch_prefix,
            "worktree_dir": self.worktree_dir,
            "enabled_hooks": list(self.enabled_hooks),
            "records": [record.to_dict() for record in self.records],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RegistryFile":
        """Create a RegistryFile from its serialized form.

        Raises:
            KeyError, TypeError, ValueError: if the structure is invalid
        """
        if not isinstance(data, dict):
            raise ValueError("registry data is not a dictionary")

        version = data.get("version", REGISTRY_VERSION)
        if version != REGISTRY_VERSION:
            raise ValueError(f"unsupported registry version {version}")

        records = data.get("records", [])
        if not isinstance(records, list):
            raise ValueError("registry 'records' is not a list")

        enabled_hooks = data.get("enabled_hooks") or []
        if not isinstance(enabled_hooks, list):
            raise ValueError("registry 'enabled_hooks' is not a list")

        return cls(
            project=data["project"],
            root=data["root"],
            created_at=data.get("created_at", ""),
            branch_prefix=data.get("branch_prefix") or "",
            worktree_dir=data.get("worktree_dir"),
            enabled_hooks=[str(h) for h in enabled_hooks],
            records=[WorktreeRecord.from_dict(r) for r in records],
            version=version,
        )
