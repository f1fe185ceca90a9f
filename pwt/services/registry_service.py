"""Registry store: the single owner of pwt's on-disk project state."""
import json
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from pwt.exceptions import IOFailure, NotInitialized, RegistryConflict
from pwt.logging_config import get_logger
from pwt.models.project import Project
from pwt.models.registry import RegistryFile
from pwt.models.worktree import WorktreeRecord

logger = get_logger(__name__)


class RegistryStore:
    """Persists one RegistryFile per project, keyed by the project's common dir.

    Every write goes to a temporary file in the same directory and is then
    renamed over the registry file, so lock-free readers see either the old
    or the new file, never a partial one. The store never runs git.
    """

    def __init__(self, projects_dir: Path):
        """Initialize the registry store.

        Args:
            projects_dir: Directory holding <project-key>.json files
        """
        self.projects_dir = Path(projects_dir)

    def registry_path(self, project: Project) -> Path:
        return self.projects_dir / f"{project.key}.json"

    def exists(self, project: Project) -> bool:
        return self.registry_path(project).exists()

    def load(self, project: Project) -> RegistryFile:
        """Load the registry for a project.

        Raises:
            NotInitialized: if the project has no registry file
            IOFailure: if the file can't be read or isn't a valid registry
        """
        return self._load_path(self.registry_path(project), project=project)

    def _load_path(self, path: Path, project: Optional[Project] = None) -> RegistryFile:
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise NotInitialized(str(project.root) if project else str(path)) from None
        except json.JSONDecodeError as e:
            raise IOFailure(str(path), f"invalid JSON: {e}") from e
        except OSError as e:
            raise IOFailure(str(path), e.strerror or str(e)) from e

        try:
            registry = RegistryFile.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise IOFailure(str(path), f"invalid registry structure: {e}") from e

        logger.debug(f"Loaded registry {path.name} with {len(registry.records)} records")
        return registry

    def save(self, project: Project, registry: RegistryFile) -> None:
        """Write the registry atomically (temp file, fsync, rename).

        Raises:
            IOFailure: on serialization errors, disk full, permission denied, etc.
        """
        target = self.registry_path(project)
        try:
            payload = json.dumps(registry.to_dict(), indent=2, sort_keys=False)
        except (TypeError, ValueError) as e:
            raise IOFailure(str(target), f"could not serialize registry: {e}") from e

        temp_name = None
        try:
            self.projects_dir.mkdir(parents=True, exist_ok=True)
            # Unique temp name so two writers never share a temp file
            fd, temp_name = tempfile.mkstemp(dir=self.projects_dir, prefix=f".{target.stem}.", suffix=".tmp")
            with os.fdopen(fd, "w") as f:
                f.write(payload)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename (POSIX systems guarantee atomicity)
            os.replace(temp_name, target)
            temp_name = None
            logger.debug(f"Saved registry {target.name} with {len(registry.records)} records")
        except OSError as e:
            raise IOFailure(str(target), e.strerror or str(e)) from e
        finally:
            # Clean up temp file if the rename didn't happen
            if temp_name and os.path.exists(temp_name):
                try:
                    os.unlink(temp_name)
                except OSError as cleanup_error:
                    logger.debug(f"Could not remove temp file {temp_name}: {cleanup_error}")

    def upsert_record(self, project: Project, record: WorktreeRecord, replace: bool = False) -> RegistryFile:
        """Add a record, or replace the one with the same path when replace=True.

        Returns:
            The saved registry

        Raises:
            NotInitialized, IOFailure: from load/save
            RegistryConflict: if a record with this path exists and replace is False
        """
        registry = self.load(project)
        existing = registry.get_record(record.path)
        if existing is not None:
            if not replace:
                raise RegistryConflict(
                    record.path,
                    f"already registered for branch '{existing.branch}'",
                )
            registry.records = [record if r.path == record.path else r for r in registry.records]
        else:
            registry.records.append(record)

        self.save(project, registry)
        logger.info(f"Registered worktree {record.path} ({record.branch})")
        return registry

    def remove_record(self, project: Project, path: str) -> bool:
        """Remove every record stored for path.

        Returns:
            True if anything was removed

        Raises:
            NotInitialized, IOFailure: from load/save
        """
        registry = self.load(project)
        remaining = [r for r in registry.records if r.path != path]
        if len(remaining) == len(registry.records):
            logger.debug(f"No registry record for {path}, nothing to remove")
            return False

        registry.records = remaining
        self.save(project, registry)
        logger.info(f"Unregistered worktree {path}")
        return True

    def delete(self, project: Project) -> bool:
        """Delete the project's registry file.

        Returns:
            True if a registry file was deleted

        Raises:
            IOFailure: if the file exists but can't be removed
        """
        target = self.registry_path(project)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise IOFailure(str(target), e.strerror or str(e)) from e
        logger.info(f"Deleted registry for {project}")
        return True

    def list_projects(self) -> List[RegistryFile]:
        """Load every registry under projects_dir, skipping unreadable ones with a warning."""
        if not self.projects_dir.is_dir():
            return []

        registries = []
        for path in sorted(self.projects_dir.glob("*.json")):
            try:
                registries.append(self._load_path(path))
            except (IOFailure, NotInitialized) as e:
                logger.warning(f"Skipping registry {path.name}: {e}")
        return sorted(registries, key=lambda r: r.root)
