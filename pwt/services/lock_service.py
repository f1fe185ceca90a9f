"""Per-project lock files serializing mutating operations across processes."""
import json
import os
import socket
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from pwt.exceptions import IOFailure, LockTimeout
from pwt.logging_config import get_logger
from pwt.models.project import Project

logger = get_logger(__name__)


@dataclass
class LockHandle:
    """Proof of ownership for a held project lock."""

    project: Project
    path: Path
    token: str
    pid: int
    host: str
    acquired_at: float
    operation: str = ""


def _is_pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
        return True
    except PermissionError:
        # Process exists but we don't have permission to signal it.
        return True
    except OSError:
        return False


class LockManager:
    """Creates <locks_dir>/<project-key>.lock exclusively for the duration of an operation.

    The lock file holds the owner's pid, host, acquisition time and a random
    token. A lock may be reclaimed by another acquirer once it is older than
    stale_seconds and its owner is no longer running on this host.
    """

    def __init__(
        self,
        locks_dir: Path,
        default_timeout: float = 10.0,
        stale_seconds: float = 300.0,
        poll_interval: float = 0.1,
    ):
        self.locks_dir = Path(locks_dir)
        self.default_timeout = default_timeout
        self.stale_seconds = stale_seconds
        self.poll_interval = poll_interval
        self.host = socket.gethostname()

    def lock_path(self, project: Project) -> Path:
        return self.locks_dir / f"{project.key}.lock"

    @contextmanager
    def acquire(self, project: Project, timeout: Optional[float] = None, operation: str = "") -> Iterator[LockHandle]:
        """Hold the project's lock for the duration of the with-block.

        Args:
            project: Project to lock
            timeout: Seconds to wait before giving up (defaults to default_timeout)
            operation: Name recorded in the lock file for diagnostics

        Yields:
            LockHandle for the held lock

        Raises:
            LockTimeout: if the lock is still held by someone else after timeout
            IOFailure: if the lock file can't be created
        """
        handle = self._acquire(project, self.default_timeout if timeout is None else timeout, operation)
        try:
            yield handle
        finally:
            self.release(handle)

    def _acquire(self, project: Project, timeout: float, operation: str) -> LockHandle:
        path = self.lock_path(project)
        try:
            self.locks_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure(str(self.locks_dir), e.strerror or str(e)) from e

        deadline = time.monotonic() + timeout
        holder: Optional[dict] = None
        while True:
            handle = self._try_create(project, path, operation)
            if handle is not None:
                logger.debug(f"Acquired lock {path.name} for {operation or 'operation'} on {project}")
                return handle

            holder = self.read_holder(path)
            if self._is_stale(path, holder):
                self._reclaim(path, holder)
                continue

            if time.monotonic() >= deadline:
                raise LockTimeout(str(project.root), timeout, holder)
            time.sleep(self.poll_interval)

    def _try_create(self, project: Project, path: Path, operation: str) -> Optional[LockHandle]:
        handle = LockHandle(
            project=project,
            path=path,
            token=uuid.uuid4().hex,
            pid=os.getpid(),
            host=self.host,
            acquired_at=time.time(),
            operation=operation,
        )
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return None
        except OSError as e:
            raise IOFailure(str(path), e.strerror or str(e)) from e

        try:
            with os.fdopen(fd, "w") as f:
                json.dump(
                    {
                        "pid": handle.pid,
                        "host": handle.host,
                        "acquired_at": handle.acquired_at,
                        "operation": operation,
                        "token": handle.token,
                    },
                    f,
                )
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            path.unlink(missing_ok=True)
            raise IOFailure(str(path), e.strerror or str(e)) from e
        return handle

    @staticmethod
    def read_holder(path: Path) -> Optional[dict]:
        """Return the lock file's metadata, or None if it's missing or unreadable."""
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            return None
        return data if isinstance(data, dict) else None

    def _lock_age(self, path: Path, holder: Optional[dict]) -> Optional[float]:
        acquired_at = holder.get("acquired_at") if holder else None
        if not isinstance(acquired_at, (int, float)):
            try:
                acquired_at = path.stat().st_mtime
            except OSError:
                return None
        return max(0.0, time.time() - float(acquired_at))

    def _owner_alive(self, holder: Optional[dict]) -> bool:
        if not holder:
            # Corrupt or half-written lock file: only its age decides
            return False
        if holder.get("host") not in (None, self.host):
            # Can't check a pid on another host; never steal it
            return True
        try:
            pid = int(holder.get("pid"))
        except (TypeError, ValueError):
            return False
        return _is_pid_alive(pid)

    def _is_stale(self, path: Path, holder: Optional[dict]) -> bool:
        age = self._lock_age(path, holder)
        if age is None or age <= self.stale_seconds:
            return False
        return not self._owner_alive(holder)

    def _reclaim(self, path: Path, holder: Optional[dict]) -> None:
        """Remove a stale lock without clobbering a fresh one acquired meanwhile."""
        tombstone = path.with_name(f"{path.name}.stale-{os.getpid()}-{uuid.uuid4().hex[:8]}")
        try:
            os.rename(path, tombstone)
        except FileNotFoundError:
            # Released or reclaimed by someone else in the meantime
            return
        except OSError as e:
            raise IOFailure(str(path), e.strerror or str(e)) from e

        moved = self.read_holder(tombstone)
        expected_token = holder.get("token") if holder else None
        moved_token = moved.get("token") if moved else None
        if moved_token != expected_token:
            # A fresh lock replaced the stale one after we looked; put it back
            try:
                os.link(tombstone, path)
            except OSError:
                logger.error(f"Could not restore lock {path.name} taken over during stale reclaim")
            tombstone.unlink(missing_ok=True)
            return

        tombstone.unlink(missing_ok=True)
        owner = f"pid {holder.get('pid')} on {holder.get('host')}" if holder else "unknown owner"
        logger.warning(f"Reclaimed stale lock {path.name} held by {owner}")

    def release(self, handle: LockHandle) -> None:
        """Delete the lock file if it still belongs to handle."""
        holder = self.read_holder(handle.path)
        if holder is None or holder.get("token") != handle.token:
            logger.warning(f"Lock {handle.path.name} is no longer ours (reclaimed as stale?); leaving it")
            return
        try:
            handle.path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error(f"Could not release lock {handle.path}: {e}")
            return
        logger.debug(f"Released lock {handle.path.name}")

    def is_locked(self, project: Project) -> bool:
        return self.lock_path(project).exists()
