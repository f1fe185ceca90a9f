"""Custom exceptions for pwt"""

from typing import Optional, List, TYPE_CHECKING

from pwt.constants import ExitCode

if TYPE_CHECKING:
    from pwt.models.results import HookResult


class PwtError(Exception):
    """Base exception for all pwt errors."""

    exit_code: int = ExitCode.ERROR


class GitFailure(PwtError):
    """Exception raised when a git invocation fails or its output can't be parsed."""

    exit_code = ExitCode.GIT_FAILURE

    def __init__(
        self,
        operation: str,
        message: Optional[str] = None,
        kind: str = "command",
        stderr: Optional[str] = None,
        status: Optional[int] = None,
        leftover_path: Optional[str] = None,
    ):
        self.operation = operation
        self.message = message
        self.kind = kind
        self.stderr = stderr
        self.status = status
        self.leftover_path = leftover_path

        if kind == "parse":
            error_msg = f"Could not parse output of git {operation}"
        else:
            error_msg = f"git {operation} failed"
            if status is not None:
                error_msg += f" (exit {status})"
        if message:
            error_msg += f": {message}"
        if leftover_path:
            error_msg += (
                f"\n  git left a partial directory at {leftover_path}; "
                "it was not deleted, remove it manually once inspected"
            )

        super().__init__(error_msg)


class IOFailure(PwtError):
    """Exception raised when the registry can't be read or written."""

    exit_code = ExitCode.IO_FAILURE

    def __init__(self, path: str, message: Optional[str] = None, drift: bool = False):
        self.path = path
        self.message = message
        self.drift = drift

        error_msg = f"Registry I/O failed for {path}"
        if message:
            error_msg += f": {message}"
        if drift:
            error_msg += (
                "\n  The git worktree change may already have happened, so the registry "
                "may have drifted from git. Run 'pwt list' to see the actual state."
            )

        super().__init__(error_msg)


class LockTimeout(PwtError):
    """Exception raised when the project lock can't be acquired in time."""

    exit_code = ExitCode.LOCK_TIMEOUT

    def __init__(self, project: str, timeout: float, holder: Optional[dict] = None):
        self.project = project
        self.timeout = timeout
        self.holder = holder or {}

        error_msg = f"Could not lock project {project} within {timeout:g}s"
        if self.holder.get("pid"):
            error_msg += (
                f" (held by pid {self.holder.get('pid')} on {self.holder.get('host', '?')}"
                f" for '{self.holder.get('operation', '?')}')"
            )

        super().__init__(error_msg)


class HookFailure(PwtError):
    """Exception raised when a plugin hook exits non-zero."""

    exit_code = ExitCode.HOOK_FAILURE

    def __init__(self, event: str, hook: str, results: Optional[List["HookResult"]] = None, message: Optional[str] = None):
        self.event = event
        self.hook = hook
        self.results = results or []
        self.message = message

        error_msg = f"{event} hook '{hook}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class RegistryConflict(PwtError):
    """Exception raised when two registry entries (or an entry and a request) share a path."""

    exit_code = ExitCode.REGISTRY_CONFLICT

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        self.message = message

        error_msg = f"Registry conflict for {path}"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class NotInitialized(PwtError):
    """Exception raised when operating on a project that has no registry."""

    exit_code = ExitCode.NOT_INITIALIZED

    def __init__(self, project: str):
        self.project = project
        super().__init__(f"Project {project} is not initialized (run 'pwt init')")


class WorktreeNotFound(PwtError):
    """Exception raised when a path is neither registered nor known to git."""

    exit_code = ExitCode.NOT_FOUND

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        self.message = message

        error_msg = f"No worktree at {path}"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)
