"""Lifecycle engine: init, create, list, remove and friends, composed from the services."""

from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from pwt.config import Config
from pwt.exceptions import (
    HookFailure,
    IOFailure,
    PwtError,
    RegistryConflict,
    WorktreeNotFound,
)
from pwt.logging_config import get_logger
from pwt.models.project import Project
from pwt.models.registry import RegistryFile
from pwt.models.results import HookEvent, OperationOutcome, OperationResult
from pwt.models.worktree import WorktreeRecord, WorktreeStatus
from pwt.services.git import WorktreeService, resolve_project
from pwt.services.hook_service import HookRunner
from pwt.services.lock_service import LockManager
from pwt.services.reconcile_service import Reconciler
from pwt.services.registry_service import RegistryStore
from pwt.utils.paths import canonical_path, default_worktree_parent, is_same_path, sanitize_branch_for_path

logger = get_logger(__name__)


class LifecycleEngine:
    """Orchestrates worktree lifecycle operations for any number of projects.

    Every operation takes the Project explicitly and returns an
    OperationResult whose outcome is completed, aborted or failed. Mutating
    operations hold the project lock for their whole duration; list does not.
    """

    def __init__(
        self,
        config: Union[Config, dict, None] = None,
        worktree_service: Optional[WorktreeService] = None,
        registry_store: Optional[RegistryStore] = None,
        lock_manager: Optional[LockManager] = None,
        hook_runner: Optional[HookRunner] = None,
    ):
        """Initialize the engine.

        Args:
            config: Config object or dict; defaults to Config.load()
            worktree_service: Git adapter (built from config when omitted)
            registry_store: Registry store (built from config when omitted)
            lock_manager: Lock manager (built from config when omitted)
            hook_runner: Plugin hook runner (built from config when omitted)
        """
        if config is None:
            config = Config.load()
        elif isinstance(config, dict):
            config = Config.from_dict(config)
        self.config = config

        self.worktree_service = worktree_service or WorktreeService()
        self.registry_store = registry_store or RegistryStore(config.projects_dir)
        self.lock_manager = lock_manager or LockManager(
            config.locks_dir,
            default_timeout=config.lock_timeout,
            stale_seconds=config.stale_lock_seconds,
            poll_interval=config.poll_interval,
        )
        self.hook_runner = hook_runner or HookRunner(config.all_plugin_dirs, timeout=config.hook_timeout)
        self.reconciler = Reconciler(self.worktree_service, self.registry_store)

    @staticmethod
    def resolve_project(path: Union[str, Path]) -> Project:
        """Resolve a directory to its Project (see services.git.resolve_project)."""
        return resolve_project(path)

    def _execute(self, operation: str, project: Project, body: Callable[[OperationResult], None]) -> OperationResult:
        """Run body and map its exceptions onto a terminal outcome.

        A failing pre-hook aborts the operation; any other pwt error fails it.
        """
        result = OperationResult(operation=operation, outcome=OperationOutcome.COMPLETED, project=str(project.root))
        try:
            body(result)
        except HookFailure as e:
            result.outcome = OperationOutcome.ABORTED
            result.error = e
            result.hook_results.extend(e.results)
        except PwtError as e:
            result.outcome = OperationOutcome.FAILED
            result.error = e

        if result.ok:
            logger.info(f"{operation} on {project}: {result.outcome.value}")
        else:
            logger.error(f"{operation} on {project}: {result.outcome.value}: {result.error}")
        return result

    def _locked(self, project: Project, operation: str):
        return self.lock_manager.acquire(project, timeout=self.config.lock_timeout, operation=operation)

    def _advise(self, project: Project, result: OperationResult, target: Optional[str] = None) -> None:
        """Advisory reconciliation before a mutation: log drift, never block."""
        try:
            report = self.reconciler.reconcile(project)
        except PwtError as e:
            logger.warning(f"Could not reconcile {project} before {result.operation}: {e}")
            return

        if report.has_drift:
            logger.warning(f"{project} has worktrees out of sync with the registry; run 'pwt list' for details")
        if target:
            entry = report.find(target)
            if entry is not None and entry.status != WorktreeStatus.ACTIVE:
                result.warnings.append(f"{target} is currently {entry.status.value}")

    @staticmethod
    def _save_failed(e: IOFailure) -> IOFailure:
        """Re-raise a registry write failure that happened after git already changed state."""
        return IOFailure(e.path, e.message, drift=True)

    def _post_hooks(self, event: HookEvent, project: Project, record: WorktreeRecord,
                    registry: RegistryFile, result: OperationResult) -> None:
        hook_results = self.hook_runner.run_hooks(event, project, record, registry.enabled_hooks)
        result.hook_results.extend(hook_results)
        for hook_result in hook_results:
            if not hook_result.ok:
                result.warnings.append(f"{event.value} hook {hook_result.summary()}")

    # Operations

    def init(
        self,
        project: Project,
        branch_prefix: str = "",
        worktree_dir: Optional[str] = None,
        enabled_hooks: Optional[Iterable[str]] = None,
    ) -> OperationResult:
        """Create the project's registry. Repeating it is a no-op that still completes."""

        def body(result: OperationResult) -> None:
            with self._locked(project, "init"):
                if self.registry_store.exists(project):
                    # Validate the existing file instead of rewriting it
                    self.registry_store.load(project)
                    result.detail = "already initialized"
                    return

                registry = RegistryFile(
                    project=str(project.common_dir),
                    root=str(project.root),
                    branch_prefix=branch_prefix or "",
                    worktree_dir=canonical_path(worktree_dir) if worktree_dir else None,
                    enabled_hooks=sorted(set(enabled_hooks or [])),
                )
                self.registry_store.save(project, registry)
                result.detail = "initialized"

        return self._execute("init", project, body)

    def default_path(self, project: Project, registry: RegistryFile, branch: str) -> str:
        parent = Path(registry.worktree_dir) if registry.worktree_dir else default_worktree_parent(project.root)
        return canonical_path(parent / sanitize_branch_for_path(branch))

    def create(
        self,
        project: Project,
        branch: str,
        path: Optional[str] = None,
        base_ref: Optional[str] = None,
        tags: Iterable[str] = (),
    ) -> OperationResult:
        """Create a worktree for branch and register it.

        Order: lock, pre-create hooks, git add, registry write, post-create
        hooks, unlock. Nothing is registered unless git succeeded.
        """

        def body(result: OperationResult) -> None:
            if not branch or not branch.strip():
                raise PwtError("branch name cannot be empty")

            with self._locked(project, "create"):
                registry = self.registry_store.load(project)

                branch_name = branch.strip()
                if registry.branch_prefix and not branch_name.startswith(registry.branch_prefix):
                    branch_name = f"{registry.branch_prefix}{branch_name}"
                target = canonical_path(path) if path else self.default_path(project, registry, branch_name)

                self._advise(project, result, target)

                if any(is_same_path(r.path, target) for r in registry.records):
                    raise RegistryConflict(target, "a worktree is already registered at this path")
                live = self.worktree_service.list_worktrees(project)
                if any(wt.path == target for wt in live):
                    raise RegistryConflict(target, "git already has a worktree here; use 'pwt adopt' to track it")

                record = WorktreeRecord(path=target, branch=branch_name, tags=set(tags), base_ref=base_ref)
                result.record = record

                result.hook_results.extend(
                    self.hook_runner.run_hooks(HookEvent.PRE_CREATE, project, record, registry.enabled_hooks)
                )

                info = self.worktree_service.add_worktree(project, target, branch_name, base_ref)
                record.branch = info.branch_name or branch_name

                try:
                    registry = self.registry_store.upsert_record(project, record)
                except IOFailure as e:
                    raise self._save_failed(e) from e

                self._post_hooks(HookEvent.POST_CREATE, project, record, registry, result)

        return self._execute("create", project, body)

    def remove(self, project: Project, path: str, force: bool = False) -> OperationResult:
        """Remove a registered worktree from git and from the registry.

        A record git no longer knows about (orphaned) is just unregistered.
        """

        def body(result: OperationResult) -> None:
            target = canonical_path(path)
            with self._locked(project, "remove"):
                registry = self.registry_store.load(project)
                live = self.worktree_service.list_worktrees(project)
                live_paths = {wt.path for wt in live}

                record = next((r for r in registry.records if is_same_path(r.path, target)), None)
                if record is None:
                    if target in live_paths:
                        raise RegistryConflict(
                            target,
                            "not tracked by pwt; run 'pwt adopt' first or remove it with git directly",
                        )
                    raise WorktreeNotFound(target, "not registered and unknown to git")
                result.record = record

                result.hook_results.extend(
                    self.hook_runner.run_hooks(HookEvent.PRE_REMOVE, project, record, registry.enabled_hooks)
                )

                if target in live_paths:
                    self.worktree_service.remove_worktree(project, target, force=force)
                else:
                    logger.info(f"{target} is unknown to git; dropping its registry record only")
                    result.warnings.append("git had no worktree at this path; only the registry record was removed")

                try:
                    self.registry_store.remove_record(project, record.path)
                except IOFailure as e:
                    raise self._save_failed(e) from e

                self._post_hooks(HookEvent.POST_REMOVE, project, record, registry, result)

        return self._execute("remove", project, body)

    def list(self, project: Project) -> OperationResult:
        """Reconcile git and the registry without taking the lock."""

        def body(result: OperationResult) -> None:
            report = self.reconciler.reconcile(project)
            result.report = report
            if not report.initialized:
                result.warnings.append("project is not initialized; run 'pwt init' to start tracking worktrees")
            result.warnings.extend(str(conflict) for conflict in report.conflicts)

        return self._execute("list", project, body)

    def adopt(self, project: Project, path: str, tags: Iterable[str] = ()) -> OperationResult:
        """Start tracking a worktree that was created with plain git."""

        def body(result: OperationResult) -> None:
            target = canonical_path(path)
            with self._locked(project, "adopt"):
                registry = self.registry_store.load(project)
                if any(is_same_path(r.path, target) for r in registry.records):
                    raise RegistryConflict(target, "already tracked by pwt")

                live = next((wt for wt in self.worktree_service.list_worktrees(project) if wt.path == target), None)
                if live is None:
                    raise WorktreeNotFound(target, "git has no worktree at this path")
                if live.is_main or live.is_bare:
                    raise RegistryConflict(target, "the main worktree is the project itself and can't be adopted")

                # A detached worktree is recorded with an empty branch, as git reports it
                record = WorktreeRecord(path=target, branch=live.branch_name, tags=set(tags))
                result.record = record
                try:
                    self.registry_store.upsert_record(project, record)
                except IOFailure as e:
                    raise self._save_failed(e) from e

        return self._execute("adopt", project, body)

    def tag(self, project: Project, path: str, add: Iterable[str] = (), remove: Iterable[str] = ()) -> OperationResult:
        """Add and remove tags on a registered worktree."""

        def body(result: OperationResult) -> None:
            target = canonical_path(path)
            with self._locked(project, "tag"):
                registry = self.registry_store.load(project)
                record = next((r for r in registry.records if is_same_path(r.path, target)), None)
                if record is None:
                    raise WorktreeNotFound(target, "not registered with pwt")

                record.tags = (set(record.tags) | set(add)) - set(remove)
                result.record = record
                self.registry_store.upsert_record(project, record, replace=True)

        return self._execute("tag", project, body)

    def prune(self, project: Project) -> OperationResult:
        """Prune git's stale worktree metadata and drop records git no longer lists.

        Directories of dropped records are never deleted.
        """

        def body(result: OperationResult) -> None:
            with self._locked(project, "prune"):
                registry = self.registry_store.load(project)
                pruned = self.worktree_service.prune_worktrees(project)

                live_paths = {wt.path for wt in self.worktree_service.list_worktrees(project)}
                kept: List[WorktreeRecord] = []
                dropped: List[WorktreeRecord] = []
                for record in registry.records:
                    if canonical_path(record.path) in live_paths:
                        kept.append(record)
                    else:
                        dropped.append(record)

                if dropped:
                    registry.records = kept
                    try:
                        self.registry_store.save(project, registry)
                    except IOFailure as e:
                        raise self._save_failed(e) from e
                    for record in dropped:
                        logger.info(f"Dropped record for worktree unknown to git {record.path}")
                        if Path(record.path).is_dir():
                            result.warnings.append(
                                f"{record.path} is no longer a git worktree; its directory was left on disk"
                            )

                result.detail = f"pruned {pruned} git entr{'y' if pruned == 1 else 'ies'}, dropped {len(dropped)} record(s)"

        return self._execute("prune", project, body)

    def deinit(self, project: Project) -> OperationResult:
        """Forget the project. Worktrees on disk and in git are left untouched."""

        def body(result: OperationResult) -> None:
            with self._locked(project, "deinit"):
                removed = self.registry_store.delete(project)
                result.detail = "registry deleted" if removed else "was not initialized"

        return self._execute("deinit", project, body)

    def projects(self) -> List[RegistryFile]:
        """Every project that has a registry, sorted by root path."""
        return self.registry_store.list_projects()
