"""Plugin hook runner: executes user plugins at lifecycle points."""
import os
import subprocess
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pwt.exceptions import HookFailure
from pwt.logging_config import get_logger
from pwt.models.project import Project
from pwt.models.results import HookEvent, HookResult
from pwt.models.worktree import WorktreeRecord

logger = get_logger(__name__)


class HookRunner:
    """Discovers executable plugins and runs them for lifecycle events.

    Plugins are the executable regular files directly inside the plugin
    directories. Every plugin receives every event; it reads PWT_EVENT (also
    passed as argv[1]) to decide what to do. Plugins run in lexical order of
    file name.
    """

    def __init__(self, plugin_dirs: Iterable[Path], timeout: float = 60.0):
        """Initialize the hook runner.

        Args:
            plugin_dirs: Directories to search, earlier ones win on name clashes
            timeout: Seconds each plugin may run before it counts as failed
        """
        self.plugin_dirs = [Path(d) for d in plugin_dirs]
        self.timeout = timeout

    def discover(self, enabled: Optional[Iterable[str]] = None) -> List[Path]:
        """Return plugin executables in lexical order of name.

        Args:
            enabled: If non-empty, only plugins with these names are returned
        """
        allowed = set(enabled or [])
        found: Dict[str, Path] = {}
        for directory in self.plugin_dirs:
            if not directory.is_dir():
                continue
            for entry in directory.iterdir():
                if entry.name.startswith(".") or entry.name in found:
                    continue
                if not entry.is_file() or not os.access(entry, os.X_OK):
                    logger.debug(f"Skipping non-executable plugin entry {entry}")
                    continue
                if allowed and entry.name not in allowed:
                    continue
                found[entry.name] = entry

        missing = allowed - set(found)
        if missing:
            logger.warning(f"Enabled hooks not found in plugin directories: {', '.join(sorted(missing))}")
        return [found[name] for name in sorted(found)]

    @staticmethod
    def build_env(event: HookEvent, project: Project, record: WorktreeRecord) -> Dict[str, str]:
        """Environment passed to plugins, on top of the caller's environment."""
        env = os.environ.copy()
        env.update(
            {
                "PWT_EVENT": event.value,
                "PWT_PROJECT": str(project.common_dir),
                "PWT_PROJECT_ROOT": str(project.root),
                "PWT_WORKTREE_PATH": record.path,
                "PWT_BRANCH": record.branch,
                "PWT_BASE_REF": record.base_ref or "",
                "PWT_TAGS": ",".join(sorted(record.tags)),
                "PWT_CREATED_AT": record.created_at,
            }
        )
        return env

    def _run_one(self, plugin: Path, event: HookEvent, project: Project, env: Dict[str, str]) -> HookResult:
        cwd = project.root if project.root.is_dir() else None
        start = time.monotonic()
        try:
            proc = subprocess.run(
                [str(plugin), event.value],
                cwd=cwd,
                env=env,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return HookResult(
                name=plugin.name,
                path=str(plugin),
                event=event,
                returncode=-1,
                duration=time.monotonic() - start,
                error=f"timed out after {self.timeout:g}s",
            )
        except OSError as e:
            return HookResult(
                name=plugin.name,
                path=str(plugin),
                event=event,
                returncode=-1,
                duration=time.monotonic() - start,
                error=f"could not execute: {e.strerror or e}",
            )

        return HookResult(
            name=plugin.name,
            path=str(plugin),
            event=event,
            returncode=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
            duration=time.monotonic() - start,
        )

    def run_hooks(
        self,
        event: HookEvent,
        project: Project,
        record: WorktreeRecord,
        enabled: Optional[Iterable[str]] = None,
    ) -> List[HookResult]:
        """Run every plugin for event.

        Pre events are fail-fast: the first failing plugin stops the run and
        raises HookFailure. Post events run all plugins and only record
        failures in the returned results.

        Args:
            event: Lifecycle point being run
            project: Project the worktree belongs to
            record: Worktree the event is about
            enabled: Restrict to these plugin names (empty means all)

        Returns:
            HookResult per plugin run, in execution order

        Raises:
            HookFailure: if a pre-event plugin fails
        """
        plugins = self.discover(enabled)
        if not plugins:
            return []

        env = self.build_env(event, project, record)
        results: List[HookResult] = []
        for plugin in plugins:
            logger.debug(f"Running {event.value} hook {plugin.name}")
            result = self._run_one(plugin, event, project, env)
            results.append(result)

            if result.ok:
                logger.debug(f"Hook {plugin.name} finished in {result.duration:.2f}s")
                continue

            if event.is_pre:
                logger.error(f"{event.value} hook failed, aborting: {result.summary()}")
                raise HookFailure(event.value, plugin.name, results, result.error or result.stderr.strip() or None)
            logger.warning(f"{event.value} hook failed: {result.summary()}")

        return results
