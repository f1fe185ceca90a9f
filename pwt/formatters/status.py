"""Status, tag and hook formatting utilities."""

from typing import Iterable, List, Optional

from pwt.constants import STATUS_COLORS
from pwt.models.results import HookResult
from pwt.models.worktree import WorktreeStatus


def format_status(status: WorktreeStatus) -> str:
    """Display text for a worktree status, wrapped in its rich color."""
    color = STATUS_COLORS.get(status.value)
    return f"[{color}]{status.value}[/{color}]" if color else status.value


def status_style(status: WorktreeStatus) -> Optional[str]:
    return STATUS_COLORS.get(status.value)


def format_tags(tags: Iterable[str]) -> str:
    return ", ".join(sorted(tags))


def format_hook_results(results: List[HookResult]) -> List[str]:
    """
    One line per hook run, for verbose output.

    Example:
        "  ✓ 10-setup-env (pre-create, 0.12s)"
    """
    lines = []
    for result in results:
        mark = "✓" if result.ok else "✗"
        lines.append(f"  {mark} {result.name} ({result.event.value}, {result.duration:.2f}s)")
    return lines
