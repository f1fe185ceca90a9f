"""Display and formatting service for worktree information"""
import json
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from pwt.constants import COLUMNS, LEGEND_TEXT
from pwt.formatters import format_age, format_date, format_hook_results, format_status, format_tags, status_style
from pwt.logging_config import get_logger
from pwt.models.registry import RegistryFile
from pwt.models.results import OperationOutcome, OperationResult, ReconciliationReport
from pwt.models.worktree import WorktreeStatus

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)


class DisplayService:
    def __init__(self, verbose: bool = False, debug: bool = False):
        self.verbose = verbose
        self.debug_mode = debug

    def display_report(self, report: ReconciliationReport, show_summary: bool = False) -> None:
        """Display a table of reconciled worktrees."""
        if report.main is not None:
            console.print(f"[bold]{report.project}[/bold] [dim](main: {report.main.branch_name or 'detached'})[/dim]")

        if not report.entries:
            console.print("[dim]No worktrees.[/dim]")
        else:
            table = Table()
            for col in COLUMNS:
                table.add_column(col.label, min_width=col.width or None)

            # Match COLUMNS order: Path, Branch, Status, Created, Tags, Notes
            for entry in report.entries:
                record = entry.record
                table.add_row(
                    entry.path,
                    entry.branch,
                    format_status(entry.status),
                    f"{format_date(record.created_at)} ({format_age(record.created_at)})" if record else "",
                    format_tags(record.tags) if record else "",
                    "; ".join(entry.notes),
                    style=None if entry.status == WorktreeStatus.ACTIVE else status_style(entry.status),
                )
            console.print(table)

        for conflict in report.conflicts:
            console.print(f"[red]✗ {conflict}[/red]")

        if report.suggest_prune:
            console.print("[yellow]Some worktrees are prunable; run 'pwt prune' to clean up.[/yellow]")

        if show_summary:
            console.print(LEGEND_TEXT)
            console.print("Summary:")
            for status in WorktreeStatus:
                console.print(f"  {status.value}: {len(report.by_status(status))}")

    @staticmethod
    def display_report_json(report: ReconciliationReport) -> None:
        # Plain print so the output stays machine-readable
        print(json.dumps(report.to_dict(), indent=2))

    def display_result(self, result: OperationResult) -> None:
        """Print the outcome of a mutating operation."""
        for warning in result.warnings:
            err_console.print(f"[yellow]⚠ {warning}[/yellow]")

        if self.verbose and result.hook_results:
            console.print("Hooks:")
            for line in format_hook_results(result.hook_results):
                console.print(line)

        if result.ok:
            message = self._success_message(result)
            if message:
                console.print(f"[green]✓[/green] {message}")
            return

        label = "Aborted" if result.outcome == OperationOutcome.ABORTED else "Failed"
        err_console.print(f"[red]{label}: {result.error}[/red]")

    @staticmethod
    def _success_message(result: OperationResult) -> Optional[str]:
        record = result.record
        if result.operation == "create" and record:
            return f"Created worktree {record.path} ({record.branch})"
        if result.operation == "remove" and record:
            return f"Removed worktree {record.path}"
        if result.operation == "adopt" and record:
            return f"Adopted worktree {record.path} ({record.branch or 'detached'})"
        if result.operation == "tag" and record:
            return f"Tags for {record.path}: {format_tags(record.tags) or '(none)'}"
        if result.detail:
            return f"{result.operation}: {result.detail}"
        return None

    @staticmethod
    def display_projects(registries: List[RegistryFile]) -> None:
        if not registries:
            console.print("[dim]No projects initialized.[/dim]")
            return

        table = Table()
        table.add_column("Project")
        table.add_column("Worktrees", justify="right")
        table.add_column("Initialized")
        table.add_column("Hooks")
        for registry in registries:
            table.add_row(
                registry.root,
                str(len(registry.records)),
                format_date(registry.created_at),
                ", ".join(registry.enabled_hooks) or "all",
            )
        console.print(table)
