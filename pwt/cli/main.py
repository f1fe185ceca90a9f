"""Command-line entry point for pwt"""

import os
import sys
from typing import List, Optional

from rich.console import Console

from pwt.cli.args import build_parser
from pwt.config import Config
from pwt.constants import ExitCode
from pwt.core import LifecycleEngine
from pwt.exceptions import PwtError
from pwt.logging_config import setup_logging
from pwt.models.results import OperationResult
from pwt.services.display_service import DisplayService

console = Console(stderr=True)

COMMAND_ALIASES = {"ls": "list", "rm": "remove"}


def _show_help(topic: Optional[str]) -> int:
    parser = build_parser()
    if not topic:
        parser.print_help()
        return ExitCode.OK
    try:
        # argparse prints the subcommand help and exits
        parser.parse_args([topic, "--help"])
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else ExitCode.USAGE
    return ExitCode.OK


def _resolve_path_arg(base_dir: str, path: Optional[str]) -> Optional[str]:
    """Resolve a relative path argument against the -C directory, like git -C does."""
    if not path:
        return path
    return os.path.join(base_dir, os.path.expanduser(path))


def _run_command(command: str, parsed, engine: LifecycleEngine, display: DisplayService) -> int:
    if command == "projects":
        display.display_projects(engine.projects())
        return ExitCode.OK

    base_dir = os.path.abspath(parsed.directory or os.getcwd())
    project = engine.resolve_project(base_dir)

    result: OperationResult
    if command == "init":
        result = engine.init(
            project,
            branch_prefix=parsed.branch_prefix,
            worktree_dir=_resolve_path_arg(base_dir, parsed.worktree_dir),
            enabled_hooks=parsed.hooks,
        )
    elif command == "create":
        result = engine.create(
            project,
            parsed.branch,
            path=_resolve_path_arg(base_dir, parsed.path),
            base_ref=parsed.base_ref,
            tags=parsed.tags,
        )
    elif command == "remove":
        result = engine.remove(project, _resolve_path_arg(base_dir, parsed.path), force=parsed.force)
    elif command == "adopt":
        result = engine.adopt(project, _resolve_path_arg(base_dir, parsed.path), tags=parsed.tags)
    elif command == "tag":
        result = engine.tag(project, _resolve_path_arg(base_dir, parsed.path), add=parsed.add, remove=parsed.remove)
    elif command == "prune":
        result = engine.prune(project)
    elif command == "deinit":
        result = engine.deinit(project)
    elif command == "list":
        result = engine.list(project)
        if result.report is not None:
            if parsed.json:
                display.display_report_json(result.report)
                return result.exit_code
            display.display_report(result.report, show_summary=parsed.summary)
    else:
        raise PwtError(f"Unknown command '{command}'")

    display.display_result(result)
    return result.exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    debug = False
    try:
        # Parse command line arguments
        parsed = build_parser().parse_args(argv)
        debug = parsed.debug

        command = COMMAND_ALIASES.get(parsed.command, parsed.command)
        if command is None:
            return _show_help(None)
        if command == "help":
            return _show_help(parsed.topic)

        config = Config.load(
            lock_timeout=parsed.lock_timeout,
            verbose=parsed.verbose,
            debug=parsed.debug,
        )

        # Setup logging before creating the engine
        setup_logging(verbose=parsed.verbose, debug=parsed.debug, log_dir=config.home_dir)

        if parsed.debug:
            console.print("[yellow]Debug mode enabled[/yellow]")
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                console.print(f"  {key}: {value}")

        engine = LifecycleEngine(config)
        display = DisplayService(verbose=parsed.verbose, debug=parsed.debug)
        return int(_run_command(command, parsed, engine, display))
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return ExitCode.ERROR
    except PwtError as e:
        console.print(f"[red]Error: {e}[/red]")
        if debug:
            console.print_exception()
        return int(e.exit_code)
    except ValueError as e:
        # Invalid configuration
        console.print(f"[red]Configuration error: {e}[/red]")
        return ExitCode.USAGE
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if debug:
            console.print_exception()
        return ExitCode.ERROR


if __name__ == "__main__":
    sys.exit(main())
