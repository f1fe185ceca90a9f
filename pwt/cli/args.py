"""Command-line argument parsing for pwt."""

import argparse
from typing import List, Optional

from pwt.__version__ import __version__


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level parser with one subparser per command."""
    parser = argparse.ArgumentParser(
        prog="pwt",
        description="Power Worktrees - git worktree manager for multiple projects",
        epilog="Run 'pwt help <command>' for command-specific options.",
    )
    parser.add_argument("--version", action="version", version=f"pwt {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information and write ~/.pwt/pwt.log"
    )
    parser.add_argument(
        "-C",
        dest="directory",
        metavar="DIR",
        default=None,
        help="Run as if pwt was started in DIR (default: current directory)",
    )
    parser.add_argument(
        "--lock-timeout",
        type=float,
        metavar="SECONDS",
        default=None,
        help="Seconds to wait for another pwt process on the same project (default: 10)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    init = subparsers.add_parser("init", help="Start tracking worktrees for this project")
    init.add_argument(
        "--branch-prefix", default="", help="Prefix added to new branch names (e.g. 'feature/')"
    )
    init.add_argument("--worktree-dir", default=None, help="Directory new worktrees are created in")
    init.add_argument(
        "--hook",
        dest="hooks",
        action="append",
        default=[],
        metavar="NAME",
        help="Only run this plugin (repeatable; default: all plugins)",
    )

    create = subparsers.add_parser("create", help="Create a worktree for a branch")
    create.add_argument("branch", help="Branch to check out (created if it doesn't exist)")
    create.add_argument("--path", default=None, help="Worktree directory (default: derived from branch)")
    create.add_argument("--base", dest="base_ref", default=None, help="Start point for a new branch")
    create.add_argument("--tag", dest="tags", action="append", default=[], metavar="TAG", help="Tag the worktree")

    list_cmd = subparsers.add_parser("list", aliases=["ls"], help="List worktrees and their sync status")
    list_cmd.add_argument("--json", action="store_true", help="Print machine-readable JSON")
    list_cmd.add_argument("--summary", action="store_true", help="Show legend and status counts")

    remove = subparsers.add_parser("remove", aliases=["rm"], help="Remove a worktree")
    remove.add_argument("path", help="Worktree directory")
    remove.add_argument("-f", "--force", action="store_true", help="Remove even if dirty or locked")

    adopt = subparsers.add_parser("adopt", help="Track a worktree created with plain git")
    adopt.add_argument("path", help="Worktree directory")
    adopt.add_argument("--tag", dest="tags", action="append", default=[], metavar="TAG", help="Tag the worktree")

    tag = subparsers.add_parser("tag", help="Add or remove worktree tags")
    tag.add_argument("path", help="Worktree directory")
    tag.add_argument("--add", action="append", default=[], metavar="TAG", help="Tag to add")
    tag.add_argument("--remove", action="append", default=[], metavar="TAG", help="Tag to remove")

    subparsers.add_parser("prune", help="Prune stale git metadata and vanished registry records")
    subparsers.add_parser("deinit", help="Stop tracking this project (worktrees are kept)")
    subparsers.add_parser("projects", help="List all initialized projects")

    help_cmd = subparsers.add_parser("help", help="Show help for pwt or a command")
    help_cmd.add_argument("topic", nargs="?", default=None, help="Command to show help for")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
