"""
pwt - Power Worktrees, a git worktree manager for multiple projects
"""

from .__version__ import __version__
from .core import LifecycleEngine
from .cli.main import main

__all__ = ["LifecycleEngine", "main", "__version__"]
