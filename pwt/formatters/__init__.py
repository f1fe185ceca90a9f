"""Formatting utilities shared by the CLI output."""

from .date import format_date, format_age
from .status import format_status, format_tags, format_hook_results, status_style

__all__ = [
    "format_date",
    "format_age",
    "format_status",
    "format_tags",
    "format_hook_results",
    "status_style",
]
