"""Core lifecycle engine for pwt."""

from .lifecycle import LifecycleEngine

__all__ = ["LifecycleEngine"]
