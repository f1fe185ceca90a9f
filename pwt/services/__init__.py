"""Services composed by the lifecycle engine."""

from .hook_service import HookRunner
from .lock_service import LockHandle, LockManager
from .reconcile_service import Reconciler
from .registry_service import RegistryStore

__all__ = [
    "HookRunner",
    "LockHandle",
    "LockManager",
    "Reconciler",
    "RegistryStore",
]
