"""In-process, thread-safe hook registry."""

from hookwire.config import RegistryConfig, load_effective_config
from hookwire.models import ExecutionOrder, HookCallback, HookOutcome, HookSnapshot
from hookwire.registry import HookRegistry

__all__ = [
    "ExecutionOrder",
    "HookCallback",
    "HookOutcome",
    "HookRegistry",
    "HookSnapshot",
    "RegistryConfig",
    "load_effective_config",
]
