from pyweave.hooks.base import NamedHook
from pyweave.hooks.builtin import CorsHook, LogHook
from pyweave.hooks.events import AVAILABLE_HOOKS, LifecycleEvents
from pyweave.hooks.manager import HookManager, HookRegistration, NamedHookBinding

__all__ = [
    "AVAILABLE_HOOKS",
    "CorsHook",
    "HookManager",
    "HookRegistration",
    "LifecycleEvents",
    "LogHook",
    "NamedHook",
    "NamedHookBinding",
]
