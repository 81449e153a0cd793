from pyweave.application import Application
from pyweave.config import AppConfig, Settings
from pyweave.controller import Controller, ControllerResolver
from pyweave.errors import Abort, ActionNotFound, ConfigurationError, ControllerNotFound, ErrorHandler, WeaveError
from pyweave.hooks import CorsHook, HookManager, LifecycleEvents, LogHook, NamedHook
from pyweave.request import Request
from pyweave.response import Response
from pyweave.router import Dispatcher, RouteCache, Router

__version__ = "0.1"

__all__ = [
    "Abort",
    "ActionNotFound",
    "AppConfig",
    "Application",
    "ConfigurationError",
    "Controller",
    "ControllerNotFound",
    "ControllerResolver",
    "CorsHook",
    "Dispatcher",
    "ErrorHandler",
    "HookManager",
    "LifecycleEvents",
    "LogHook",
    "NamedHook",
    "Request",
    "Response",
    "RouteCache",
    "Router",
    "Settings",
    "WeaveError",
]
