from pyweave.router.cache import RouteCache
from pyweave.router.core import Router
from pyweave.router.dispatcher import Dispatcher
from pyweave.router.patterns import PatternCompiler, extract_param_names, normalize_pattern
from pyweave.router.route import GroupContext, MatchedRoute, RouteDefinition, RouteRegistration

__all__ = [
    "Dispatcher",
    "GroupContext",
    "MatchedRoute",
    "PatternCompiler",
    "RouteCache",
    "RouteDefinition",
    "RouteRegistration",
    "Router",
    "extract_param_names",
    "normalize_pattern",
]
