"""
路由注册表

    router.get('/blog/:id:', 'Blog#show_post')
    router.post('/blog', 'Blog#store').hook('auth')

    with router.group(prefix='/admin', hooks=['auth']):
        router.get('/users', 'Admin#users')   # /admin/users, 钩子 ['auth']

路由按注册顺序匹配, 第一个方法和模式都匹配的路由胜出
"""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from pyweave.errors import ConfigurationError
from pyweave.hooks.manager import HookManager
from pyweave.router.patterns import PatternCompiler, normalize_pattern
from pyweave.router.route import (
    METHODS,
    GroupContext,
    MatchedRoute,
    RouteDefinition,
    RouteRegistration,
)

HANDLER_SEPARATOR = "#"


class Router:
    """路由注册表和匹配器"""

    def __init__(self, hooks: Optional[HookManager] = None, compiler: Optional[PatternCompiler] = None):
        self.hooks = hooks or HookManager()
        self.compiler = compiler or PatternCompiler()
        self._routes: List[RouteDefinition] = []
        self._group_stack: List[GroupContext] = []
        self._cached_group_attributes: Optional[GroupContext] = None  # 分组属性合并结果缓存
        self._local = threading.local()
        self.loaded_from_cache = False

    # ------------------------------------------------------------------
    # 路由声明
    # ------------------------------------------------------------------

    def get(self, pattern: str, handler: str) -> RouteRegistration:
        return self.register("GET", pattern, handler)

    def post(self, pattern: str, handler: str) -> RouteRegistration:
        return self.register("POST", pattern, handler)

    def put(self, pattern: str, handler: str) -> RouteRegistration:
        return self.register("PUT", pattern, handler)

    def patch(self, pattern: str, handler: str) -> RouteRegistration:
        return self.register("PATCH", pattern, handler)

    def delete(self, pattern: str, handler: str) -> RouteRegistration:
        return self.register("DELETE", pattern, handler)

    def any(self, pattern: str, handler: str) -> RouteRegistration:
        """注册响应任意HTTP方法的路由"""
        return self.register("ANY", pattern, handler)

    def register(self, method: str, pattern: str, handler: str) -> RouteRegistration:
        """
        注册路由
        :param method: HTTP方法或ANY
        :param pattern: 路由模式, 可包含 :name: 占位符
        :param handler: "Controller#action"
        :return: 可追加钩子的链式句柄
        """
        method = method.upper()
        if method not in METHODS:
            raise ConfigurationError(f"Unsupported route method: {method}")

        group = self._group_attributes()
        pattern = normalize_pattern(pattern, group.prefix)
        matcher, param_names = self.compiler.compile(pattern)

        if len(set(param_names)) != len(param_names):
            raise ConfigurationError(f"Duplicate parameter name in route pattern: {pattern}")

        route = RouteDefinition(
            method=method,
            pattern=pattern,
            handler=handler,
            matcher=matcher,
            param_names=list(param_names),
            hooks=list(group.hooks),
        )
        self._routes.append(route)

        if group.hooks:
            self.hooks.attach_to_route(method, pattern, group.hooks)

        return RouteRegistration(self, route)

    # ------------------------------------------------------------------
    # 路由分组
    # ------------------------------------------------------------------

    def group(self,
              attributes: Optional[Dict[str, Any]] = None,
              body: Optional[Callable[[], Any]] = None,
              **kwargs: Any):
        """
        定义路由分组
        组内注册的路由继承分组的前缀和钩子, 分组可以嵌套

            router.group({'prefix': '/admin', 'hooks': ['auth']}, register_admin_routes)

        不传body时返回上下文管理器:

            with router.group(prefix='/admin', hooks=['auth']):
                ...
        """
        context = GroupContext.from_attributes({**(attributes or {}), **kwargs})
        if body is None:
            return self._group_scope(context)
        with self._group_scope(context):
            body()
        return None

    @contextmanager
    def _group_scope(self, context: GroupContext) -> Iterator[GroupContext]:
        self._group_stack.append(context)
        self._cached_group_attributes = None
        try:
            yield context
        finally:
            # 组内注册抛出异常时也要出栈, 否则会污染后续的路由
            self._group_stack.pop()
            self._cached_group_attributes = None

    def _group_attributes(self) -> GroupContext:
        """合并当前所有分组的属性: 前缀依次拼接, 钩子依次追加(不去重)"""
        if self._cached_group_attributes is not None:
            return self._cached_group_attributes

        prefix = ""
        hooks: List[str] = []
        for group in self._group_stack:
            segment = group.prefix.strip("/")
            if segment:
                prefix += "/" + segment
            hooks.extend(group.hooks)

        merged = GroupContext(prefix=prefix, hooks=hooks)
        self._cached_group_attributes = merged
        return merged

    # ------------------------------------------------------------------
    # 匹配
    # ------------------------------------------------------------------

    def match(self, method: str, uri: str) -> Optional[MatchedRoute]:
        """
        在已注册的路由中查找第一个匹配
        :param method: 已解析的请求方法
        :param uri: 规范化后的请求路径
        :return: 匹配结果, 没有匹配时返回None
        """
        method = method.upper()
        for route in self._routes:
            if not route.accepts(method):
                continue

            params = route.match(uri)
            if params is not None:
                matched = MatchedRoute(
                    handler=route.handler,
                    params=params,
                    method=method,
                    uri=uri,
                    pattern=route.pattern,
                    route_method=route.method,
                )
                self._local.matched = matched
                return matched

        self._local.matched = None
        return None

    def get_matched_route(self) -> Optional[MatchedRoute]:
        """当前线程最近一次匹配的路由"""
        return getattr(self._local, "matched", None)

    @staticmethod
    def parse_handler(handler: str) -> Tuple[str, str]:
        """
        解析处理器字符串
        'Blog#show' -> ('Blog', 'show')
        """
        controller, separator, action = handler.partition(HANDLER_SEPARATOR)
        if not separator or not controller or not action or HANDLER_SEPARATOR in action:
            raise ConfigurationError(
                f"Invalid handler format: {handler}. Expected 'Controller{HANDLER_SEPARATOR}action'"
            )
        return controller, action

    # ------------------------------------------------------------------
    # 路由表
    # ------------------------------------------------------------------

    def get_routes(self) -> List[RouteDefinition]:
        return list(self._routes)

    def replace_routes(self, routes: Iterable[RouteDefinition]):
        """
        整体替换路由表(从缓存恢复时使用)
        路由上的钩子重新挂到钩子管理器
        """
        for route in self._routes:
            self.hooks.detach_route(route.method, route.pattern)
        self._routes = list(routes)
        for route in self._routes:
            if route.hooks:
                self.hooks.attach_to_route(route.method, route.pattern, route.hooks)

    def clear(self):
        self._routes = []
        self._group_stack = []
        self._cached_group_attributes = None
        self.loaded_from_cache = False

    def __len__(self) -> int:
        return len(self._routes)
