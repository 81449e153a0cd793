"""路由数据结构: 路由定义、分组上下文、匹配结果和链式注册句柄"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Pattern, Union

if TYPE_CHECKING:
    from pyweave.router.core import Router

METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "ANY")


@dataclass
class RouteDefinition:
    """
    路由定义
    注册后只有hooks列表可以通过RouteRegistration追加
    """
    method: str
    pattern: str
    handler: str  # "Controller#action"
    matcher: Pattern[str]
    param_names: List[str]
    hooks: List[str] = field(default_factory=list)

    def accepts(self, method: str) -> bool:
        return self.method == "ANY" or self.method == method

    def match(self, uri: str) -> Optional[Dict[str, str]]:
        """匹配请求路径, 成功时返回按声明顺序排列的参数字典"""
        m = self.matcher.match(uri)
        if m is None:
            return None
        return dict(zip(self.param_names, m.groups()))

    def to_dict(self) -> Dict[str, Any]:
        """可序列化形式, 正则只保存源码"""
        return {
            "method": self.method,
            "pattern": self.pattern,
            "handler": self.handler,
            "regex": self.matcher.pattern,
            "params": list(self.param_names),
            "hooks": list(self.hooks),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RouteDefinition":
        return cls(
            method=data["method"],
            pattern=data["pattern"],
            handler=data["handler"],
            matcher=re.compile(data["regex"]),
            param_names=list(data["params"]),
            hooks=list(data.get("hooks") or []),
        )


@dataclass
class GroupContext:
    """分组上下文: 为组内路由提供路径前缀和钩子"""
    prefix: str = ""
    hooks: List[str] = field(default_factory=list)

    @classmethod
    def from_attributes(cls, attributes: Optional[Dict[str, Any]]) -> "GroupContext":
        attributes = attributes or {}
        hooks = attributes.get("hooks") or []
        if isinstance(hooks, str):
            hooks = [hooks]
        return cls(prefix=attributes.get("prefix") or "", hooks=list(hooks))


@dataclass
class MatchedRoute:
    """一次请求的匹配结果"""
    handler: str
    params: Dict[str, str]
    method: str
    uri: str
    pattern: str
    route_method: str = ""  # 路由声明的方法, ANY路由与请求方法不同

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handler": self.handler,
            "params": dict(self.params),
            "method": self.method,
            "uri": self.uri,
            "pattern": self.pattern,
        }


class RouteRegistration:
    """
    链式注册句柄
    Route.get('/admin', 'Admin#dashboard').hook('auth')
    """

    def __init__(self, router: "Router", route: RouteDefinition):
        self.router = router
        self.route = route

    def hook(self, hooks: Union[str, List[str]]) -> "RouteRegistration":
        """为路由追加一个或多个命名钩子"""
        if isinstance(hooks, str):
            hooks = [hooks]
        hooks = list(hooks)
        self.route.hooks.extend(hooks)
        self.router.hooks.attach_to_route(self.route.method, self.route.pattern, hooks)
        return self

    def get_route_data(self) -> Dict[str, Any]:
        return self.route.to_dict()
