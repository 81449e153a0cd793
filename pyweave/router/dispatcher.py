"""
请求分发器

一次请求的处理流程:
    before_route_match -> 路由匹配 -> after_route_match
    -> before_controller_load -> after_controller_instantiate
    -> 路由钩子 -> before_action_execute -> 控制器方法 -> after_action_execute

没有匹配的路由时触发 on_404, 分发过程中出错时触发 on_error
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pyweave.errors import Abort, ActionNotFound, ControllerNotFound, ErrorHandler
from pyweave.hooks.events import LifecycleEvents
from pyweave.hooks.manager import HookManager
from pyweave.request import Request
from pyweave.response import Response, not_found_response, success_response
from pyweave.router.core import Router
from pyweave.router.patterns import normalize_pattern
from pyweave.router.route import MatchedRoute

if TYPE_CHECKING:
    from pyweave.controller import ControllerResolver
    from pyweave.template.engine import TemplateEngine

logger = logging.getLogger(__name__)

METHOD_OVERRIDE_FIELD = "_method"
OVERRIDABLE_METHODS = ("PUT", "PATCH", "DELETE")


class Dispatcher:
    """把请求分发到匹配路由的控制器方法, 并在每个阶段触发钩子"""

    def __init__(self,
                 router: Router,
                 hooks: HookManager,
                 controllers: "ControllerResolver",
                 error_handler: Optional[ErrorHandler] = None,
                 renderer: Optional["TemplateEngine"] = None,
                 base_url: str = "/",
                 debug: bool = False):
        self.router = router
        self.hooks = hooks
        self.controllers = controllers
        self.error_handler = error_handler or ErrorHandler(debug=debug)
        self.renderer = renderer
        self.base_url = base_url
        self.debug = debug

    @staticmethod
    def resolve_method(request: Request) -> str:
        """
        解析请求方法
        只有POST请求可以通过_method字段覆盖为PUT、PATCH或DELETE
        """
        method = request.method.upper()
        if method == "POST":
            override = request.form.get(METHOD_OVERRIDE_FIELD)
            if isinstance(override, str) and override.upper() in OVERRIDABLE_METHODS:
                return override.upper()
        return method

    @staticmethod
    def normalize_uri(uri: str, base_url: str = "/") -> str:
        """
        规范化请求路径
        '/app/blog/12/?page=1' (base_url='/app') -> '/blog/12'
        """
        path = (uri or "/").split("?", 1)[0].split("#", 1)[0]

        base = "/" + base_url.strip("/") if base_url else "/"
        if base != "/":
            if path == base:
                path = "/"
            elif path.startswith(base + "/"):
                path = path[len(base):]

        # 合并连续的斜杠
        path = "/" + "/".join(segment for segment in path.split("/") if segment)
        return normalize_pattern(path)

    def dispatch(self, request: Request) -> Response:
        """
        处理一次请求
        :return: 控制器响应、404响应或错误响应
        """
        method = self.resolve_method(request)
        uri = self.normalize_uri(request.uri, self.base_url)

        try:
            self.hooks.trigger(LifecycleEvents.BEFORE_ROUTE_MATCH, {
                "method": method,
                "uri": uri,
                "request": request,
            })

            matched = self.router.match(method, uri)
            if matched is None:
                return self._not_found(method, uri)

            request.path_params = dict(matched.params)
            self.hooks.trigger(LifecycleEvents.AFTER_ROUTE_MATCH, matched.to_dict())

            return self._execute(request, matched)
        except Abort as e:
            logger.debug(f"Request {method} {uri} aborted: {e}")
            return e.response
        except Exception as e:
            return self._error(e)

    def _execute(self, request: Request, matched: MatchedRoute) -> Response:
        controller_name, action = self.router.parse_handler(matched.handler)

        if not self.controllers.exists(controller_name):
            raise ControllerNotFound(f"Controller not found: {controller_name}")

        self.hooks.trigger(LifecycleEvents.BEFORE_CONTROLLER_LOAD, {
            "controller": controller_name,
            "action": action,
            "params": dict(matched.params),
            "request": request,
        })

        instance = self.controllers.instantiate(controller_name)
        bind = getattr(instance, "bind", None)
        if callable(bind):
            bind(request=request, hooks=self.hooks, renderer=self.renderer)

        self.hooks.trigger(LifecycleEvents.AFTER_CONTROLLER_INSTANTIATE, {
            "controller": controller_name,
            "action": action,
            "instance": instance,
            "params": dict(matched.params),
            "request": request,
        })

        handler = None if action.startswith("_") else getattr(instance, action, None)
        if not callable(handler):
            raise ActionNotFound(f"Method {action} not found in controller {controller_name}")

        context: Dict[str, Any] = {
            "controller": controller_name,
            "action": action,
            "instance": instance,
            "params": dict(matched.params),
            "request": request,
            "headers": {},
        }

        # 路由钩子先执行, 结果作为全局钩子的输入
        route_data = self.hooks.trigger_route_hooks(matched.route_method or matched.method, matched.pattern, context)
        action_data = self.hooks.trigger(
            LifecycleEvents.BEFORE_ACTION_EXECUTE,
            route_data if route_data is not None else context,
        )

        params = matched.params
        if isinstance(action_data, dict) and isinstance(action_data.get("params"), dict):
            params = action_data["params"]
        headers = action_data.get("headers") if isinstance(action_data, dict) else None

        result = handler(*self._ordered_values(params, matched))

        response = result if isinstance(result, Response) else success_response(result)
        response.with_headers(headers)

        after = self.hooks.trigger(LifecycleEvents.AFTER_ACTION_EXECUTE, {
            "controller": controller_name,
            "action": action,
            "params": params,
            "response": response,
        })
        if isinstance(after, dict) and isinstance(after.get("response"), Response):
            response = after["response"]
        return response

    @staticmethod
    def _ordered_values(params: Dict[str, Any], matched: MatchedRoute) -> List[Any]:
        """路由声明的参数按声明顺序在前, 钩子新增的参数按插入顺序在后"""
        declared = [name for name in matched.params if name in params]
        extra = [name for name in params if name not in matched.params]
        return [params[name] for name in declared + extra]

    def _not_found(self, method: str, uri: str) -> Response:
        logger.info(f"No route for {method} {uri}", extra={"route": uri})
        self.hooks.trigger(LifecycleEvents.ON_404, {"uri": uri, "method": method})
        return not_found_response()

    def _error(self, error: Exception) -> Response:
        details = ErrorHandler.describe(error)
        try:
            self.hooks.trigger(LifecycleEvents.ON_ERROR, dict(details))
        except Abort as e:
            return e.response
        return self.error_handler.handle(error, details)
