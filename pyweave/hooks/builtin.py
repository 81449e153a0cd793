# hooks/builtin.py
"""
内置命名钩子

    hooks.register_class('log', LogHook, 'before_action_execute', 10)
    hooks.register_class('cors-api', CorsHook, 'before_action_execute', 1, {
        'origins': ['https://example.com'],
        'credentials': True,
    })
"""

import json
import logging
from typing import Any, Dict, Iterable, Optional, Union

from pyweave.errors import Abort
from pyweave.hooks.base import NamedHook
from pyweave.response import Response

logger = logging.getLogger(__name__)


class LogHook(NamedHook):
    """记录每次请求的控制器和方法, 调试模式下附带参数"""

    def handle(self, data: Dict[str, Any], debug: bool = False) -> Dict[str, Any]:
        request = data.get("request")
        message = "{} {} | Controller: {}#{}".format(
            getattr(request, "method", "UNKNOWN"),
            getattr(request, "uri", "UNKNOWN"),
            data.get("controller", "UNKNOWN"),
            data.get("action", "UNKNOWN"),
        )
        if (debug or (self.manager is not None and self.manager.debug)) and data.get("params"):
            message += " | Params: " + json.dumps(data["params"], default=str)
        logger.info(message)
        return data


class CorsHook(NamedHook):
    """
    设置CORS响应头
    OPTIONS预检请求直接以200结束, 不再执行控制器方法
    """

    DEFAULT_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS")
    DEFAULT_HEADERS = ("Content-Type", "Authorization", "X-Requested-With")

    def handle(self,
               data: Dict[str, Any],
               origins: Union[str, Iterable[str]] = "*",
               methods: Optional[Iterable[str]] = None,
               headers: Optional[Iterable[str]] = None,
               credentials: bool = False,
               max_age: int = 3600) -> Dict[str, Any]:
        request = data.get("request")
        origin = request.header("origin", "") if request is not None else ""
        cors = self.build_headers(origin, origins, methods, headers, credentials, max_age)

        data.setdefault("headers", {}).update(cors)

        if request is not None and request.method == "OPTIONS":
            logger.debug("CorsHook: handling OPTIONS preflight request")
            self.halt()
            raise Abort(Response(status_code=200, headers=dict(cors)))

        return data

    def build_headers(self,
                      origin: str,
                      origins: Union[str, Iterable[str]],
                      methods: Optional[Iterable[str]],
                      headers: Optional[Iterable[str]],
                      credentials: bool,
                      max_age: int) -> Dict[str, str]:
        cors: Dict[str, str] = {}

        if origins == "*":
            cors["Access-Control-Allow-Origin"] = "*"
        elif isinstance(origins, str):
            if origin == origins:
                cors["Access-Control-Allow-Origin"] = origin
        elif origin in set(origins):
            cors["Access-Control-Allow-Origin"] = origin
            cors["Vary"] = "Origin"

        cors["Access-Control-Allow-Methods"] = ", ".join(methods or self.DEFAULT_METHODS)
        cors["Access-Control-Allow-Headers"] = ", ".join(headers or self.DEFAULT_HEADERS)
        if credentials:
            cors["Access-Control-Allow-Credentials"] = "true"
        cors["Access-Control-Max-Age"] = str(max_age)
        return cors
