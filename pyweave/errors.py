# errors.py - 错误处理模块

import logging
import time
import traceback
import uuid
from typing import Any, Dict, Optional

from jinja2 import DictLoader, Environment, select_autoescape

from pyweave.response import Response, error_response


class WeaveError(Exception):
    """框架自定义错误的基类"""


class ConfigurationError(WeaveError):
    """
    配置错误
    路由表或钩子声明有误时在启动阶段抛出,不会被分发器吞掉
    """


class ControllerNotFound(WeaveError):
    """控制器不存在或无法加载"""


class ActionNotFound(WeaveError):
    """控制器中不存在请求的方法"""


class Abort(WeaveError):
    """
    提前结束请求的控制流信号
    钩子或控制器方法抛出后,分发器直接返回携带的响应,不触发on_error
    """
    def __init__(self, response: Response, message: str = ""):
        self.response = response
        super().__init__(message or f"Request aborted with status {response.status_code}")


# 错误页模板,autoescape保证错误信息中的标记被转义
_ERROR_TEMPLATES = {
    "error.html": (
        "500 - Internal Server Error<br>"
        "{% if debug %}"
        "Error: {{ message }}<br>"
        "Location: {{ file }}:{{ line }}<br>"
        "Trace: <pre>{{ trace }}</pre>"
        "{% endif %}"
    ),
}


class ErrorHandler:
    """
    错误处理器类
    记录分发过程中的错误并生成错误响应,调试模式下附带错误详情
    """
    def __init__(self, logger: Optional[logging.Logger] = None, debug: bool = False):
        """
        初始化错误处理器
        Args:
            logger: 日志记录器实例,如果为None则创建默认logger
            debug: 是否输出错误详情
        """
        self.logger = logger or logging.getLogger(__name__)
        self.debug = debug
        self.env = Environment(
            loader=DictLoader(_ERROR_TEMPLATES),
            autoescape=select_autoescape(default=True, default_for_string=True),
        )

    @staticmethod
    def describe(error: BaseException) -> Dict[str, Any]:
        """
        提取错误详情(on_error钩子的数据)
        Returns:
            dict: exception, message, file, line, trace
        """
        frames = traceback.extract_tb(error.__traceback__)
        last = frames[-1] if frames else None
        return {
            "exception": error,
            "message": str(error),
            "file": last.filename if last else None,
            "line": last.lineno if last else None,
            "trace": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        }

    def handle(self, error: BaseException, details: Optional[Dict[str, Any]] = None) -> Response:
        """处理错误并返回标准化的错误响应"""
        details = details or self.describe(error)
        error_id = self._log_error(error, details)
        body = self.env.get_template("error.html").render(debug=self.debug, **{
            k: v for k, v in details.items() if k != "exception"
        })
        return error_response(code=500, body=body, data={"error_id": error_id})

    def _log_error(self, error: BaseException, details: Dict[str, Any]) -> str:
        """
        记录错误日志
        Returns:
            str: 生成的错误ID
        """
        error_id = uuid.uuid4().hex[:12]
        self.logger.error(
            f"Error ID: {error_id}\n"
            f"Type: {type(error).__name__}\n"
            f"Message: {details['message']}\n"
            f"Time: {time.strftime('%Y-%m-%d %H:%M:%S')}\n"
            f"Traceback:\n{details['trace']}"
        )
        return error_id
