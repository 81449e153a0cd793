import time
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Response(BaseModel):
    """统一响应类

    分发器的最终产物: 正常响应、404响应和错误响应都以此表示
    """
    status_code: int = 200
    body: str = ""
    content_type: str = "text/html; charset=utf-8"
    headers: Dict[str, str] = Field(default_factory=dict)
    data: Any = None  # 控制器方法的原始返回值
    timestamp: float = Field(default_factory=time.time)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def with_headers(self, headers: Optional[Dict[str, str]]) -> "Response":
        """合并额外的响应头(钩子设置的响应头不覆盖已有的同名头)"""
        if headers:
            for name, value in headers.items():
                self.headers.setdefault(name, str(value))
        return self


def success_response(data: Any = None, body: Optional[str] = None) -> Response:
    """成功响应

    :param data: 控制器返回的数据
    :param body: 响应体,为None时由data推导
    """
    if body is None:
        body = data if isinstance(data, str) else ""
    return Response(status_code=200, body=body, data=data)


def not_found_response(message: str = "404 - Route not found") -> Response:
    """404响应"""
    return Response(status_code=404, body=message, content_type="text/plain; charset=utf-8")


def error_response(code: int = 500, body: str = "500 - Internal Server Error", data: Any = None) -> Response:
    """错误响应"""
    return Response(status_code=code, body=body, data=data)


def redirect_response(location: str, code: int = 302) -> Response:
    """重定向响应,常用于认证钩子中断请求"""
    return Response(status_code=code, headers={"Location": location})
