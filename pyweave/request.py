from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, quote

HeaderItems = Union[Mapping[str, str], Iterable[Tuple[Union[bytes, str], Union[bytes, str]]]]


def _to_str(value: Union[bytes, str]) -> str:
    return value.decode("latin-1") if isinstance(value, bytes) else value


class Request:
    """
    请求对象
    只保存分发需要的信息: 方法、原始URI、表单字段和请求头
    """

    def __init__(self,
                 method: str,
                 uri: str,
                 form: Optional[Mapping[str, Any]] = None,
                 headers: Optional[HeaderItems] = None):
        """
        初始化请求对象
        Args:
            method: HTTP方法
            uri: 原始请求URI, 可以带查询字符串
            form: 已解析的表单字段, 用于_method方法覆盖
            headers: 请求头, 映射或(name, value)序列
        """
        self.method = method.upper()
        self.uri = uri or "/"
        self.form: Dict[str, Any] = dict(form or {})
        self.headers: Dict[str, str] = {}
        if headers is not None:
            items = headers.items() if isinstance(headers, Mapping) else headers
            for name, value in items:
                # 请求头名称大小写不敏感
                self.headers[_to_str(name).lower()] = _to_str(value)
        self.path_params: Dict[str, str] = {}

    @classmethod
    def from_scope(cls, scope: Mapping[str, Any], form: Optional[Mapping[str, Any]] = None) -> "Request":
        """
        从ASGI风格的scope构造请求
        路径保持URL编码, %2F和%3F留在所在的片段中, 路径参数也是编码后的原始值
        :param scope: 包含 method, raw_path 或 path, query_string, headers
        """
        raw_path = scope.get("raw_path")
        if raw_path:
            uri = _to_str(raw_path)
        else:
            # path已经解码, 重新编码后与raw_path一致
            uri = quote(scope.get("path") or "/", safe="/:@!$&'()*+,;=")
        query_string = _to_str(scope.get("query_string") or b"")
        if query_string:
            uri = f"{uri}?{query_string}"
        return cls(scope.get("method", "GET"), uri, form=form, headers=scope.get("headers") or [])

    @property
    def path(self) -> str:
        """去掉查询字符串后的路径"""
        return self.uri.split("?", 1)[0]

    @property
    def query_string(self) -> str:
        return self.uri.split("?", 1)[1] if "?" in self.uri else ""

    @property
    def query_params(self) -> Dict[str, str]:
        return dict(parse_qsl(self.query_string))

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.uri}>"
