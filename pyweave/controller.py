"""
控制器

    class Blog(Controller):
        def show_post(self, id):
            return self.show('blog', {'id': id})

路由中的 'Blog#show_post' 通过ControllerResolver找到Blog类,
显式注册的类优先, 否则从控制器包中导入同名模块(小写)
"""

import html
import importlib
import importlib.util
import logging
import re
from typing import TYPE_CHECKING, Any, Dict, Optional, Type

from pyweave.errors import Abort, ControllerNotFound
from pyweave.hooks.events import LifecycleEvents
from pyweave.response import Response

if TYPE_CHECKING:
    from pyweave.hooks.manager import HookManager
    from pyweave.request import Request
    from pyweave.template.engine import TemplateEngine

logger = logging.getLogger(__name__)

CONTROLLER_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def sanitize_template_name(template: str) -> str:
    """
    清理模板名, 防止路径穿越和远程地址
    'http://evil/../blog\\post/' -> 'evil/blog/post'
    """
    for token, replacement in (("https://", ""), ("http://", ""), ("//", "/")):
        template = template.replace(token, replacement)
    template = template.replace("..", "").replace("\0", "").replace("\\", "/")
    return template.strip("/")


class Controller:
    """
    控制器基类
    分发器创建实例后通过bind()注入请求、钩子管理器和视图渲染器
    """

    request: Optional["Request"] = None
    hooks: Optional["HookManager"] = None
    renderer: Optional["TemplateEngine"] = None

    def bind(self,
             request: Optional["Request"] = None,
             hooks: Optional["HookManager"] = None,
             renderer: Optional["TemplateEngine"] = None):
        self.request = request
        self.hooks = hooks
        self.renderer = renderer

    def show(self, template: str, data: Any = "") -> str:
        """
        渲染视图
        :param template: 模板名, 例如 'blog' 或 'admin/users'
        :param data: 视图数据, 字典的键会展开为模板变量
        :return: 渲染结果
        """
        template = sanitize_template_name(template)

        if self.renderer is None or not template or not self.renderer.exists(template):
            logger.info(f"View not found: {template}")
            raise Abort(
                Response(status_code=404, body="Oops. Not found", content_type="text/plain; charset=utf-8"),
                f"View not found: {template}",
            )

        if self.hooks is not None:
            hook_data = self.hooks.trigger(LifecycleEvents.BEFORE_VIEW_RENDER, {
                "template": template,
                "data": data,
            })
            if isinstance(hook_data, dict) and "data" in hook_data:
                data = hook_data["data"]

        context: Dict[str, Any] = dict(data) if isinstance(data, dict) else {}
        context.setdefault("data", data)
        context.setdefault("safe", self.safe)
        output = self.renderer.render(template, **context)

        if self.hooks is not None:
            self.hooks.trigger(LifecycleEvents.AFTER_VIEW_RENDER, {
                "template": template,
                "data": data,
                "output": output,
            })
        return output

    @staticmethod
    def safe(value: Any) -> str:
        """转义HTML特殊字符"""
        return html.escape(str(value), quote=True)


class ControllerResolver:
    """
    控制器解析器
    名称 -> 控制器类, 显式注册或从控制器包中按需导入
    """

    def __init__(self, package: Optional[str] = None):
        self.package = package
        self._registry: Dict[str, Type[Any]] = {}

    def register(self, name: str, cls: Type[Any]):
        self._registry[name] = cls

    def controller(self, cls: Type[Any]) -> Type[Any]:
        """按类名注册控制器的装饰器"""
        self.register(cls.__name__, cls)
        return cls

    def _module_name(self, name: str) -> Optional[str]:
        if not self.package or not CONTROLLER_NAME.match(name):
            return None
        return f"{self.package}.{name.lower()}"

    def exists(self, name: str) -> bool:
        """控制器是否存在(已注册或控制器包中有对应模块)"""
        if name in self._registry:
            return True
        module_name = self._module_name(name)
        if module_name is None:
            return False
        try:
            return importlib.util.find_spec(module_name) is not None
        except ModuleNotFoundError:
            return False

    def load(self, name: str) -> Type[Any]:
        """
        加载控制器类
        :raises ControllerNotFound: 模块或类不存在
        """
        cls = self._registry.get(name)
        if cls is not None:
            return cls

        module_name = self._module_name(name)
        if module_name is None:
            raise ControllerNotFound(f"Controller not found: {name}")
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise ControllerNotFound(f"Controller module not found: {module_name}") from e

        cls = getattr(module, name, None)
        if not isinstance(cls, type):
            raise ControllerNotFound(f"Controller class not found: {name}")

        self._registry[name] = cls
        return cls

    def instantiate(self, name: str) -> Any:
        """创建控制器实例, 不调用任何方法"""
        return self.load(name)()
