import logging
from pathlib import Path
from typing import Any, Callable, Union

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".html"


class TemplateEngine:
    """视图渲染器"""

    def __init__(self, template_dir: Union[str, Path],
                 cache_size: int = 100,
                 auto_reload: bool = True):
        """
        初始化模板引擎
        Args:
            template_dir: 模板目录
            cache_size: 模板缓存大小
            auto_reload: 是否自动重载模板
        """
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(['html', 'xml']),
            cache_size=cache_size,
            auto_reload=auto_reload
        )

        self.add_default_filters()

    def add_default_filters(self):
        """添加默认的模板过滤器"""
        def datetime_format(value, format="%Y-%m-%d %H:%M:%S"):
            return value.strftime(format)

        def truncate(value, length=100, suffix='...'):
            if len(value) <= length:
                return value
            return value[:length] + suffix

        self.env.filters['datetime_format'] = datetime_format
        self.env.filters['truncate'] = truncate

    @staticmethod
    def template_file(name: str) -> str:
        """'blog/show' -> 'blog/show.html'"""
        return name if Path(name).suffix else name + DEFAULT_EXTENSION

    def exists(self, name: str) -> bool:
        try:
            self.env.get_template(self.template_file(name))
        except TemplateNotFound:
            return False
        return True

    def render(self, template_name: str, **context) -> str:
        """渲染模板
        Args:
            template_name: 模板名, 没有扩展名时补上.html
            **context: 模板上下文数据
        Returns:
            str: 渲染后的内容
        """
        try:
            template = self.env.get_template(self.template_file(template_name))
            return template.render(**context)
        except TemplateNotFound:
            raise
        except Exception as e:
            logger.error(f"Template rendering error in {template_name}: {e}")
            raise

    def add_filter(self, name: str, filter_func: Callable[..., Any]):
        """添加自定义过滤器"""
        self.env.filters[name] = filter_func

    def add_global(self, name: str, value: Any):
        """添加全局变量"""
        self.env.globals[name] = value

    def render_string(self, source: str, **context) -> str:
        """渲染字符串模板"""
        return self.env.from_string(source).render(**context)
