"""
应用(路由上下文)

    app = Application(Settings.from_env())
    app.controllers.register('Blog', Blog)

    def routes(app):
        app.get('/blog/:id:', 'Blog#show_post')
        with app.group(prefix='/admin', hooks=['auth']):
            app.get('/dashboard', 'Admin#dashboard')

    app.boot(routes)
    response = app.handle(Request('GET', '/blog/42'))

每个Application持有自己的路由表和钩子管理器, 同一进程中可以存在多个实例
"""

import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from pyweave.cache.factory import CacheFactory
from pyweave.config.settings import AppConfig
from pyweave.controller import ControllerResolver
from pyweave.errors import ErrorHandler
from pyweave.hooks.events import LifecycleEvents
from pyweave.hooks.manager import HookManager
from pyweave.logger.logger import LoggerManager, RequestLogger
from pyweave.request import Request
from pyweave.response import Response
from pyweave.router.cache import RouteCache
from pyweave.router.core import Router
from pyweave.router.dispatcher import Dispatcher
from pyweave.router.route import RouteRegistration
from pyweave.template.engine import TemplateEngine

logger = logging.getLogger(__name__)

CONTAINER_MARKER = "/.dockerenv"


def is_container(environ: Optional[Mapping[str, str]] = None, marker: str = CONTAINER_MARKER) -> bool:
    """是否运行在容器(Docker/Kubernetes)中"""
    environ = os.environ if environ is None else environ
    return (
        os.path.exists(marker)
        or bool(environ.get("DOCKER_ENV"))
        or bool(environ.get("KUBERNETES_SERVICE_HOST"))
    )


class Application:
    """路由上下文: 路由表、钩子管理器、路由缓存和分发器"""

    def __init__(self, config: Optional[AppConfig] = None, environ: Optional[Mapping[str, str]] = None):
        self.config = config or AppConfig()
        self.environ = dict(os.environ if environ is None else environ)
        self.container_marker = CONTAINER_MARKER

        self.logger_manager = LoggerManager(
            log_dir=self.config.log_dir,
            level=self.config.log_level,
            format_json=self.config.log_json,
        )
        self.logger = self.logger_manager.get_logger()
        self.request_logger = RequestLogger(self.logger)

        self.hooks = HookManager(debug=self.config.debug)
        self.router = Router(self.hooks)
        self.route_cache = RouteCache(
            self.router,
            key=self.config.route_cache_key,
            ttl=self.config.route_cache_ttl,
        )
        self.controllers = ControllerResolver(self.config.controllers_package)
        self.renderer = TemplateEngine(self.config.template_dir) if self.config.template_dir else None
        self.error_handler = ErrorHandler(self.logger, debug=self.config.debug)
        self.dispatcher = Dispatcher(
            self.router,
            self.hooks,
            self.controllers,
            error_handler=self.error_handler,
            renderer=self.renderer,
            base_url=self.config.base_url,
            debug=self.config.debug,
        )

        if self.config.hooks_dir:
            loaded = self.hooks.load_hook_files(self.config.hooks_dir)
            logger.debug(f"Loaded {loaded} hook files from {self.config.hooks_dir}")

        self.hooks.trigger(LifecycleEvents.FRAMEWORK_START)

    # ------------------------------------------------------------------
    # 路由声明
    # ------------------------------------------------------------------

    def get(self, pattern: str, handler: str) -> RouteRegistration:
        return self.router.get(pattern, handler)

    def post(self, pattern: str, handler: str) -> RouteRegistration:
        return self.router.post(pattern, handler)

    def put(self, pattern: str, handler: str) -> RouteRegistration:
        return self.router.put(pattern, handler)

    def patch(self, pattern: str, handler: str) -> RouteRegistration:
        return self.router.patch(pattern, handler)

    def delete(self, pattern: str, handler: str) -> RouteRegistration:
        return self.router.delete(pattern, handler)

    def any(self, pattern: str, handler: str) -> RouteRegistration:
        return self.router.any(pattern, handler)

    def group(self, attributes: Optional[Dict[str, Any]] = None, body: Optional[Callable[[], Any]] = None, **kwargs):
        return self.router.group(attributes, body, **kwargs)

    # ------------------------------------------------------------------
    # 启动
    # ------------------------------------------------------------------

    def configure_route_cache(self) -> bool:
        """
        按运行环境配置路由缓存
        - 调试模式: 不缓存
        - 容器中: 优先共享缓存, 共享缓存不可用时只有目录可写才使用文件缓存
        - 其他环境: 共享缓存和文件缓存都启用
        配置了缓存文件时, 进程内LRU不作为共享缓存
        :return: 至少启用了一级缓存时返回True
        """
        if self.config.debug:
            logger.debug("Debug mode, route cache disabled")
            return False

        shared = CacheFactory.create_cache(self.config.shared_cache)
        cache_file = self.config.route_cache_file

        # 进程内缓存在重启后为空, 有缓存文件时只用文件
        if shared is not None and getattr(shared, "process_local", False) and cache_file:
            logger.debug("Process-local shared cache skipped, route cache file configured")
            shared = None

        if is_container(self.environ, self.container_marker):
            if not self.route_cache.enable_shared_cache(shared, self.config.route_cache_ttl) and cache_file:
                directory = Path(cache_file).parent
                if directory.is_dir() and os.access(directory, os.W_OK):
                    self.route_cache.enable_file_cache(cache_file)
                else:
                    logger.info(f"Route cache directory {directory} is not writable, caching disabled")
        else:
            self.route_cache.enable_shared_cache(shared, self.config.route_cache_ttl)
            if cache_file:
                self.route_cache.enable_file_cache(cache_file)

        return self.route_cache.enabled

    def boot(self, routes: Callable[["Application"], Any]) -> "Application":
        """
        加载路由表
        缓存命中时不调用routes, 否则调用routes声明路由并写入缓存
        :param routes: 声明路由的函数, 接收当前应用
        """
        self.hooks.trigger(LifecycleEvents.BEFORE_ROUTER_INIT)

        self.configure_route_cache()
        if not (self.route_cache.enabled and self.route_cache.load()):
            routes(self)
            if self.route_cache.enabled and not self.route_cache.save():
                logger.info("Route table not cached")

        logger.debug(
            f"{len(self.router)} routes ready"
            + (" (from cache)" if self.router.loaded_from_cache else "")
        )
        self.hooks.trigger(LifecycleEvents.AFTER_ROUTES_REGISTERED)
        return self

    # ------------------------------------------------------------------
    # 请求处理
    # ------------------------------------------------------------------

    def handle(self, request: Request) -> Response:
        """处理一次请求, 无论结果如何最后都触发framework_shutdown"""
        start_time = time.time()
        response = None
        try:
            response = self.dispatcher.dispatch(request)
            return response
        finally:
            if response is not None:
                self.request_logger.log_request(
                    request.method, request.uri, response.status_code, time.time() - start_time
                )
            self.hooks.trigger(LifecycleEvents.FRAMEWORK_SHUTDOWN, {"request": request, "response": response})
