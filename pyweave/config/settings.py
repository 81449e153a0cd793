# 应用配置: 从环境变量或YAML文件加载
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Mapping, Optional, Union

import yaml

from pyweave.config.cache_config import CacheConfig, RedisConfig

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class AppConfig:
    """
    应用配置数据类
    控制调试模式、路由缓存、控制器/模板/钩子目录以及日志
    """
    debug: bool = False  # 调试模式: 输出错误详情,关闭路由缓存,记录钩子执行日志
    base_url: str = "/"  # 部署子路径,匹配前从请求路径中去掉

    # 路由缓存配置
    route_cache_file: Optional[str] = None  # 文件缓存路径,None表示不启用
    route_cache_key: str = "pyweave_routes_v1"  # 共享缓存中的键
    route_cache_ttl: int = 3600
    shared_cache: Optional[CacheConfig] = field(default_factory=CacheConfig)  # None表示无共享缓存

    # 控制器/模板/钩子
    controllers_package: Optional[str] = None
    template_dir: Optional[str] = None
    hooks_dir: Optional[str] = None

    # 日志配置
    log_level: str = "INFO"
    log_dir: Optional[str] = None
    log_json: bool = True


class Settings:
    """
    应用程序配置管理类
    负责读取环境变量(或等价的映射)并生成AppConfig
    """

    def __init__(self, environ: Optional[Mapping[str, Any]] = None):
        self.environ = dict(os.environ if environ is None else environ)

    def _get(self, name: str, default: Any = None) -> Any:
        value = self.environ.get(name)
        return default if value in (None, "") else value

    def _get_bool(self, name: str, default: bool = False) -> bool:
        value = self._get(name)
        if value is None:
            return default
        return str(value).strip().lower() in _TRUE_VALUES

    @lru_cache()  # 同一Settings实例只解析一次
    def get_cache_config(self) -> Optional[Union[CacheConfig, RedisConfig]]:
        """
        获取共享缓存配置
        CACHE_TYPE为redis时返回Redis配置,为none时不启用共享缓存

        Returns:
            Union[CacheConfig, RedisConfig, None]: 缓存配置对象
        """
        cache_type = str(self._get("CACHE_TYPE", "lru")).lower()
        ttl = int(self._get("CACHE_TTL", 3600))

        if cache_type == "none":
            return None

        if cache_type == "redis":
            return RedisConfig(
                host=self._get("REDIS_HOST", "localhost"),
                port=int(self._get("REDIS_PORT", 6379)),
                password=self._get("REDIS_PASSWORD"),
                db=int(self._get("REDIS_DB", 0)),
                ttl=ttl,
            )

        return CacheConfig(
            capacity=int(self._get("CACHE_CAPACITY", 1000)),
            ttl=ttl,
        )

    def get_app_config(self) -> AppConfig:
        """生成应用配置"""
        cache_config = self.get_cache_config()
        return AppConfig(
            debug=self._get_bool("DEBUG"),
            base_url=self._get("BASE_URL", "/"),
            route_cache_file=self._get("ROUTE_CACHE_FILE"),
            route_cache_ttl=cache_config.ttl if cache_config else 3600,
            shared_cache=cache_config,
            controllers_package=self._get("CONTROLLERS_PACKAGE"),
            template_dir=self._get("TEMPLATE_DIR"),
            hooks_dir=self._get("HOOKS_DIR"),
            log_level=str(self._get("LOG_LEVEL", "INFO")).upper(),
            log_dir=self._get("LOG_DIR"),
            log_json=self._get_bool("LOG_JSON", True),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, Any]] = None) -> AppConfig:
        """从环境变量加载配置"""
        return cls(environ).get_app_config()

    @classmethod
    def from_yaml(cls, path: str) -> AppConfig:
        """
        从YAML文件加载配置
        键名与环境变量相同,大小写不敏感

        Args:
            path (str): YAML配置文件路径

        Returns:
            AppConfig: 配置对象实例
        """
        with open(path) as f:
            config = yaml.safe_load(f) or {}
        if not isinstance(config, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls({str(k).upper(): v for k, v in config.items()}).get_app_config()
