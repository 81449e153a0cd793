import logging
from typing import Optional

from pyweave.cache.base import CacheBackend
from pyweave.config.cache_config import CacheConfig, RedisConfig

logger = logging.getLogger(__name__)


class CacheFactory:
    """
    缓存工厂类
    根据配置创建路由缓存的共享缓存层
    支持创建Redis缓存和LRU缓存
    """

    @staticmethod
    def create_cache(config: Optional[CacheConfig]) -> Optional[CacheBackend]:
        """
        根据配置创建缓存实例的工厂方法

        Args:
            config: 缓存配置对象,可以是RedisConfig或CacheConfig类型

        Returns:
            - 如果是RedisConfig配置且连接成功,返回RedisCache实例
            - 如果是CacheConfig配置,返回LRUCache实例
            - 配置为None或Redis不可用时返回None(共享缓存层缺失)
        """
        if config is None:
            return None

        if isinstance(config, RedisConfig):
            from .redis_cache import RedisCache
            cache = RedisCache(
                redis_url=config.url,
                default_ttl=config.ttl
            )
            if not cache.connect():
                logger.warning("Redis unavailable, shared route cache tier disabled")
                return None
            return cache

        from .lru_cache import LRUCache
        return LRUCache(
            capacity=config.capacity,
            ttl=config.ttl
        )
