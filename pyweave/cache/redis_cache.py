import logging
import pickle  # 导入序列化/反序列化库
from typing import Any, Optional

import redis

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis缓存类,多个工作进程共享同一份路由表"""
    process_local = False

    def __init__(self, redis_url: str = "redis://localhost:6379",
                 default_ttl: int = 3600,
                 client: Optional[redis.Redis] = None):
        """
        初始化Redis缓存
        Args:
            redis_url: Redis连接URL,默认为localhost:6379
            default_ttl: 默认的缓存过期时间(秒),默认1小时
            client: 已创建的客户端,测试时可注入
        """
        self.redis_url = redis_url
        self.default_ttl = default_ttl
        self._redis: Optional[redis.Redis] = client
        self._stats = {
            'hits': 0,
            'misses': 0,
            'errors': 0
        }

    def connect(self) -> bool:
        """
        建立Redis连接并检查可用性
        Returns:
            bool: 连接成功返回True
        """
        try:
            if self._redis is None:
                self._redis = redis.Redis.from_url(self.redis_url)
            self._redis.ping()
            logger.info(f"Connected to Redis at {self.redis_url}")
            return True
        except redis.RedisError as e:
            logger.warning(f"Failed to connect to Redis: {e}")
            self._redis = None
            return False

    @property
    def available(self) -> bool:
        return self._redis is not None

    def get(self, key: str) -> Optional[Any]:
        """
        获取缓存值
        Args:
            key: 缓存键
        Returns:
            Any: 缓存的值,如果不存在则返回None
        """
        if self._redis is None:
            return None
        try:
            value = self._redis.get(key)
            if value:
                self._stats['hits'] += 1
                return pickle.loads(value)
            self._stats['misses'] += 1
            return None
        except (redis.RedisError, pickle.UnpicklingError) as e:
            self._stats['errors'] += 1
            logger.error(f"Redis get error: {e}")
            return None

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        设置缓存值
        Args:
            key: 缓存键
            value: 要缓存的值
            ttl: 过期时间(秒),None则使用默认过期时间
        """
        if self._redis is None:
            return False
        try:
            ttl = self.default_ttl if ttl is None else ttl
            return bool(self._redis.set(key, pickle.dumps(value), ex=ttl or None))
        except (redis.RedisError, pickle.PicklingError) as e:
            self._stats['errors'] += 1
            logger.error(f"Redis set error: {e}")
            return False

    def delete(self, key: str) -> bool:
        """
        删除缓存
        Args:
            key: 要删除的缓存键
        """
        if self._redis is None:
            return False
        try:
            return bool(self._redis.delete(key))
        except redis.RedisError as e:
            self._stats['errors'] += 1
            logger.error(f"Redis delete error: {e}")
            return False

    def get_stats(self):
        """
        获取缓存统计信息
        Returns:
            dict: 包含命中次数、未命中次数、错误次数和命中率的统计信息
        """
        total = self._stats['hits'] + self._stats['misses']
        hit_rate = self._stats['hits'] / total if total > 0 else 0
        return {
            **self._stats,
            'hit_rate': f"{hit_rate:.2%}"
        }

    def close(self):
        """关闭Redis连接"""
        if self._redis is not None:
            self._redis.close()
            self._redis = None
