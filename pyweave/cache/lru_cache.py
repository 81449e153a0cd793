# 进程内LRU缓存: 路由缓存的共享缓存层的默认实现
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Optional


class CacheItem:
    """缓存项类,用于存储缓存的值和相关元数据"""
    def __init__(self, value: Any, expire_at: Optional[float] = None):
        self.value = value
        self.expire_at = expire_at  # 过期时间戳,None表示永不过期
        self.access_count = 0
        self.created_at = time.time()


class LRUCache:
    """LRU(最近最少使用)缓存实现类"""
    process_local = True  # 数据只在当前进程内可见

    def __init__(self,
                 capacity: int = 1000,
                 logger: Optional[logging.Logger] = None,
                 ttl: int = 3600):
        self.cache: "OrderedDict[str, CacheItem]" = OrderedDict()
        self.capacity = capacity
        self._lock = threading.Lock()  # 多线程服务器中共享同一实例
        self.logger = logger or logging.getLogger(__name__)
        self.ttl = ttl
        self._stats = {
            'hits': 0,
            'misses': 0,
            'evictions': 0,
        }

    def get(self, key: str) -> Optional[Any]:
        """
        获取缓存值
        :param key: 缓存键
        :return: 缓存值,如果不存在或已过期则返回None
        """
        with self._lock:
            item = self.cache.get(key)
            if item is None:
                self._stats['misses'] += 1
                self.logger.debug(f"Cache miss for key: {key}")
                return None

            if item.expire_at is not None and time.time() > item.expire_at:
                self.cache.pop(key)
                self._stats['misses'] += 1
                self.logger.debug(f"Cache expired for key: {key}")
                return None

            item.access_count += 1
            self._stats['hits'] += 1
            self.logger.debug(f"Cache hit for key: {key}")

            # 将访问的项移到末尾(最近使用)
            self.cache.move_to_end(key)
            return item.value

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        设置缓存值
        :param key: 缓存键
        :param value: 缓存值
        :param ttl: 过期时间(秒),None使用默认TTL,0表示永不过期
        :return: 是否写入成功
        """
        with self._lock:
            ttl = self.ttl if ttl is None else ttl
            expire_at = time.time() + ttl if ttl else None
            if key in self.cache:
                self.cache.move_to_end(key)
            self.cache[key] = CacheItem(value, expire_at)

            self._cleanup()
            return key in self.cache

    def delete(self, key: str) -> bool:
        """删除缓存项,键不存在时返回False"""
        with self._lock:
            return self.cache.pop(key, None) is not None

    def _cleanup(self):
        """清理过期和超出容量的缓存项"""
        current_time = time.time()

        expired_keys = [
            k for k, v in self.cache.items()
            if v.expire_at is not None and current_time > v.expire_at
        ]
        for k in expired_keys:
            self.cache.pop(k)

        while len(self.cache) > self.capacity:
            self.cache.popitem(last=False)
            self._stats['evictions'] += 1

    def clear(self):
        """清空整个缓存"""
        with self._lock:
            self.cache.clear()

    def get_stats(self):
        """获取缓存统计信息"""
        total = self._stats['hits'] + self._stats['misses']
        hit_rate = self._stats['hits'] / total if total > 0 else 0
        return {
            **self._stats,
            'size': len(self.cache),
            'capacity': self.capacity,
            'ttl': self.ttl,
            'hit_rate': f"{hit_rate:.2%}"
        }
