from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """共享键值缓存的最小接口,路由缓存原样使用"""

    def get(self, key: str) -> Optional[Any]:
        """返回缓存值,未命中返回None"""
        ...

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        ...

    def delete(self, key: str) -> bool:
        ...
