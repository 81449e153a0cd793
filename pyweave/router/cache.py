import json
import logging
import re
from pathlib import Path
from typing import Any, List, Optional, Union

from pyweave.cache.base import CacheBackend
from pyweave.cache.file_store import FileStore
from pyweave.router.core import Router
from pyweave.router.route import RouteDefinition

logger = logging.getLogger(__name__)


# 路由缓存类
class RouteCache:
    """
    路由表缓存
    两级存储: 共享键值缓存(快, 可能不存在) + 文件快照(持久, 可能不可写)
    缓存是尽力而为的, 任何一级失败都只记录日志, 不影响请求分发
    """

    def __init__(self,
                 router: Router,
                 shared: Optional[CacheBackend] = None,
                 file_path: Optional[Union[str, Path]] = None,
                 key: str = "pyweave_routes_v1",
                 ttl: int = 3600):
        """
        初始化路由缓存
        :param router: 路由注册表
        :param shared: 共享缓存层, None表示不可用
        :param file_path: 文件缓存路径, None表示不启用
        :param key: 共享缓存中的键
        :param ttl: 共享缓存的过期时间(秒)
        """
        self.router = router
        self.shared = shared
        self.store = FileStore(file_path) if file_path else None
        self.key = key
        self.ttl = ttl

    def enable_shared_cache(self, backend: Optional[CacheBackend], ttl: Optional[int] = None) -> bool:
        """
        启用共享缓存层
        :return: 缓存可用时返回True
        """
        if backend is None:
            self.shared = None
            return False
        self.shared = backend
        if ttl is not None:
            self.ttl = ttl
        return True

    def enable_file_cache(self, file_path: Union[str, Path]):
        """启用文件缓存"""
        self.store = FileStore(file_path)

    @property
    def enabled(self) -> bool:
        return self.shared is not None or self.store is not None

    def load(self) -> bool:
        """
        从缓存恢复路由表
        先查共享缓存, 未命中再读文件; 从文件恢复后不回填共享缓存
        :return: 成功恢复返回True
        """
        if self.shared is not None:
            try:
                cached = self.shared.get(self.key)
            except Exception as e:
                logger.warning(f"Shared route cache read failed: {e}")
                cached = None
            if cached is not None and self._restore(cached, "shared"):
                return True

        if self.store is None:
            return False

        contents = self.store.read()
        if contents is None:
            return False
        try:
            cached = json.loads(contents)
        except ValueError as e:
            logger.warning(f"Route cache file {self.store.path} is corrupt: {e}")
            return False
        return self._restore(cached, "file")

    def save(self) -> bool:
        """
        保存路由表
        优先写共享缓存, 共享缓存不可用或写入失败时写文件
        :return: 任一级写入成功返回True
        """
        payload = self._serialize()

        if self.shared is not None:
            try:
                if self.shared.put(self.key, payload, self.ttl):
                    return True
            except Exception as e:
                logger.warning(f"Shared route cache write failed: {e}")

        if self.store is None:
            return False

        try:
            contents = json.dumps(payload)
        except (TypeError, ValueError) as e:
            logger.warning(f"Route table is not serializable: {e}")
            return False
        return self.store.write(contents)

    def invalidate(self) -> bool:
        """清除两级缓存"""
        shared_ok = True
        file_ok = True

        if self.shared is not None:
            try:
                self.shared.delete(self.key)
            except Exception as e:
                logger.warning(f"Shared route cache delete failed: {e}")
                shared_ok = False

        if self.store is not None:
            file_ok = self.store.delete()

        return shared_ok and file_ok

    def _serialize(self) -> List[dict]:
        return [route.to_dict() for route in self.router.get_routes()]

    def _restore(self, cached: Any, tier: str) -> bool:
        """用缓存内容整体替换路由表, 不重新编译路由模式"""
        if not isinstance(cached, list):
            logger.warning(f"Ignoring malformed {tier} route cache")
            return False
        try:
            routes = [RouteDefinition.from_dict(item) for item in cached]
        except (KeyError, TypeError, re.error) as e:
            logger.warning(f"Ignoring malformed {tier} route cache: {e}")
            return False

        self.router.replace_routes(routes)
        self.router.loaded_from_cache = True
        logger.debug(f"Loaded {len(routes)} routes from {tier} cache")
        return True
