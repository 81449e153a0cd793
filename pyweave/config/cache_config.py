# 缓存相关配置
from dataclasses import dataclass
from typing import Optional


@dataclass
class CacheConfig:
    """缓存配置的基类

    定义了基本的缓存参数,包括缓存类型、容量和TTL(生存时间)
    """
    type: str = "lru"  # 缓存类型,默认为LRU(进程内)
    capacity: int = 1000  # 缓存容量
    ttl: int = 3600  # 缓存生存时间(秒)


@dataclass
class RedisConfig(CacheConfig):
    """Redis缓存配置类

    继承自CacheConfig,添加了Redis特有的连接参数
    """
    type: str = "redis"
    host: str = "localhost"
    port: int = 6379
    password: Optional[str] = None
    db: int = 0

    @property
    def url(self) -> str:
        """生成Redis连接URL

        Returns:
            str: 标准格式的Redis连接URL
        """
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"
