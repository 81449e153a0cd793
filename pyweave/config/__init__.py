from pyweave.config.cache_config import CacheConfig, RedisConfig
from pyweave.config.settings import AppConfig, Settings

__all__ = ["AppConfig", "CacheConfig", "RedisConfig", "Settings"]
