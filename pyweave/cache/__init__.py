from pyweave.cache.base import CacheBackend
from pyweave.cache.factory import CacheFactory
from pyweave.cache.file_store import FileStore
from pyweave.cache.lru_cache import LRUCache

__all__ = ["CacheBackend", "CacheFactory", "FileStore", "LRUCache"]
