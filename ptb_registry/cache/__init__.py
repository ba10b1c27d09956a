"""
Cache Module: Registry Snapshot Caching

Components:
- RegistryCache: TTL read-through cache over the registry sheet read
- CacheStorage: Protocol for slot backends
- InMemoryCacheStorage / DiskCacheStorage: the two shipped backends
"""

from .storage import CacheStorage, InMemoryCacheStorage, DiskCacheStorage
from .registry_cache import RegistryCache, CACHE_KEY, DEFAULT_TTL

__all__ = [
    "CacheStorage",
    "InMemoryCacheStorage",
    "DiskCacheStorage",
    "RegistryCache",
    "CACHE_KEY",
    "DEFAULT_TTL",
]
