from .cache_client import CacheClient, MemoryCacheClient, RedisCacheClient, create_cache_client

__all__ = ["CacheClient", "MemoryCacheClient", "RedisCacheClient", "create_cache_client"]
