from muse_cache.services.cache_aside import CacheAside

__all__ = ["CacheAside"]
