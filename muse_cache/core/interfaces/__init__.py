from muse_cache.core.interfaces.cache import CacheStore, InMemoryCacheStore, InMemoryPipeline

__all__ = ["CacheStore", "InMemoryCacheStore", "InMemoryPipeline"]
