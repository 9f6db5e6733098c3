"""
Exception Module

Module Structure:
-----------------
- **base.py**: MuseBaseError base class + ConfigurationError
- **cache.py**: Store and cache exceptions

Usage:
------
```python
from muse_cache.core.exceptions import CacheError, CacheTimeoutError
```
"""

from muse_cache.core.exceptions.base import ConfigurationError, MuseBaseError
from muse_cache.core.exceptions.cache import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
    CacheTimeoutError,
)

__all__ = [
    # Base
    "MuseBaseError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheTimeoutError",
    "CacheSerializationError",
]
