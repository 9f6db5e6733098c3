"""
Access Token Cache

Short-lived provider access tokens keyed by subject. A cached token must
never be served after the provider stops honoring it, so the TTL is the
configured token TTL, further capped by the token's own remaining lifetime
minus a safety margin when the caller knows it.
"""

from muse_cache.core.config.constants import Stage
from muse_cache.core.interfaces.cache import CacheStore
from muse_cache.core.logging.logger import get_logger
from muse_cache.infrastructure.cache.keys import CacheKeyBuilder

logger = get_logger(__name__)


class TokenCache:
    def __init__(self, store: CacheStore, keys: CacheKeyBuilder, ttl: int, safety_margin: int):
        self._store = store
        self._keys = keys
        self.ttl = ttl
        self.safety_margin = safety_margin

    def ttl_for(self, expires_in: int | None) -> int:
        """
        TTL for a token that the provider says expires in ``expires_in`` seconds.

        A result of zero or less means the token is too close to expiry to cache.
        """
        if expires_in is None:
            return self.ttl
        return min(self.ttl, expires_in - self.safety_margin)

    async def put(self, subject_id: str, token: str, expires_in: int | None = None) -> bool:
        """
        Cache a token.

        STAGE-CACHE.7: Token PUT

        Returns:
            False if the token was too close to expiry to cache
        """
        ttl = self.ttl_for(expires_in)
        if ttl <= 0:
            logger.info(
                "Token too close to expiry, not cached",
                stage=Stage.CACHE_TOKEN.value,
                subject_id=subject_id,
                expires_in=expires_in,
            )
            return False

        await self._store.set(self._keys.token(subject_id), token, ttl=ttl)
        logger.debug("Cached access token", stage=Stage.CACHE_TOKEN.value, subject_id=subject_id, ttl=ttl)
        return True

    async def get(self, subject_id: str) -> str | None:
        return await self._store.get(self._keys.token(subject_id))

    async def delete(self, subject_id: str) -> bool:
        """Evict a token immediately, e.g. after the provider rejected it."""
        return await self._store.delete(self._keys.token(subject_id)) > 0
