"""
Entity Cache with Partial-Hit Batch Operations

One EntityCache per record kind (track, album, artist, user snapshot,
recommendations). Each owns a key namespace and a TTL, and every write
carries that TTL.

Batch semantics:
    get_many(ids)  → one MGET; every requested id lands in exactly one of
                     ``found`` (decoded record) or ``missing`` (absent,
                     expired or undecodable)
    put_many(recs) → one non-transactional pipeline; records that fail to
                     serialize are skipped, the rest are written

Concurrent writers to the same key: last writer wins.
"""

from typing import Generic, Iterable, TypeVar

from pydantic import BaseModel

from muse_cache.core.config.constants import Stage
from muse_cache.core.exceptions import CacheSerializationError
from muse_cache.core.interfaces.cache import CacheStore
from muse_cache.core.logging.logger import get_logger
from muse_cache.infrastructure.cache.codec import decode, encode
from muse_cache.infrastructure.cache.keys import CacheKeyBuilder
from muse_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector
from muse_cache.models.batch import BatchWriteResult, PartialBatchResult
from muse_cache.models.entities import ENTITY_MODELS, EntityKind

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def dedupe(ids: Iterable[str]) -> list[str]:
    """Drop repeated ids, keeping first-occurrence order."""
    return list(dict.fromkeys(ids))


class EntityCache(Generic[M]):
    """
    Cache for one kind of record.

    Responsibility: key namespacing, TTL on every write, encode/decode,
    partial-hit batch reads and best-effort batch writes.

    Args:
        store: Cache store (RedisClient in production)
        kind: Record kind; selects the model, key namespace and label
        keys: Key builder for the shared namespace
        ttl: Expiry in seconds applied to every write
    """

    def __init__(self, store: CacheStore, kind: EntityKind, keys: CacheKeyBuilder, ttl: int):
        self._store = store
        self.kind = kind
        self.ttl = ttl
        self._keys = keys
        self._model: type[M] = ENTITY_MODELS[kind]
        self._metrics = get_metrics_collector()

    def key_for(self, entity_id: str) -> str:
        return self._keys.entity(self.kind, entity_id)

    @staticmethod
    def _id_of(record: BaseModel) -> str:
        return record.id

    # -------------------------------------------------------------------------
    # Single-record operations
    # -------------------------------------------------------------------------

    async def get(self, entity_id: str) -> M | None:
        """
        Look up one record.

        STAGE-CACHE.1: Entity GET

        Returns:
            The record, or None if absent, expired or undecodable

        Raises:
            CacheError: If the store fails (a store failure is not a miss)
        """
        key = self.key_for(entity_id)
        payload = await self._store.get(key)
        if payload is None:
            logger.debug("Cache miss", stage=Stage.CACHE_GET.value, kind=self.kind.value, key=key)
            return None
        return decode(payload, self._model, key)

    async def put(self, record: M) -> None:
        """
        Store one record with this kind's TTL.

        STAGE-CACHE.2: Entity PUT

        Raises:
            CacheSerializationError: If the record cannot be serialized
            CacheError: If the store fails
        """
        key = self.key_for(self._id_of(record))
        await self._store.set(key, encode(record), ttl=self.ttl)
        self._metrics.record_writes(self.kind.value)
        logger.debug(
            "Cached record", stage=Stage.CACHE_PUT.value, kind=self.kind.value, key=key, ttl=self.ttl
        )

    async def delete(self, entity_id: str) -> bool:
        return await self._store.delete(self.key_for(entity_id)) > 0

    # -------------------------------------------------------------------------
    # Batch operations
    # -------------------------------------------------------------------------

    async def get_many(self, ids: Iterable[str]) -> PartialBatchResult[M]:
        """
        Look up many records in one round trip.

        STAGE-CACHE.3: Batch GET

        Duplicate ids are collapsed. ``found`` follows request order.

        Raises:
            CacheError: If the store fails; no partial result is returned
        """
        unique_ids = dedupe(ids)
        result: PartialBatchResult[M] = PartialBatchResult()
        if not unique_ids:
            return result

        keys = [self.key_for(entity_id) for entity_id in unique_ids]
        payloads = await self._store.mget(keys)

        for entity_id, key, payload in zip(unique_ids, keys, payloads):
            record = decode(payload, self._model, key) if payload is not None else None
            if record is None:
                result.missing.append(entity_id)
            else:
                result.found.append(record)

        logger.debug(
            "Batch lookup complete",
            stage=Stage.CACHE_BATCH_GET.value,
            kind=self.kind.value,
            requested=len(unique_ids),
            found=len(result.found),
            missing=len(result.missing),
        )
        return result

    def queue_put(self, pipe, record: M) -> bool:
        """
        Queue a write on an open pipeline.

        Returns:
            False if the record failed to serialize and was not queued
        """
        try:
            payload = encode(record)
        except CacheSerializationError as e:
            logger.warning(
                "Skipping record that failed to serialize",
                stage=Stage.CACHE_BATCH_PUT.value,
                kind=self.kind.value,
                entity_id=self._id_of(record),
                error=e.message,
            )
            return False
        pipe.set(self.key_for(self._id_of(record)), payload, ex=self.ttl)
        return True

    async def put_many(self, records: Iterable[M]) -> BatchWriteResult:
        """
        Store many records in one pipelined round trip.

        STAGE-CACHE.4: Batch PUT

        Raises:
            CacheSerializationError: If the batch was non-empty and no record
                serialized
            CacheError: If the store fails
        """
        records = list(records)
        outcome = BatchWriteResult()
        if not records:
            return outcome

        pipe = self._store.pipeline()
        for record in records:
            if self.queue_put(pipe, record):
                outcome.written += 1
            else:
                outcome.skipped.append(self._id_of(record))

        self._metrics.record_serialization_skips(self.kind.value, len(outcome.skipped))

        if outcome.written == 0:
            raise CacheSerializationError(
                message=f"No {self.kind.value} record in the batch could be serialized",
                details={"kind": self.kind.value, "skipped": outcome.skipped},
            )

        await self._store.execute_pipeline(pipe)
        self._metrics.record_writes(self.kind.value, outcome.written)

        logger.info(
            "Batch cached",
            stage=Stage.CACHE_BATCH_PUT.value,
            kind=self.kind.value,
            written=outcome.written,
            skipped=len(outcome.skipped),
        )
        return outcome
