"""
Record serialization for cached payloads.

Writes are JSON via orjson over ``model_dump(mode="json")``. Reads validate
the payload back into the expected pydantic model; a payload that fails to
parse or validate is reported as undecodable so callers treat it as a miss.
"""

from typing import Any, TypeVar

import orjson
from pydantic import BaseModel, TypeAdapter, ValidationError

from muse_cache.core.exceptions import CacheSerializationError
from muse_cache.core.logging.logger import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def encode(record: BaseModel) -> str:
    """
    Serialize a record for storage.

    Raises:
        CacheSerializationError: If the record cannot be serialized
    """
    try:
        return orjson.dumps(record.model_dump(mode="json")).decode("utf-8")
    except (TypeError, ValueError, orjson.JSONEncodeError) as e:
        raise CacheSerializationError.from_exception(
            e,
            message=f"Failed to serialize {type(record).__name__}",
            record_type=type(record).__name__,
        )


def encode_with(value: Any, adapter: TypeAdapter) -> str:
    """Like ``encode`` for lists and other non-model types."""
    try:
        return orjson.dumps(adapter.dump_python(value, mode="json")).decode("utf-8")
    except (TypeError, ValueError, orjson.JSONEncodeError) as e:
        raise CacheSerializationError.from_exception(
            e, message="Failed to serialize cached value", value_type=type(value).__name__
        )


def decode(payload: str, model: type[M], key: str) -> M | None:
    """Deserialize a stored payload, or return None if it is corrupt."""
    try:
        return model.model_validate_json(payload)
    except ValidationError as e:
        logger.warning(
            "Discarding undecodable cache payload",
            stage="CACHE.DECODE",
            key=key,
            model=model.__name__,
            error_count=e.error_count(),
        )
        return None


def decode_with(payload: str, adapter: TypeAdapter, key: str) -> Any | None:
    """Like ``decode`` for tagged unions and other non-model types."""
    try:
        return adapter.validate_json(payload)
    except ValidationError as e:
        logger.warning(
            "Discarding undecodable cache payload",
            stage="CACHE.DECODE",
            key=key,
            error_count=e.error_count(),
        )
        return None
