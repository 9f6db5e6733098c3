"""Results of batch cache operations."""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class PartialBatchResult(Generic[T]):
    """
    Outcome of a batch lookup.

    Attributes:
        found: Records served from the cache
        missing: Requested ids with no usable cached record

    The ids of ``found`` plus ``missing`` equal the de-duplicated request,
    with no id in both.
    """
    found: list[T] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing


@dataclass
class BatchWriteResult:
    """
    Outcome of a batch write.

    Attributes:
        written: Records queued and stored
        skipped: Ids of records that failed to serialize
    """
    written: int = 0
    skipped: list[str] = field(default_factory=list)
