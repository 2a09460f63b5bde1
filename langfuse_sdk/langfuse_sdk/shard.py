"""
Shards - bounded, independently locked buffers of pending records.

The pool is a fixed set of shards created once. Its topology (shard count,
per-shard capacity) never changes, so reading it needs no lock. Every read
or write of a shard's buffer happens under that shard's own lock.
"""

import threading
from typing import Iterable, Iterator, List, Set

from .record import Record

DEFAULT_SHARD_COUNT = 10
DEFAULT_SHARD_CAPACITY = 100


class Shard:
    """
    A single bounded buffer of records protected by its own lock.

    The lock is re-entrant: the flush engine holds it for the whole network
    call and still uses the shard's locked operations to settle the outcome.
    """

    def __init__(self, index: int, capacity: int = DEFAULT_SHARD_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._index = index
        self._capacity = capacity
        self._buffer: List[Record] = []
        self._lock = threading.RLock()

    @property
    def index(self) -> int:
        return self._index

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def lock(self) -> threading.RLock:
        """Exclusive guard for this shard's buffer."""
        return self._lock

    def try_append(self, record: Record) -> bool:
        """Append the record if there is spare capacity.

        Returns:
            True if the record was admitted, False if the shard is full.
        """
        with self._lock:
            if len(self._buffer) >= self._capacity:
                return False
            self._buffer.append(record)
            return True

    def records(self) -> List[Record]:
        """Copy of the current buffer, in admission order."""
        with self._lock:
            return list(self._buffer)

    def snapshot_and_clear(self) -> List[Record]:
        """Return the current buffer and reset it to empty."""
        with self._lock:
            batch = self._buffer
            self._buffer = []
            return batch

    def reconcile(self, failed_ids: Iterable[str]) -> List[Record]:
        """Keep only the records whose id is in failed_ids.

        Relative order of the retained records is preserved.

        Returns:
            The records that were dropped (acknowledged).
        """
        failed: Set[str] = set(failed_ids)
        with self._lock:
            kept = [r for r in self._buffer if r.id in failed]
            dropped = [r for r in self._buffer if r.id not in failed]
            self._buffer = kept
            return dropped

    def is_empty(self) -> bool:
        with self._lock:
            return not self._buffer

    @property
    def is_full(self) -> bool:
        with self._lock:
            return len(self._buffer) >= self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def __repr__(self) -> str:
        return f"Shard(index={self._index}, size={len(self)}, capacity={self._capacity})"


class ShardPool:
    """Fixed-size collection of shards, scanned in construction order."""

    def __init__(
        self,
        shard_count: int = DEFAULT_SHARD_COUNT,
        capacity: int = DEFAULT_SHARD_CAPACITY,
    ):
        if shard_count < 1:
            raise ValueError(f"shard_count must be >= 1, got {shard_count}")
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._shards = tuple(Shard(i, capacity) for i in range(shard_count))

    @property
    def capacity(self) -> int:
        """Per-shard capacity."""
        return self._capacity

    @property
    def total_capacity(self) -> int:
        return self._capacity * len(self._shards)

    @property
    def shards(self) -> tuple:
        return self._shards

    def occupancy(self) -> List[int]:
        """Number of pending records in each shard, in shard order."""
        return [len(shard) for shard in self._shards]

    def __iter__(self) -> Iterator[Shard]:
        return iter(self._shards)

    def __len__(self) -> int:
        return len(self._shards)

    def __getitem__(self, index: int) -> Shard:
        return self._shards[index]
