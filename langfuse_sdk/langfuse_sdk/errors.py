"""
Exception taxonomy for the Langfuse batching client.

Only NoCapacityError and SerializationError ever reach producers: they are
raised synchronously from enqueue(). TransportError is raised by ingestion
transports and absorbed by the flush engine, which keeps the batch for the
next cycle.
"""

from typing import Optional


class LangfuseError(Exception):
    """Base class for all errors raised by langfuse_sdk."""


class NoCapacityError(LangfuseError):
    """Raised when every shard is at capacity and a record cannot be admitted.

    Attributes:
        shard_count: Number of shards in the pool.
        capacity: Per-shard capacity.
    """

    def __init__(self, shard_count: int, capacity: int):
        self.shard_count = shard_count
        self.capacity = capacity
        super().__init__(
            f"No queue available: all {shard_count} shards are full "
            f"(capacity {capacity} each)"
        )


class SerializationError(LangfuseError):
    """Raised when an event body cannot be copied into a JSON-compatible form."""


class TransportError(LangfuseError):
    """Raised when a batch call to the ingestion endpoint could not complete.

    Attributes:
        status_code: HTTP status of the response, if one was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
