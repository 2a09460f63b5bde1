"""
Event managers - buffer records and deliver them in the background.

The SDK never talks to the network on the caller's path. enqueue() drops a
record into the first shard with spare room and returns; a single background
loop calls flush() on a fixed interval, which sends every non-empty shard as
one batch, all shards concurrently.

Architecture:
    producer threads → enqueue() → ShardPool → flush loop → IngestionTransport

Components:
    EventManager (ABC): Capability interface (enqueue + flush)
    BatchEventManager: Sharded buffers, flush engine, flush loop
    NullEventManager: Accepts and discards records (SDK disabled)
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from .errors import NoCapacityError, TransportError
from .ingestion import IngestionTransport
from .record import make_record, new_id
from .shard import DEFAULT_SHARD_CAPACITY, DEFAULT_SHARD_COUNT, Shard, ShardPool

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_INTERVAL_MS = 500


class EventManager(ABC):
    """Interface the SDK layer enqueues through."""

    @abstractmethod
    def enqueue(self, id: str, event_type: str, body: Any) -> str:
        """
        Admit a record for delivery.

        Args:
            id: Record id. A fresh one is generated when empty.
            event_type: Event-type tag, e.g. "trace-create".
            body: The event payload. Copied before this call returns.

        Returns:
            The id of the admitted record.

        Raises:
            NoCapacityError: If the record could not be buffered.
        """
        pass

    @abstractmethod
    def flush(self) -> None:
        """Deliver whatever is currently buffered. Never raises."""
        pass


class NullEventManager(EventManager):
    """Discards everything. Used when the SDK is disabled."""

    def enqueue(self, id: str, event_type: str, body: Any) -> str:
        return id or new_id()

    def flush(self) -> None:
        pass


class BatchEventManager(EventManager):
    """
    Sharded in-memory buffer with a background flush loop.

    Features:
        - Non-blocking admission with synchronous backpressure
          (NoCapacityError when every shard is full)
        - One concurrent flush worker per non-empty shard
        - Partial failures reconciled per record id
        - Transport failures keep the whole batch for the next cycle
    """

    # Log rejected admissions every N rejections
    _REJECT_LOG_INTERVAL = 100

    def __init__(
        self,
        transport: IngestionTransport,
        total_queues: int = DEFAULT_SHARD_COUNT,
        max_batch_size: int = DEFAULT_SHARD_CAPACITY,
        flush_interval_ms: int = DEFAULT_FLUSH_INTERVAL_MS,
        id_factory: Callable[[], str] = new_id,
    ):
        """
        Initialize the manager. The flush loop is not started.

        Args:
            transport: Delivers batches to the ingestion endpoint.
            total_queues: Number of shards.
            max_batch_size: Capacity of each shard, and so the largest batch sent.
            flush_interval_ms: Pause between flush cycles.
            id_factory: Generates ids for records enqueued without one.
        """
        if flush_interval_ms < 0:
            raise ValueError(f"flush_interval_ms must be >= 0, got {flush_interval_ms}")
        self._transport = transport
        self._pool = ShardPool(total_queues, max_batch_size)
        self._flush_interval_ms = flush_interval_ms
        self._id_factory = id_factory

        self._rejected_count = 0
        self._counter_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # -- Admission ----------------------------------------------------------

    def enqueue(self, id: str, event_type: str, body: Any) -> str:
        record = make_record(id or self._id_factory(), event_type, body)

        for shard in self._pool:
            if shard.try_append(record):
                logger.debug(
                    f"Added {record.type} {record.id} to queue {shard.index} "
                    f"({len(shard)}/{shard.capacity})"
                )
                return record.id

        with self._counter_lock:
            self._rejected_count += 1
            rejected = self._rejected_count
        if rejected % self._REJECT_LOG_INTERVAL == 1:
            logger.warning(f"All event queues full, rejected {rejected} events so far")
        raise NoCapacityError(len(self._pool), self._pool.capacity)

    # -- Flush engine -------------------------------------------------------

    def flush(self) -> None:
        """
        Send every non-empty shard as one batch, concurrently, and wait.

        Shards that are empty make no network call.
        """
        workers: List[threading.Thread] = []
        for shard in self._pool:
            if shard.is_empty():
                continue
            worker = threading.Thread(
                target=self._flush_shard,
                args=(shard,),
                name=f"langfuse-flush-{shard.index}",
                daemon=True,
            )
            worker.start()
            workers.append(worker)

        for worker in workers:
            worker.join()

    def _flush_shard(self, shard: Shard) -> None:
        """Deliver one shard's contents and settle the outcome.

        Holds the shard lock for the whole call: admissions targeting this
        shard wait for it to finish.
        """
        with shard.lock:
            batch = shard.records()
            if not batch:
                return

            logger.debug(f"Sending {len(batch)} events from queue {shard.index}")
            try:
                errors = self._transport.send_batch(batch)
            except TransportError as e:
                logger.warning(
                    f"Failed to send {len(batch)} events from queue {shard.index}, "
                    f"will retry: {e}"
                )
                return
            except Exception:
                logger.exception(
                    f"Unexpected error sending events from queue {shard.index}, will retry"
                )
                return

            if not errors:
                shard.snapshot_and_clear()
                return

            failed_ids = [error.id for error in errors]
            dropped = shard.reconcile(failed_ids)
            logger.warning(
                f"Ingestion rejected {len(batch) - len(dropped)} of {len(batch)} events "
                f"from queue {shard.index}: {errors}"
            )

    # -- Flush loop ---------------------------------------------------------

    def process(self, stop_event: threading.Event) -> None:
        """
        Flush on a fixed interval until stop_event is set.

        Cancellation is checked before each cycle; a flush already in
        progress runs to completion. No final flush is made.
        """
        interval = self._flush_interval_ms / 1000.0
        logger.info(f"Event flush loop started (interval {self._flush_interval_ms}ms)")
        while not stop_event.is_set():
            self.flush()
            stop_event.wait(timeout=interval)
        logger.info("Event flush loop stopped")

    def start(self) -> None:
        """Run the flush loop in a daemon thread."""
        if self.is_running:
            logger.warning("Event flush loop already running")
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self.process,
            args=(self._stop_event,),
            daemon=True,
            name="langfuse-flush",
        )
        self._thread.start()

    def stop(self, flush: bool = True, timeout: float = 5.0) -> None:
        """
        Stop the flush loop.

        Args:
            flush: Drain the buffers once more after the loop has stopped.
            timeout: Seconds to wait for the loop thread.
        """
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
        if flush:
            self.flush()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -- Diagnostics --------------------------------------------------------

    @property
    def shards(self) -> tuple:
        return self._pool.shards

    @property
    def flush_interval_ms(self) -> int:
        return self._flush_interval_ms

    def occupancy(self) -> List[int]:
        """Pending records per shard."""
        return self._pool.occupancy()

    @property
    def pending_count(self) -> int:
        """Number of records waiting to be delivered."""
        return sum(self._pool.occupancy())

    @property
    def capacity(self) -> int:
        """Total number of records the manager can buffer."""
        return self._pool.total_capacity

    @property
    def rejected_count(self) -> int:
        """Number of enqueue calls rejected for lack of capacity."""
        return self._rejected_count
