"""Pytest fixtures for langfuse_sdk tests."""

import os
import tempfile
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from langfuse_sdk.errors import TransportError
from langfuse_sdk.ingestion import IngestionError, IngestionTransport
from langfuse_sdk.manager import BatchEventManager
from langfuse_sdk.record import Record


class FakeTransport(IngestionTransport):
    """Records every batch and answers with configurable outcomes.

    Attributes:
        batches: Every batch received, as lists of record ids.
        reject_ids: Ids reported back as per-record errors.
        fail: When True, every call raises TransportError.
        gate: When set, each call blocks until gate is set.
        entered: Set as soon as a call starts.
    """

    def __init__(self):
        self.batches: List[List[str]] = []
        self.reject_ids: set = set()
        self.fail = False
        self.gate: Optional[threading.Event] = None
        self.entered = threading.Event()
        self._lock = threading.Lock()

    def send_batch(self, records: Sequence[Record]) -> List[IngestionError]:
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5.0)
        with self._lock:
            self.batches.append([r.id for r in records])
        if self.fail:
            raise TransportError("connection refused")
        return [
            IngestionError(id=r.id, status=400, message="rejected")
            for r in records
            if r.id in self.reject_ids
        ]

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.batches)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def manager(transport):
    """BatchEventManager with 2 shards of capacity 2; loop not started."""
    return BatchEventManager(transport, total_queues=2, max_batch_size=2, flush_interval_ms=10)


@pytest.fixture(autouse=True)
def reset_env():
    """Clear LANGFUSE_* variables and restore the environment after each test."""
    original_env = os.environ.copy()
    for key in list(os.environ):
        if key.startswith("LANGFUSE_"):
            del os.environ[key]
    yield
    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def eastern_tz(monkeypatch):
    """Fix local time at UTC-5 (no DST) for the duration of a test."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset not available")
    monkeypatch.setenv("TZ", "EST5")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
