"""
langfuse_sdk - Buffered Langfuse client for Python

This package provides:
- Trace / span / event / generation / score objects
- A sharded in-memory event buffer with non-blocking admission
- A background flush loop delivering batches to the Langfuse ingestion API
- Per-record reconciliation of partially failed batches
"""

from langfuse_sdk.client import Langfuse
from langfuse_sdk.config import LangfuseConfig, load_config
from langfuse_sdk.errors import (
    LangfuseError,
    NoCapacityError,
    SerializationError,
    TransportError,
)
from langfuse_sdk.ingestion import HttpIngestionClient, IngestionError, IngestionTransport
from langfuse_sdk.manager import BatchEventManager, EventManager, NullEventManager
from langfuse_sdk.observation import (
    EVENT_CREATE,
    GENERATION_CREATE,
    GENERATION_UPDATE,
    SCORE_CREATE,
    SPAN_CREATE,
    SPAN_UPDATE,
    TRACE_CREATE,
    Event,
    Generation,
    Observation,
    Score,
    Span,
    Trace,
)
from langfuse_sdk.record import Record, make_record, new_id
from langfuse_sdk.shard import Shard, ShardPool

__version__ = "0.1.0"

__all__ = [
    # Client
    "Langfuse",
    # Config
    "LangfuseConfig",
    "load_config",
    # Errors
    "LangfuseError",
    "NoCapacityError",
    "SerializationError",
    "TransportError",
    # Ingestion
    "IngestionTransport",
    "IngestionError",
    "HttpIngestionClient",
    # Event managers
    "EventManager",
    "BatchEventManager",
    "NullEventManager",
    "Shard",
    "ShardPool",
    # Records
    "Record",
    "make_record",
    "new_id",
    # Observations
    "Observation",
    "Trace",
    "Span",
    "Event",
    "Generation",
    "Score",
    "TRACE_CREATE",
    "SPAN_CREATE",
    "SPAN_UPDATE",
    "EVENT_CREATE",
    "GENERATION_CREATE",
    "GENERATION_UPDATE",
    "SCORE_CREATE",
]
