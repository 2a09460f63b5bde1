"""
Langfuse - entry point of the SDK.

Wires configuration, the HTTP ingestion transport and a BatchEventManager
whose flush loop runs in the background for the lifetime of the client:

    langfuse = Langfuse(public_key="pk-...", secret_key="sk-...")
    trace = langfuse.trace(name="checkout", user_id="u-42")
    trace.span(name="price-lookup").end()
    langfuse.shutdown()
"""

import atexit
import dataclasses
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from .config import LangfuseConfig, load_config
from .ingestion import HttpIngestionClient, IngestionTransport
from .manager import BatchEventManager, EventManager, NullEventManager
from .observation import (
    EVENT_CREATE,
    GENERATION_CREATE,
    SCORE_CREATE,
    SPAN_CREATE,
    TRACE_CREATE,
    Event,
    Generation,
    Observation,
    Score,
    Span,
    Trace,
)
from .record import new_id

logger = logging.getLogger(__name__)


def _resolve_config(config: Optional[LangfuseConfig], overrides: Dict[str, Any]) -> LangfuseConfig:
    if config is None:
        return load_config(**overrides)
    if not overrides:
        return config
    known = {f.name for f in dataclasses.fields(LangfuseConfig)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown config option(s): {', '.join(unknown)}")
    return dataclasses.replace(config, **overrides)


class Langfuse:
    """
    Client facade: creates traces and observations and buffers them for delivery.

    Features:
        - Config from arguments, LANGFUSE_* env vars or langfuse.yaml
        - Background flush loop started on construction
        - Pluggable event manager and transport (for tests)
        - Flushes remaining events on shutdown / interpreter exit
    """

    def __init__(
        self,
        config: Optional[LangfuseConfig] = None,
        *,
        event_manager: Optional[EventManager] = None,
        transport: Optional[IngestionTransport] = None,
        session: Optional[requests.Session] = None,
        **overrides: Any,
    ):
        """
        Initialize the client.

        Args:
            config: Base configuration. If None, resolved with
                load_config(**overrides); otherwise overrides replace its fields.
            event_manager: Use this manager instead of building one. No
                background loop is started for it.
            transport: Use this transport instead of HttpIngestionClient.
            session: requests.Session for the default HTTP transport.
            **overrides: Config fields (public_key, host, total_queues, ...).
        """
        self.config = _resolve_config(config, overrides)
        self._transport = transport or HttpIngestionClient(
            host=self.config.host,
            public_key=self.config.public_key,
            secret_key=self.config.secret_key,
            timeout=self.config.request_timeout_s,
            session=session,
        )
        self._owns_transport = transport is None
        self._shutdown_lock = threading.Lock()
        self._closed = False

        if event_manager is not None:
            self._event_manager = event_manager
            self._batch_manager = None
        elif not self.config.enabled:
            logger.info("Langfuse disabled, events will be discarded")
            self._event_manager = NullEventManager()
            self._batch_manager = None
        else:
            if not self.config.has_credentials:
                logger.warning("Langfuse public/secret key not set, ingestion calls will fail")
            self._batch_manager = BatchEventManager(
                self._transport,
                total_queues=self.config.total_queues,
                max_batch_size=self.config.max_batch_size,
                flush_interval_ms=self.config.flush_interval_ms,
            )
            self._event_manager = self._batch_manager
            self._batch_manager.start()
            # Register cleanup on exit
            atexit.register(self.shutdown)

    @property
    def event_manager(self) -> EventManager:
        return self._event_manager

    @property
    def transport(self) -> IngestionTransport:
        return self._transport

    # -- Traces and observations -------------------------------------------

    def trace(self, **fields: Any) -> Trace:
        """Create a trace and enqueue it."""
        trace = Trace(**fields)
        if not trace.id:
            trace.id = new_id()
        if not trace.release:
            trace.release = self.config.release
        return self._create(trace, TRACE_CREATE)

    def span(self, **fields: Any) -> Span:
        """Create a span. Pass trace_id to attach it to an existing trace."""
        return self._create(self._started(Span(**fields)), SPAN_CREATE)

    def event(self, **fields: Any) -> Event:
        return self._create(self._started(Event(**fields)), EVENT_CREATE)

    def generation(self, **fields: Any) -> Generation:
        return self._create(self._started(Generation(**fields)), GENERATION_CREATE)

    def score(self, **fields: Any) -> Score:
        """Create a score.

        Raises:
            ValueError: If trace_id or name is missing.
        """
        score = Score(**fields)
        if not score.trace_id:
            raise ValueError("trace id is required")
        if not score.name:
            raise ValueError("name is required")
        if not score.id:
            score.id = new_id()
        return self._create(score, SCORE_CREATE)

    @staticmethod
    def _started(observation: Any) -> Any:
        if not observation.id:
            observation.id = new_id()
        if observation.start_time is None:
            observation.start_time = datetime.now(timezone.utc)
        return observation

    def _create(self, observation: Observation, event_type: str) -> Any:
        observation.manager = self._event_manager
        self._event_manager.enqueue(observation.id, event_type, observation)
        return observation

    # -- Lifecycle ----------------------------------------------------------

    def flush(self) -> None:
        """Deliver everything buffered so far (blocking)."""
        self._event_manager.flush()

    def shutdown(self, flush: bool = True) -> None:
        """
        Stop the background loop and, by default, drain the buffers.

        Safe to call more than once.
        """
        with self._shutdown_lock:
            if self._closed:
                return
            self._closed = True

        if self._batch_manager is not None:
            self._batch_manager.stop(flush=flush)
            atexit.unregister(self.shutdown)
        elif flush:
            self._event_manager.flush()

        if self._owns_transport:
            self._transport.close()
        logger.info("Langfuse client shut down")

    def __enter__(self) -> "Langfuse":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()
